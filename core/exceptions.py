"""
Error kinds raised by the service layer.

Routes let these propagate; ``register_exception_handlers`` turns each kind
into a JSON response with a fixed HTTP status.
"""
from typing import Any, Dict, Sequence

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class PortalError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "PortalError"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.detail, "error": self.kind}


class NotFound(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "NotFound"


class Forbidden(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "Forbidden"


class ValidationError(PortalError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "ValidationError"


class OutOfStock(PortalError):
    status_code = status.HTTP_409_CONFLICT
    kind = "OutOfStock"


class InvalidTransition(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "InvalidTransition"

    def __init__(self, current_status: str, requested_status: str, allowed_statuses: Sequence[str] = (), terminal: bool = False):
        detail = f"Cannot change order status from {current_status} to {requested_status}"
        if terminal:
            detail += f"; {current_status} orders can no longer change"
        elif allowed_statuses:
            detail += f"; allowed: {', '.join(allowed_statuses)}"
        super().__init__(detail)
        self.current_status = current_status
        self.requested_status = requested_status
        self.allowed_statuses = list(allowed_statuses)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current_status
        data["requested_status"] = self.requested_status
        data["allowed_statuses"] = self.allowed_statuses
        return data


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Same shape as ValidationError, keeping FastAPI's per-field list as detail
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"detail": jsonable_encoder(exc.errors()), "error": ValidationError.kind},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
