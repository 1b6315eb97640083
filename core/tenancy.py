"""
Request identity for the two tenant kinds: sellers (who own shops, products
and orders) and customers (who check out).

Both come from the bearer access token; the ``role`` claim says which table
``sub`` points into.
"""
from typing import Optional

import jwt
from fastapi import Header, HTTPException, status, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models.customer import Customer
from models.seller import Seller
from security import jwt as jwt_utils


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return authorization.split(" ", 1)[1]


def decode_subject(token: str, role: str) -> int:
    """Return the subject id of an access token issued for ``role``."""
    try:
        payload = jwt_utils.decode_access(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if payload.get("role") != role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Requires {role} account")
    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def seller_from_token(token: str, db: Session) -> Seller:
    seller_id = decode_subject(token, jwt_utils.SELLER_ROLE)
    seller = db.query(Seller).filter(Seller.id == seller_id).one_or_none()
    if not seller:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Seller not found")
    if not seller.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Seller account is inactive")
    return seller


def get_current_seller(
    db: Session = Depends(get_db), authorization: Optional[str] = Header(default=None, alias="Authorization")
) -> Seller:
    """FastAPI dependency that returns the seller the bearer token belongs to."""
    return seller_from_token(_bearer_token(authorization), db)


def get_current_customer(
    db: Session = Depends(get_db), authorization: Optional[str] = Header(default=None, alias="Authorization")
) -> Customer:
    customer_id = decode_subject(_bearer_token(authorization), jwt_utils.CUSTOMER_ROLE)
    customer = db.query(Customer).filter(Customer.id == customer_id).one_or_none()
    if not customer:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Customer not found")
    return customer
