import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

import models  # noqa: F401
from core.config import settings
from core.celery import celery_app
from core.db import Base, engine
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging
from routes.auth import router as auth_router
from routes.checkout import router as checkout_router
from routes.customers import router as customers_router
from routes.notifications import router as notifications_router
from routes.orders import router as orders_router
from routes.products import router as products_router
from routes.profile import router as profile_router
from services.notifications import registry, relay_redis_events

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    shutdown_event = asyncio.Event()
    relay = None
    if settings.NOTIFICATION_BACKEND == "redis":
        relay = asyncio.create_task(
            relay_redis_events(registry, settings.REDIS_URL, settings.ORDER_EVENTS_CHANNEL, shutdown_event)
        )
    logger.info("%s %s started (notifications: %s)", settings.APP_NAME, settings.APP_VERSION, settings.NOTIFICATION_BACKEND)
    yield
    shutdown_event.set()
    if relay is not None:
        await relay


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
    }
    openapi_schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

# Ensure tables exist (for dev/test; in prod use Alembic)
Base.metadata.create_all(bind=engine)

app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(products_router)
app.include_router(orders_router)
app.include_router(customers_router)
app.include_router(checkout_router)
app.include_router(notifications_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
    }


@app.get("/celery-health")
def celery_health_check():
    """Check Celery worker status"""
    try:
        stats = celery_app.control.inspect(timeout=1.0).stats()
    except Exception as e:
        logger.warning("Celery inspect failed: %s", e)
        return {"status": "unhealthy", "error": str(e)}
    if stats:
        return {"status": "healthy", "workers": len(stats)}
    return {"status": "no_workers", "message": "No Celery workers running"}


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=settings.DEBUG,
    )
