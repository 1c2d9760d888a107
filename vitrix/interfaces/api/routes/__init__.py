from fastapi import FastAPI

from .device_tokens import router as device_tokens_router
from .messages import router as messages_router
from .notifications import router as notifications_router
from .notify import router as notify_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(notify_router)
    app.include_router(notifications_router)
    app.include_router(messages_router)
    app.include_router(device_tokens_router)
