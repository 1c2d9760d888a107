"""FastAPI dependency utilities."""

import logging

from fastapi import Depends, Request

from vitrix.application.use_cases.notifications import NotificationDispatcher
from vitrix.domain.exceptions import GatewayUnconfigured
from vitrix.infrastructure.database import get_db
from vitrix.infrastructure.notifications import (
    FcmPushGateway,
    PushGateway,
    build_push_gateway,
)

logger = logging.getLogger(__name__)


def open_push_gateway() -> FcmPushGateway | None:
    """Build the process-wide push gateway, or ``None`` when push is disabled."""

    try:
        return build_push_gateway()
    except GatewayUnconfigured as exc:
        logger.warning("Push gateway unavailable: %s", exc)
        return None


def get_push_gateway(request: Request) -> PushGateway | None:
    """Return the gateway opened by the application lifespan."""

    return getattr(request.app.state, "push_gateway", None)


def get_dispatcher(
    gateway: PushGateway | None = Depends(get_push_gateway),
) -> NotificationDispatcher | None:
    """Return a dispatcher bound to the shared push gateway."""

    if gateway is None:
        return None
    return NotificationDispatcher(gateway)


__all__ = ["get_db", "get_dispatcher", "get_push_gateway", "open_push_gateway"]
