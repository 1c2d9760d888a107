"""Endpoint to push a notification to a user, a group or everybody."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from vitrix.application.use_cases.notifications import (
    NotificationDispatcher,
    send_notification,
)
from vitrix.domain.exceptions import GatewayUnconfigured
from vitrix.infrastructure.database import get_db
from vitrix.interfaces.api.dependencies import get_dispatcher
from vitrix.interfaces.api.routes_helpers import domain_error_to_http
from vitrix.interfaces.api.schemas import DeliveryReportRead, NotifyRequest

router = APIRouter(tags=["notifications"])
logger = logging.getLogger(__name__)


@router.post("/notify", response_model=DeliveryReportRead)
async def notify(
    payload: NotifyRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher | None = Depends(get_dispatcher),
) -> DeliveryReportRead:
    """Send a push notification and report how many recipients got it."""

    try:
        report = await send_notification(db, dispatcher, payload.to_domain())
    except GatewayUnconfigured as exc:
        logger.error("Push notification rejected: %s", exc)
        raise domain_error_to_http(exc) from exc
    except ValueError as exc:
        raise domain_error_to_http(exc) from exc

    if dispatcher is not None:
        background_tasks.add_task(dispatcher.wait_for_pending)
    return DeliveryReportRead.from_report(report)
