"""Use case for sending a push notification to a target audience."""

import logging

from anyio import to_thread
from sqlalchemy.orm import Session

from vitrix.domain.entities import DeliveryReport, NotificationRequest
from vitrix.domain.exceptions import GatewayUnconfigured

from .aggregate import aggregate_outcomes
from .dispatcher import NotificationDispatcher
from .resolve_recipients import resolve_recipients
from .validators import ensure_required_text

logger = logging.getLogger(__name__)


async def send_notification(
    session: Session,
    dispatcher: NotificationDispatcher | None,
    request: NotificationRequest,
) -> DeliveryReport:
    """Resolve the audience of ``request``, send it and summarise the result.

    The request is validated and its audience resolved before the push
    gateway is required, so bad input is reported even when push delivery
    is not configured. Database lookups run in a worker thread.
    """

    ensure_required_text(title=request.title, body=request.body)
    recipients = await to_thread.run_sync(resolve_recipients, session, request.target)
    if dispatcher is None:
        raise GatewayUnconfigured("Push notifications are not configured")

    outcomes = await dispatcher.dispatch(recipients, request)
    report = aggregate_outcomes(outcomes, len(recipients))
    logger.info(
        "Notification to %s: %s of %s sent (%s)",
        request.target.describe(),
        report.sent,
        report.requested,
        report.overall.value,
    )
    return report


__all__ = ["send_notification"]
