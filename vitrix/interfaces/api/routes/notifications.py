"""Endpoint recording that a recipient opened a broadcast message."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vitrix.application.use_cases.notifications import record_open
from vitrix.infrastructure.database import get_db
from vitrix.interfaces.api.routes_helpers import domain_error_to_http
from vitrix.interfaces.api.schemas import (
    NotificationOpenRequest,
    NotificationOpenResponse,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/{message_id}/open", response_model=NotificationOpenResponse)
def track_notification_open(
    message_id: str,
    payload: NotificationOpenRequest,
    db: Session = Depends(get_db),
) -> NotificationOpenResponse:
    """Mark ``message_id`` as read by the sender of the open event."""

    try:
        record_open(
            db,
            message_id,
            email=payload.email,
            user_id=payload.user_id,
            open_type=payload.open_type,
        )
    except ValueError as exc:
        raise domain_error_to_http(exc) from exc
    return NotificationOpenResponse(success=True)
