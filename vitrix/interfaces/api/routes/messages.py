"""Endpoints to broadcast group messages and inspect their receipts."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from vitrix.application.use_cases.notifications import (
    NotificationDispatcher,
    broadcast_group_message,
)
from vitrix.infrastructure.database import get_db
from vitrix.infrastructure.repositories import GroupMessageRepository
from vitrix.interfaces.api.dependencies import get_dispatcher
from vitrix.interfaces.api.routes_helpers import domain_error_to_http
from vitrix.interfaces.api.schemas import (
    BroadcastRead,
    GroupMessageCreate,
    GroupMessageRead,
)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", response_model=BroadcastRead, status_code=status.HTTP_201_CREATED)
async def create_group_message(
    payload: GroupMessageCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher | None = Depends(get_dispatcher),
) -> BroadcastRead:
    """Store a message for a group and deliver it over push and email."""

    try:
        result = await broadcast_group_message(
            db,
            dispatcher=dispatcher,
            group_name=payload.group_name,
            title=payload.title,
            body=payload.body,
            message_type=payload.message_type,
            sent_by=payload.sent_by,
            send_email=payload.send_email,
        )
    except ValueError as exc:
        raise domain_error_to_http(exc) from exc

    if dispatcher is not None:
        background_tasks.add_task(dispatcher.wait_for_pending)
    return BroadcastRead.from_result(result)


@router.get("/{message_id}", response_model=GroupMessageRead)
def read_group_message(message_id: str, db: Session = Depends(get_db)) -> GroupMessageRead:
    """Return the message with its receipts and read counters."""

    message = GroupMessageRepository(db).get(message_id)
    if message is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Message with id {message_id} not found",
        )
    return GroupMessageRead.from_entity(message)
