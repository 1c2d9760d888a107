"""Reconcile open events into per-recipient read receipts."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vitrix.domain.entities import (
    UNKNOWN_USER_NAME,
    GroupMessage,
    OpenType,
    ReadReceipt,
)
from vitrix.domain.exceptions import MessageNotFound, MissingIdentity
from vitrix.infrastructure.repositories import GroupMessageRepository, UserRepository
from vitrix.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

MAX_INSERT_ATTEMPTS = 3


def record_open(
    session: Session,
    message_id: str,
    *,
    email: str | None = None,
    user_id: int | None = None,
    open_type: OpenType | str = OpenType.NOTIFICATION,
) -> GroupMessage:
    """Mark ``message_id`` as opened by the given recipient.

    The matching receipt is updated in place, keeping any timestamp already
    recorded. A recipient without a receipt gets a new one. Applying the same
    open twice leaves the stored receipt unchanged.
    """

    email = (email or "").strip() or None
    if email is None and user_id is None:
        raise MissingIdentity("Email or userId is required")

    open_type = OpenType(open_type)
    repository = GroupMessageRepository(session)
    if not repository.exists(message_id):
        raise MessageNotFound(f"Message with id {message_id} not found")

    for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
        now = now_in_app_timezone()
        updated = repository.mark_opened(
            message_id, email=email, user_id=user_id, open_type=open_type, now=now
        )
        if updated:
            break

        receipt = _new_receipt(session, email=email, user_id=user_id).opened(
            open_type, now
        )
        try:
            repository.append_receipt(message_id, receipt)
        except IntegrityError:
            # Another request stored the first receipt of this recipient.
            logger.info(
                "Concurrent first open on message %s, retrying (attempt %s)",
                message_id,
                attempt,
            )
            if attempt == MAX_INSERT_ATTEMPTS:
                raise
            continue
        logger.info("Added read receipt for %s on message %s", receipt.user_key, message_id)
        break

    message = repository.get(message_id)
    if message is None:
        raise MessageNotFound(f"Message with id {message_id} not found")
    return message


def _new_receipt(
    session: Session, *, email: str | None, user_id: int | None
) -> ReadReceipt:
    users = UserRepository(session)
    account = users.get_by_email(email) if email else users.get(user_id)

    if account is None:
        return ReadReceipt(user_email=email, user_id=user_id, user_name=UNKNOWN_USER_NAME)

    return ReadReceipt(
        user_email=email or account.email,
        user_id=user_id if user_id is not None else account.id,
        user_name=account.name or UNKNOWN_USER_NAME,
    )


__all__ = ["MAX_INSERT_ATTEMPTS", "record_open"]
