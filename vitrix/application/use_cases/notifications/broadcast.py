"""Compose a group message and fan it out over push and email."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial

from anyio import to_thread
from sqlalchemy.orm import Session

from vitrix.domain.entities import (
    UNKNOWN_USER_NAME,
    DeliveryReport,
    DeliveryStatus,
    GroupMessage,
    NotificationRequest,
    NotificationTarget,
    ReadReceipt,
    User,
)
from vitrix.domain.exceptions import GatewayUnconfigured, NoRecipients
from vitrix.infrastructure.email import email_configured
from vitrix.infrastructure.repositories import GroupMessageRepository, UserRepository
from vitrix.utils import now_in_app_timezone

from .aggregate import aggregate_outcomes
from .dispatcher import NotificationDispatcher
from .email_channel import EmailOutcome, send_group_email
from .resolve_recipients import resolve_recipients
from .validators import ensure_required_text

logger = logging.getLogger(__name__)

GROUP_MESSAGE_TYPE = "group_message"
CHANNELS_PER_MEMBER = 2


@dataclass
class BroadcastResult:
    """Stored message plus what each channel managed to deliver."""

    message: GroupMessage
    push: DeliveryReport
    emails: list[EmailOutcome] = field(default_factory=list)


def compose_group_message(
    session: Session,
    *,
    group_name: str,
    title: str,
    body: str,
    message_type: str = "announcement",
    sent_by: str | None = None,
) -> GroupMessage:
    """Store a message for ``group_name`` with one unread receipt per member."""

    fields = ensure_required_text(group_name=group_name, title=title, body=body)
    members = _group_members(session, fields["group_name"])

    message = GroupMessage(
        id=None,
        title=fields["title"],
        body=fields["body"],
        group_name=fields["group_name"],
        message_type=(message_type or "announcement").strip() or "announcement",
        sent_by=sent_by,
        sent_at=now_in_app_timezone(),
        total_recipients=len(members),
        delivery_status=DeliveryStatus(sent_count=len(members)),
        read_receipts=[
            ReadReceipt(
                user_email=member.email,
                user_id=member.id,
                user_name=member.name or UNKNOWN_USER_NAME,
            )
            for member in members
        ],
    )
    stored = GroupMessageRepository(session).create(message)
    logger.info(
        "Stored group message %s for %s member(s) of %s",
        stored.id,
        len(members),
        stored.group_name,
    )
    return stored


async def broadcast_group_message(
    session: Session,
    *,
    dispatcher: NotificationDispatcher | None,
    group_name: str,
    title: str,
    body: str,
    message_type: str = "announcement",
    sent_by: str | None = None,
    send_email: bool = True,
) -> BroadcastResult:
    """Compose the message, deliver it and record the delivery counters.

    A channel that is not configured delivers nothing; the broadcast itself
    still succeeds. Database work runs in worker threads.
    """

    message = await to_thread.run_sync(
        partial(
            compose_group_message,
            session,
            group_name=group_name,
            title=title,
            body=body,
            message_type=message_type,
            sent_by=sent_by,
        )
    )
    members = await to_thread.run_sync(_group_members, session, message.group_name or "")

    push_report = await _push(session, dispatcher, message)

    emails: list[EmailOutcome] = []
    if not send_email:
        logger.debug("Email channel disabled for message %s", message.id)
    elif not email_configured():
        logger.warning("SendGrid is not configured; skipping emails for message %s", message.id)
    else:
        emails = await to_thread.run_sync(
            send_group_email, members, message.title, message.body
        )

    email_sent = sum(1 for outcome in emails if outcome.success)
    status = DeliveryStatus(
        sent_count=len(members),
        notification_sent=push_report.sent,
        email_sent=email_sent,
        failed_count=max(
            len(members) * CHANNELS_PER_MEMBER - (push_report.sent + email_sent), 0
        ),
    )

    stored = await to_thread.run_sync(_store_delivery_status, session, message, status)
    return BroadcastResult(message=stored, push=push_report, emails=emails)


async def _push(
    session: Session,
    dispatcher: NotificationDispatcher | None,
    message: GroupMessage,
) -> DeliveryReport:
    if dispatcher is None:
        logger.warning("Push gateway is not configured; skipping push for message %s", message.id)
        return aggregate_outcomes([], 0)

    target = NotificationTarget.group(message.group_name or "")
    try:
        recipients = await to_thread.run_sync(resolve_recipients, session, target)
    except NoRecipients:
        logger.info("No member of %s has an active device token", message.group_name)
        return aggregate_outcomes([], 0)

    request = NotificationRequest(
        target=target,
        title=message.title,
        body=message.body,
        data={
            "type": GROUP_MESSAGE_TYPE,
            "message_type": message.message_type,
            "group_name": message.group_name or "",
            "message_id": message.id or "",
            "track_open": "true",
        },
    )
    try:
        outcomes = await dispatcher.dispatch(recipients, request)
    except GatewayUnconfigured as exc:
        logger.error("Push skipped for message %s: %s", message.id, exc)
        return aggregate_outcomes([], 0)
    return aggregate_outcomes(outcomes, len(recipients))


def _store_delivery_status(
    session: Session, message: GroupMessage, status: DeliveryStatus
) -> GroupMessage:
    repository = GroupMessageRepository(session)
    repository.update_delivery_status(message.id, status)
    return repository.get(message.id) or message


def _group_members(session: Session, group_name: str) -> list[User]:
    members = [
        user
        for user in UserRepository(session).list_by_group(group_name)
        if not user.is_staff()
    ]
    if not members:
        raise NoRecipients(f"No trainees found in group: {group_name}")
    return members


__all__ = [
    "BroadcastResult",
    "GROUP_MESSAGE_TYPE",
    "broadcast_group_message",
    "compose_group_message",
]
