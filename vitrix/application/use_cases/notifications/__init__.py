"""Use cases for notification fan-out and read tracking."""

from .aggregate import aggregate_outcomes
from .broadcast import BroadcastResult, broadcast_group_message, compose_group_message
from .dispatcher import NotificationDispatcher, build_push_payload
from .email_channel import EmailOutcome, send_group_email
from .read_stats import summarize_read_receipts
from .record_open import record_open
from .resolve_recipients import resolve_recipients
from .send_notification import send_notification

__all__ = [
    "BroadcastResult",
    "EmailOutcome",
    "NotificationDispatcher",
    "aggregate_outcomes",
    "broadcast_group_message",
    "build_push_payload",
    "compose_group_message",
    "record_open",
    "resolve_recipients",
    "send_group_email",
    "send_notification",
    "summarize_read_receipts",
]
