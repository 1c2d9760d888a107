"""Domain entities for broadcast messages and their read receipts."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

UNKNOWN_USER_NAME = "unknown"


class OpenType(str, Enum):
    """Channel through which a recipient opened a message."""

    NOTIFICATION = "notification"
    EMAIL = "email"


@dataclass(frozen=True)
class ReadReceipt:
    """Per-recipient record of whether and when a message was opened."""

    user_email: str | None
    user_id: int | None
    user_name: str = UNKNOWN_USER_NAME
    is_read: bool = False
    read_timestamp: datetime | None = None
    notification_opened: bool = False
    notification_opened_timestamp: datetime | None = None
    email_opened: bool = False
    email_opened_timestamp: datetime | None = None

    @property
    def user_key(self) -> str:
        """Identity used to keep a single receipt per recipient."""

        return build_user_key(email=self.user_email, user_id=self.user_id)

    def matches(self, *, email: str | None, user_id: int | None) -> bool:
        """Match by email when one is given, otherwise by user id."""

        if email:
            return bool(self.user_email) and self.user_email.lower() == email.lower()
        return user_id is not None and self.user_id == user_id

    def opened(self, open_type: OpenType, now: datetime) -> "ReadReceipt":
        """Return a copy with the open of ``open_type`` applied.

        ``is_read`` never goes back to ``False`` and timestamps already set
        are kept, so applying the same open twice yields the same receipt.
        """

        changes: dict[str, object] = {
            "is_read": True,
            "read_timestamp": self.read_timestamp or now,
        }
        if open_type is OpenType.NOTIFICATION:
            changes["notification_opened"] = True
            changes["notification_opened_timestamp"] = (
                self.notification_opened_timestamp or now
            )
        else:
            changes["email_opened"] = True
            changes["email_opened_timestamp"] = self.email_opened_timestamp or now
        return replace(self, **changes)


@dataclass
class DeliveryStatus:
    """Counters recorded on a message once its broadcast has settled."""

    sent_count: int = 0
    notification_sent: int = 0
    email_sent: int = 0
    failed_count: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "sent_count": self.sent_count,
            "notification_sent": self.notification_sent,
            "email_sent": self.email_sent,
            "failed_count": self.failed_count,
        }


@dataclass
class GroupMessage:
    """Broadcast composed by a coach together with its read receipts."""

    id: str | None
    title: str
    body: str
    group_name: str | None = None
    message_type: str = "announcement"
    sent_by: str | None = None
    sent_at: datetime | None = None
    total_recipients: int = 0
    delivery_status: DeliveryStatus = field(default_factory=DeliveryStatus)
    read_receipts: list[ReadReceipt] = field(default_factory=list)

    def find_receipt(
        self, *, email: str | None, user_id: int | None
    ) -> ReadReceipt | None:
        for receipt in self.read_receipts:
            if receipt.matches(email=email, user_id=user_id):
                return receipt
        return None


@dataclass(frozen=True)
class ReadStats:
    """Aggregated read counters for a message."""

    read: int
    unread: int
    notification_opened: int
    email_opened: int
    total_recipients: int


def build_user_key(*, email: str | None, user_id: int | None) -> str:
    """Return the uniqueness key of a receipt inside a message."""

    if email:
        return f"email:{email.strip().lower()}"
    if user_id is not None:
        return f"id:{user_id}"
    raise ValueError("A read receipt needs an email or a user id")


__all__ = [
    "DeliveryStatus",
    "GroupMessage",
    "OpenType",
    "ReadReceipt",
    "ReadStats",
    "UNKNOWN_USER_NAME",
    "build_user_key",
]
