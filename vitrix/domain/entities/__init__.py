"""Domain entities exposed by the application."""

from .device_token import DEVICE_PLATFORMS, DeviceToken
from .group_message import (
    UNKNOWN_USER_NAME,
    DeliveryStatus,
    GroupMessage,
    OpenType,
    ReadReceipt,
    ReadStats,
    build_user_key,
)
from .notification import (
    DeliveryOverall,
    DeliveryReport,
    DispatchOutcome,
    NotificationRequest,
    NotificationTarget,
    OutcomeStatus,
    Recipient,
    TargetKind,
)
from .user import STAFF_ROLES, User

__all__ = [
    "DEVICE_PLATFORMS",
    "DeviceToken",
    "UNKNOWN_USER_NAME",
    "DeliveryStatus",
    "GroupMessage",
    "OpenType",
    "ReadReceipt",
    "ReadStats",
    "build_user_key",
    "DeliveryOverall",
    "DeliveryReport",
    "DispatchOutcome",
    "NotificationRequest",
    "NotificationTarget",
    "OutcomeStatus",
    "Recipient",
    "TargetKind",
    "STAFF_ROLES",
    "User",
]
