"""Domain entities describing a push notification fan-out."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class TargetKind(str, Enum):
    """Kinds of audience a notification can be addressed to."""

    INDIVIDUAL = "individual"
    GROUP = "group"
    ALL = "all"


class OutcomeStatus(str, Enum):
    """Settled state of a single token send."""

    FULFILLED = "Fulfilled"
    REJECTED = "Rejected"


class DeliveryOverall(str, Enum):
    """Overall classification of a delivery report."""

    SUCCESS = "Success"
    PARTIAL = "Partial"
    FAILURE = "Failure"


@dataclass(frozen=True)
class NotificationTarget:
    """Audience selector: one email, one named group or everybody."""

    kind: TargetKind
    email: str | None = None
    group_name: str | None = None

    @classmethod
    def individual(cls, email: str) -> "NotificationTarget":
        return cls(kind=TargetKind.INDIVIDUAL, email=email)

    @classmethod
    def group(cls, name: str) -> "NotificationTarget":
        return cls(kind=TargetKind.GROUP, group_name=name)

    @classmethod
    def everyone(cls) -> "NotificationTarget":
        return cls(kind=TargetKind.ALL)

    def describe(self) -> str:
        """Return a short human readable label used in logs and errors."""

        if self.kind is TargetKind.INDIVIDUAL:
            return f"user: {self.email}"
        if self.kind is TargetKind.GROUP:
            return f"group: {self.group_name}"
        return "all users"


@dataclass(frozen=True)
class Recipient:
    """An account together with its currently active device tokens."""

    user_id: int
    email: str
    name: str = ""
    device_tokens: frozenset[str] = field(default_factory=frozenset)


@dataclass
class NotificationRequest:
    """Content of a notification and the audience it is meant for."""

    target: NotificationTarget
    title: str
    body: str
    image_url: str | None = None
    data: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of sending to one device token of one recipient."""

    token: str
    recipient_id: int
    status: OutcomeStatus
    error_code: str | None = None
    error_message: str | None = None
    message_name: str | None = None

    @property
    def fulfilled(self) -> bool:
        return self.status is OutcomeStatus.FULFILLED


@dataclass(frozen=True)
class DeliveryReport:
    """Summary returned to the caller once every send has settled."""

    requested: int
    sent: int
    failed: int
    overall: DeliveryOverall

    def as_dict(self) -> dict[str, object]:
        return {
            "requested": self.requested,
            "sent": self.sent,
            "failed": self.failed,
            "overall": self.overall.value,
        }


__all__ = [
    "DeliveryOverall",
    "DeliveryReport",
    "DispatchOutcome",
    "NotificationRequest",
    "NotificationTarget",
    "OutcomeStatus",
    "Recipient",
    "TargetKind",
]
