"""Pydantic models describing notification payloads."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from vitrix.domain.entities import (
    DeliveryReport,
    NotificationRequest,
    NotificationTarget,
    OpenType,
)


class IndividualTarget(BaseModel):
    type: Literal["individual"]
    email: EmailStr

    def to_domain(self) -> NotificationTarget:
        return NotificationTarget.individual(str(self.email))


class GroupTarget(BaseModel):
    type: Literal["group"]
    name: str

    def to_domain(self) -> NotificationTarget:
        return NotificationTarget.group(self.name)


class AllTarget(BaseModel):
    type: Literal["all"]

    def to_domain(self) -> NotificationTarget:
        return NotificationTarget.everyone()


TargetIn = Annotated[
    Union[IndividualTarget, GroupTarget, AllTarget], Field(discriminator="type")
]


class NotifyRequest(BaseModel):
    """Payload used to push a notification to a user, a group or everybody."""

    target: TargetIn
    title: str
    body: str
    image_url: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("target", mode="before")
    @classmethod
    def _accept_bare_all(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().lower() == "all":
            return {"type": "all"}
        return value

    def to_domain(self) -> NotificationRequest:
        return NotificationRequest(
            target=self.target.to_domain(),
            title=self.title,
            body=self.body,
            image_url=self.image_url or None,
            data=dict(self.data),
        )


class DeliveryReportRead(BaseModel):
    """Summary of a notification fan-out."""

    requested: int
    sent: int
    failed: int
    overall: str

    @classmethod
    def from_report(cls, report: DeliveryReport) -> "DeliveryReportRead":
        return cls(**report.as_dict())


class NotificationOpenRequest(BaseModel):
    """Open event reported by the mobile app or an email tracking link."""

    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    user_id: int | None = Field(default=None, alias="userId")
    open_type: OpenType = Field(default=OpenType.NOTIFICATION, alias="openType")


class NotificationOpenResponse(BaseModel):
    success: bool = True


__all__ = [
    "AllTarget",
    "DeliveryReportRead",
    "GroupTarget",
    "IndividualTarget",
    "NotificationOpenRequest",
    "NotificationOpenResponse",
    "NotifyRequest",
]
