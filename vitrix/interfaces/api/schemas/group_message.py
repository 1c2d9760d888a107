"""Schemas for group broadcasts and their read receipts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from vitrix.application.use_cases.notifications import (
    BroadcastResult,
    summarize_read_receipts,
)
from vitrix.domain.entities import GroupMessage

from .notification import DeliveryReportRead


class GroupMessageCreate(BaseModel):
    group_name: str = Field(..., max_length=100)
    title: str = Field(..., max_length=200)
    body: str
    message_type: str = Field(default="announcement", max_length=50)
    sent_by: str | None = Field(default=None, max_length=255)
    send_email: bool = True


class ReadReceiptRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_email: str | None
    user_id: int | None
    user_name: str
    is_read: bool
    read_timestamp: datetime | None
    notification_opened: bool
    notification_opened_timestamp: datetime | None
    email_opened: bool
    email_opened_timestamp: datetime | None


class DeliveryStatusRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sent_count: int
    notification_sent: int
    email_sent: int
    failed_count: int


class ReadStatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    read: int
    unread: int
    notification_opened: int
    email_opened: int
    total_recipients: int


class GroupMessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    body: str
    group_name: str | None
    message_type: str
    sent_by: str | None
    sent_at: datetime | None
    total_recipients: int
    delivery_status: DeliveryStatusRead
    read_receipts: list[ReadReceiptRead]
    read_stats: ReadStatsRead

    @classmethod
    def from_entity(cls, message: GroupMessage) -> "GroupMessageRead":
        return cls(
            id=message.id or "",
            title=message.title,
            body=message.body,
            group_name=message.group_name,
            message_type=message.message_type,
            sent_by=message.sent_by,
            sent_at=message.sent_at,
            total_recipients=message.total_recipients,
            delivery_status=DeliveryStatusRead.model_validate(message.delivery_status),
            read_receipts=[
                ReadReceiptRead.model_validate(receipt)
                for receipt in message.read_receipts
            ],
            read_stats=ReadStatsRead.model_validate(summarize_read_receipts(message)),
        )


class BroadcastRead(BaseModel):
    message: GroupMessageRead
    push: DeliveryReportRead
    email_sent: int
    email_failed: int

    @classmethod
    def from_result(cls, result: BroadcastResult) -> "BroadcastRead":
        email_sent = sum(1 for outcome in result.emails if outcome.success)
        return cls(
            message=GroupMessageRead.from_entity(result.message),
            push=DeliveryReportRead.from_report(result.push),
            email_sent=email_sent,
            email_failed=len(result.emails) - email_sent,
        )


__all__ = [
    "BroadcastRead",
    "DeliveryStatusRead",
    "GroupMessageCreate",
    "GroupMessageRead",
    "ReadReceiptRead",
    "ReadStatsRead",
]
