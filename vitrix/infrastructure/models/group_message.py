"""SQLAlchemy models for broadcast messages and their read receipts."""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from vitrix.infrastructure.database import Base
from vitrix.utils import now_in_app_timezone


def _new_message_id() -> str:
    return uuid4().hex


class GroupMessageModel(Base):
    """Database representation of a coach broadcast."""

    __tablename__ = "group_message"

    id = Column(String(64), primary_key=True, default=_new_message_id)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    group_name = Column(String(120), nullable=True, index=True)
    message_type = Column(String(30), nullable=False, default="announcement")
    sent_by = Column(String(120), nullable=True)
    sent_at = Column(
        DateTime(timezone=True), nullable=False, default=now_in_app_timezone
    )
    total_recipients = Column(Integer, nullable=False, default=0)
    delivery_status = Column(JSON, nullable=False, default=dict)

    read_receipts = relationship(
        "ReadReceiptModel",
        back_populates="message",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReadReceiptModel.position",
    )


class ReadReceiptModel(Base):
    """One row per (message, recipient) pair."""

    __tablename__ = "read_receipt"
    __table_args__ = (
        UniqueConstraint("message_id", "user_key", name="uq_read_receipt_message_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(
        String(64),
        ForeignKey("group_message.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    user_key = Column(String(160), nullable=False)
    user_email = Column(String(120), nullable=True)
    user_id = Column(Integer, nullable=True)
    user_name = Column(String(120), nullable=False, default="unknown")
    is_read = Column(Boolean, nullable=False, default=False)
    read_timestamp = Column(DateTime(timezone=True), nullable=True)
    notification_opened = Column(Boolean, nullable=False, default=False)
    notification_opened_timestamp = Column(DateTime(timezone=True), nullable=True)
    email_opened = Column(Boolean, nullable=False, default=False)
    email_opened_timestamp = Column(DateTime(timezone=True), nullable=True)

    message = relationship("GroupMessageModel", back_populates="read_receipts")


__all__ = ["GroupMessageModel", "ReadReceiptModel"]
