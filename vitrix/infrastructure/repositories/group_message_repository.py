"""Persistence helpers for broadcast messages and read receipts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from vitrix.domain.entities import (
    DeliveryStatus,
    GroupMessage,
    OpenType,
    ReadReceipt,
)
from vitrix.infrastructure.models import GroupMessageModel, ReadReceiptModel
from vitrix.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class GroupMessageRepository:
    """Provide CRUD operations for :class:`GroupMessage` objects.

    Receipts are stored one row per recipient so that an open only ever
    touches its own row. Writes for one recipient therefore never overwrite
    the receipts of another recipient of the same message.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, message_id: str) -> GroupMessage | None:
        model = (
            self.session.query(GroupMessageModel)
            .options(selectinload(GroupMessageModel.read_receipts))
            .filter(GroupMessageModel.id == message_id)
            .first()
        )
        return self._to_entity(model) if model else None

    def exists(self, message_id: str) -> bool:
        return (
            self.session.query(GroupMessageModel.id)
            .filter(GroupMessageModel.id == message_id)
            .first()
            is not None
        )

    def create(self, message: GroupMessage) -> GroupMessage:
        model = GroupMessageModel(
            title=message.title,
            body=message.body,
            group_name=message.group_name,
            message_type=message.message_type,
            sent_by=message.sent_by,
            sent_at=ensure_app_naive_datetime(message.sent_at or now_in_app_timezone()),
            total_recipients=message.total_recipients or len(message.read_receipts),
            delivery_status=message.delivery_status.as_dict(),
        )
        if message.id:
            model.id = message.id
        for position, receipt in enumerate(message.read_receipts):
            receipt_model = ReadReceiptModel(position=position)
            self._apply_receipt_to_model(receipt_model, receipt)
            model.read_receipts.append(receipt_model)
        self.session.add(model)
        self.session.commit()
        return self.get(model.id)

    def update_delivery_status(self, message_id: str, status: DeliveryStatus) -> None:
        model = self.session.get(GroupMessageModel, message_id)
        if model is None:
            msg = f"Message with id {message_id} not found"
            raise ValueError(msg)
        model.delivery_status = status.as_dict()
        self.session.add(model)
        self.session.commit()

    def mark_opened(
        self,
        message_id: str,
        *,
        email: str | None,
        user_id: int | None,
        open_type: OpenType,
        now: datetime,
    ) -> int:
        """Apply an open to the matching receipt in a single ``UPDATE``.

        Timestamps are only written where they are still ``NULL`` so the
        statement is idempotent and safe to race with opens of another kind.
        Returns the number of receipts updated.
        """

        stamp = ensure_app_naive_datetime(now)
        query = self.session.query(ReadReceiptModel).filter(
            ReadReceiptModel.message_id == message_id
        )
        if email:
            query = query.filter(
                func.lower(ReadReceiptModel.user_email) == email.strip().lower()
            )
        else:
            query = query.filter(ReadReceiptModel.user_id == user_id)

        values: dict[object, object] = {
            ReadReceiptModel.is_read: True,
            ReadReceiptModel.read_timestamp: func.coalesce(
                ReadReceiptModel.read_timestamp, stamp
            ),
        }
        if open_type is OpenType.NOTIFICATION:
            values[ReadReceiptModel.notification_opened] = True
            values[ReadReceiptModel.notification_opened_timestamp] = func.coalesce(
                ReadReceiptModel.notification_opened_timestamp, stamp
            )
        else:
            values[ReadReceiptModel.email_opened] = True
            values[ReadReceiptModel.email_opened_timestamp] = func.coalesce(
                ReadReceiptModel.email_opened_timestamp, stamp
            )

        try:
            updated = query.update(values, synchronize_session=False)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return updated

    def append_receipt(self, message_id: str, receipt: ReadReceipt) -> None:
        """Insert ``receipt`` at the end of the message's receipt list.

        Raises :class:`sqlalchemy.exc.IntegrityError` when a receipt with the
        same identity was inserted concurrently.
        """

        next_position = (
            self.session.query(func.max(ReadReceiptModel.position))
            .filter(ReadReceiptModel.message_id == message_id)
            .scalar()
        )
        model = ReadReceiptModel(
            message_id=message_id,
            position=0 if next_position is None else next_position + 1,
        )
        self._apply_receipt_to_model(model, receipt)
        self.session.add(model)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    @staticmethod
    def _apply_receipt_to_model(model: ReadReceiptModel, receipt: ReadReceipt) -> None:
        model.user_key = receipt.user_key
        model.user_email = receipt.user_email
        model.user_id = receipt.user_id
        model.user_name = receipt.user_name
        model.is_read = receipt.is_read
        model.read_timestamp = ensure_app_naive_datetime(receipt.read_timestamp)
        model.notification_opened = receipt.notification_opened
        model.notification_opened_timestamp = ensure_app_naive_datetime(
            receipt.notification_opened_timestamp
        )
        model.email_opened = receipt.email_opened
        model.email_opened_timestamp = ensure_app_naive_datetime(
            receipt.email_opened_timestamp
        )

    @staticmethod
    def _receipt_to_entity(model: ReadReceiptModel) -> ReadReceipt:
        return ReadReceipt(
            user_email=model.user_email,
            user_id=model.user_id,
            user_name=model.user_name,
            is_read=bool(model.is_read),
            read_timestamp=ensure_app_timezone(model.read_timestamp),
            notification_opened=bool(model.notification_opened),
            notification_opened_timestamp=ensure_app_timezone(
                model.notification_opened_timestamp
            ),
            email_opened=bool(model.email_opened),
            email_opened_timestamp=ensure_app_timezone(model.email_opened_timestamp),
        )

    @classmethod
    def _to_entity(cls, model: GroupMessageModel) -> GroupMessage:
        status = model.delivery_status or {}
        return GroupMessage(
            id=model.id,
            title=model.title,
            body=model.body,
            group_name=model.group_name,
            message_type=model.message_type,
            sent_by=model.sent_by,
            sent_at=ensure_app_timezone(model.sent_at),
            total_recipients=model.total_recipients or 0,
            delivery_status=DeliveryStatus(
                sent_count=int(status.get("sent_count", 0)),
                notification_sent=int(status.get("notification_sent", 0)),
                email_sent=int(status.get("email_sent", 0)),
                failed_count=int(status.get("failed_count", 0)),
            ),
            read_receipts=[
                cls._receipt_to_entity(receipt) for receipt in model.read_receipts
            ],
        )


__all__ = ["GroupMessageRepository"]
