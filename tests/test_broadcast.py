"""Tests for composing and broadcasting group messages."""

from __future__ import annotations

import asyncio

import pytest

from vitrix.application.use_cases.notifications import (
    EmailOutcome,
    NotificationDispatcher,
    broadcast_group_message,
    compose_group_message,
)
from vitrix.application.use_cases.notifications import broadcast as broadcast_module
from vitrix.domain.exceptions import GatewayUnconfigured, MissingFields, NoRecipients
from vitrix.infrastructure.repositories import GroupMessageRepository


@pytest.fixture()
def squad(add_account):
    return [
        add_account("ana@example.com", "Ana", groups=("Morning Squad",), tokens=("ana-token",)),
        add_account("ben@example.com", "Ben", groups=("Morning Squad",)),
        add_account("coach@example.com", "Coach", role="coach", groups=("Morning Squad",), tokens=("coach-token",)),
    ]


def test_compose_creates_one_unread_receipt_per_trainee(squad, db_session):
    message = compose_group_message(
        db_session,
        group_name="Morning Squad",
        title="Schedule change",
        body="We start at 6:30 tomorrow",
        sent_by="coach@example.com",
    )

    assert message.id
    assert message.total_recipients == 2
    assert [r.user_email for r in message.read_receipts] == ["ana@example.com", "ben@example.com"]
    assert all(not r.is_read for r in message.read_receipts)
    assert message.read_receipts[0].user_name == "Ana"
    assert message.delivery_status.sent_count == 2


def test_compose_requires_fields_and_members(squad, db_session):
    with pytest.raises(MissingFields, match="title"):
        compose_group_message(db_session, group_name="Morning Squad", title=" ", body="x")
    with pytest.raises(NoRecipients):
        compose_group_message(db_session, group_name="Nobody", title="t", body="b")


def test_broadcast_pushes_emails_and_records_status(squad, db_session, fake_gateway, monkeypatch):
    emailed: list[str] = []

    def fake_send_group_email(recipients, title, message):
        emailed.extend(user.email for user in recipients)
        return [EmailOutcome(user_id=user.id, email=user.email, success=True) for user in recipients]

    monkeypatch.setattr(broadcast_module, "email_configured", lambda: True)
    monkeypatch.setattr(broadcast_module, "send_group_email", fake_send_group_email)
    dispatcher = NotificationDispatcher(fake_gateway)

    result = asyncio.run(
        broadcast_group_message(
            db_session,
            dispatcher=dispatcher,
            group_name="Morning Squad",
            title="Schedule change",
            body="We start at 6:30 tomorrow",
            message_type="reminder",
        )
    )

    assert fake_gateway.tokens == ["ana-token"]
    data = fake_gateway.sent[0]["message"]["data"]
    assert data == {
        "type": "group_message",
        "message_type": "reminder",
        "group_name": "Morning Squad",
        "message_id": result.message.id,
        "track_open": "true",
        "click_action": "FLUTTER_NOTIFICATION_CLICK",
    }
    assert emailed == ["ana@example.com", "ben@example.com"]
    assert result.push.as_dict() == {"requested": 1, "sent": 1, "failed": 0, "overall": "Success"}

    stored = GroupMessageRepository(db_session).get(result.message.id)
    assert stored.delivery_status.as_dict() == {
        "sent_count": 2,
        "notification_sent": 1,
        "email_sent": 2,
        "failed_count": 1,
    }


def test_broadcast_without_channels_still_stores_message(squad, db_session):
    result = asyncio.run(
        broadcast_group_message(
            db_session,
            dispatcher=None,
            group_name="Morning Squad",
            title="Hello",
            body="Welcome",
        )
    )

    assert result.emails == []
    assert result.push.sent == 0
    stored = GroupMessageRepository(db_session).get(result.message.id)
    assert stored.delivery_status.notification_sent == 0
    assert stored.delivery_status.email_sent == 0
    assert stored.delivery_status.failed_count == 4


def test_broadcast_survives_a_gateway_that_cannot_authenticate(squad, db_session, fake_gateway):
    fake_gateway.prepare_error = GatewayUnconfigured("Could not obtain an FCM access token")

    result = asyncio.run(
        broadcast_group_message(
            db_session,
            dispatcher=NotificationDispatcher(fake_gateway),
            group_name="Morning Squad",
            title="Hello",
            body="Welcome",
            send_email=False,
        )
    )

    assert fake_gateway.sent == []
    assert result.push.sent == 0
    stored = GroupMessageRepository(db_session).get(result.message.id)
    assert stored.total_recipients == 2
    assert stored.delivery_status.failed_count == 4
