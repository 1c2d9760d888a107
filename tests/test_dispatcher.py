"""Tests for the concurrent push dispatcher."""

from __future__ import annotations

import asyncio

import pytest

from vitrix.application.use_cases.notifications import (
    NotificationDispatcher,
    aggregate_outcomes,
    build_push_payload,
)
from vitrix.domain.entities import (
    DeliveryOverall,
    NotificationRequest,
    NotificationTarget,
    OutcomeStatus,
    Recipient,
)
from vitrix.domain.exceptions import GatewayUnconfigured
from vitrix.infrastructure.notifications import (
    INVALID_TOKEN_CODE,
    UNREGISTERED_TOKEN_CODE,
    PushGatewayError,
)
from vitrix.infrastructure.repositories import DeviceTokenRepository


def _request(**overrides) -> NotificationRequest:
    values = {
        "target": NotificationTarget.everyone(),
        "title": "Leg day",
        "body": "Squats at 7am",
    }
    values.update(overrides)
    return NotificationRequest(**values)


def test_build_push_payload_shape():
    request = _request(
        image_url="https://cdn.example.com/squat.png",
        data={"message_id": "abc", "priority": 3, "track_open": True},
    )

    payload = build_push_payload("token-1", request)

    message = payload["message"]
    assert message["token"] == "token-1"
    assert message["notification"] == {
        "title": "Leg day",
        "body": "Squats at 7am",
        "image": "https://cdn.example.com/squat.png",
    }
    assert message["data"] == {
        "message_id": "abc",
        "priority": "3",
        "track_open": "true",
        "click_action": "FLUTTER_NOTIFICATION_CLICK",
    }
    assert message["android"] == {
        "priority": "high",
        "notification": {
            "channel_id": "vitrix_notifications",
            "sound": "default",
            "image": "https://cdn.example.com/squat.png",
        },
    }
    assert message["apns"]["payload"]["aps"] == {
        "alert": {"title": "Leg day", "body": "Squats at 7am"},
        "sound": "default",
        "badge": 1,
    }


def test_build_push_payload_without_image():
    payload = build_push_payload("token-1", _request())

    assert "image" not in payload["message"]["notification"]
    assert "image" not in payload["message"]["android"]["notification"]
    assert payload["message"]["data"] == {"click_action": "FLUTTER_NOTIFICATION_CLICK"}


def test_one_failing_token_does_not_affect_the_others(fake_gateway):
    recipients = {
        Recipient(user_id=index, email=f"user{index}@example.com", device_tokens=frozenset({f"token-{index}"}))
        for index in range(1, 6)
    }
    fake_gateway.failures["token-3"] = PushGatewayError("server-unavailable", "try later")
    deactivated: list[str] = []
    dispatcher = NotificationDispatcher(fake_gateway, deactivate_token=deactivated.append)

    outcomes = asyncio.run(dispatcher.dispatch(recipients, _request()))

    assert len(outcomes) == 5
    assert sorted(fake_gateway.tokens) == [f"token-{index}" for index in range(1, 6)]
    rejected = [outcome for outcome in outcomes if outcome.status is OutcomeStatus.REJECTED]
    assert [outcome.token for outcome in rejected] == ["token-3"]
    assert rejected[0].error_code == "server-unavailable"
    assert rejected[0].error_message == "try later"
    assert deactivated == []

    report = aggregate_outcomes(outcomes, len(recipients))
    assert (report.sent, report.failed, report.overall) == (4, 1, DeliveryOverall.PARTIAL)


def test_unexpected_exception_becomes_rejected_outcome(fake_gateway):
    recipient = Recipient(user_id=1, email="a@example.com", device_tokens=frozenset({"a", "b"}))
    fake_gateway.failures["a"] = RuntimeError("socket closed")
    dispatcher = NotificationDispatcher(fake_gateway, deactivate_token=lambda token: None)

    outcomes = asyncio.run(dispatcher.dispatch({recipient}, _request()))

    by_token = {outcome.token: outcome for outcome in outcomes}
    assert by_token["a"].status is OutcomeStatus.REJECTED
    assert by_token["a"].error_code == "unknown-error"
    assert by_token["a"].error_message == "socket closed"
    assert by_token["b"].fulfilled
    assert by_token["b"].message_name.startswith("projects/vitrix-test/messages/")


def test_dispatch_without_tokens_sends_nothing(fake_gateway):
    dispatcher = NotificationDispatcher(fake_gateway)

    assert asyncio.run(dispatcher.dispatch([], _request())) == []
    assert fake_gateway.sent == []
    assert fake_gateway.prepared == 0


def test_gateway_that_cannot_authenticate_sends_nothing(fake_gateway):
    recipient = Recipient(user_id=1, email="a@example.com", device_tokens=frozenset({"a", "b"}))
    fake_gateway.prepare_error = GatewayUnconfigured("Could not obtain an FCM access token")
    dispatcher = NotificationDispatcher(fake_gateway)

    with pytest.raises(GatewayUnconfigured):
        asyncio.run(dispatcher.dispatch({recipient}, _request()))

    assert fake_gateway.prepared == 1
    assert fake_gateway.sent == []


def test_unregistered_token_is_deactivated(fake_gateway, add_account, db_session):
    user = add_account("stale@example.com", "Stale", tokens=("fresh-token", "stale-token"))
    other = add_account("other@example.com", "Other", tokens=("other-token",))
    fake_gateway.failures["stale-token"] = PushGatewayError(
        UNREGISTERED_TOKEN_CODE, "Requested entity was not found."
    )
    fake_gateway.failures["other-token"] = PushGatewayError("invalid-argument", "bad payload")
    recipients = {
        Recipient(user_id=user.id, email=user.email, device_tokens=frozenset({"fresh-token", "stale-token"})),
        Recipient(user_id=other.id, email=other.email, device_tokens=frozenset({"other-token"})),
    }
    dispatcher = NotificationDispatcher(fake_gateway)

    async def scenario():
        outcomes = await dispatcher.dispatch(recipients, _request())
        await dispatcher.wait_for_pending()
        return outcomes

    outcomes = asyncio.run(scenario())

    assert len(outcomes) == 3
    db_session.expire_all()
    repository = DeviceTokenRepository(db_session)
    assert repository.get_by_token("stale-token").active is False
    assert repository.get_by_token("fresh-token").active is True
    assert repository.get_by_token("other-token").active is True


def test_invalid_token_is_deactivated_and_failures_are_swallowed(fake_gateway, caplog):
    recipient = Recipient(user_id=7, email="a@example.com", device_tokens=frozenset({"bad"}))
    fake_gateway.failures["bad"] = PushGatewayError(INVALID_TOKEN_CODE, "not a registration token")
    attempts: list[str] = []

    def failing_deactivation(token: str) -> None:
        attempts.append(token)
        raise RuntimeError("database is locked")

    dispatcher = NotificationDispatcher(fake_gateway, deactivate_token=failing_deactivation)

    async def scenario():
        outcomes = await dispatcher.dispatch([recipient], _request())
        await dispatcher.wait_for_pending()
        return outcomes

    with caplog.at_level("ERROR"):
        outcomes = asyncio.run(scenario())

    assert outcomes[0].error_code == INVALID_TOKEN_CODE
    assert attempts == ["bad"]
    assert "Could not deactivate device token" in caplog.text
