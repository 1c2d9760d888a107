"""Tests for audience resolution and the Morning Squad fan-out."""

from __future__ import annotations

import asyncio
import importlib
import threading

import pytest

from vitrix.application.use_cases.notifications import (
    NotificationDispatcher,
    aggregate_outcomes,
    broadcast_group_message,
    resolve_recipients,
    send_notification,
)
from vitrix.domain.entities import (
    NotificationRequest,
    NotificationTarget,
    OutcomeStatus,
    TargetKind,
)
from vitrix.domain.exceptions import InvalidTarget, NoRecipients
from vitrix.infrastructure.notifications import INVALID_TOKEN_CODE, PushGatewayError
from vitrix.infrastructure.repositories import DeviceTokenRepository, UserRepository

send_notification_module = importlib.import_module(
    "vitrix.application.use_cases.notifications.send_notification"
)


def test_group_excludes_staff_and_members_without_tokens(add_account, db_session):
    add_account("ana@example.com", "Ana", groups=("Morning Squad",), tokens=("ana-1", "ana-2"))
    add_account("ben@example.com", "Ben", groups=("Morning Squad",), inactive_tokens=("ben-old",))
    add_account("coach@example.com", "Coach", role="Coach", groups=("Morning Squad",), tokens=("coach-1",))
    add_account("eve@example.com", "Eve", groups=("Evening",), tokens=("eve-1",))

    recipients = resolve_recipients(db_session, NotificationTarget.group("Morning Squad"))

    assert {recipient.email for recipient in recipients} == {"ana@example.com"}
    (ana,) = recipients
    assert ana.device_tokens == frozenset({"ana-1", "ana-2"})


def test_all_targets_every_active_trainee(add_account, db_session):
    add_account("ana@example.com", "Ana", groups=("A",), tokens=("ana-1",))
    add_account("ben@example.com", "Ben", tokens=("ben-1",))
    add_account("gone@example.com", "Gone", tokens=("gone-1",), is_active=False)
    add_account("admin@example.com", "Admin", role="admin", tokens=("admin-1",))

    recipients = resolve_recipients(db_session, NotificationTarget.everyone())

    assert {recipient.email for recipient in recipients} == {
        "ana@example.com",
        "ben@example.com",
    }


def test_individual_lookup_is_case_insensitive_and_allows_staff(add_account, db_session):
    add_account("Coach@Example.com", "Coach", role="coach", tokens=("coach-1",))

    recipients = resolve_recipients(
        db_session, NotificationTarget.individual("coach@example.COM")
    )

    assert [recipient.name for recipient in recipients] == ["Coach"]


def test_unknown_individual_raises_no_recipients(database, db_session):
    with pytest.raises(NoRecipients, match="No account found with email: nobody@example.com"):
        resolve_recipients(db_session, NotificationTarget.individual("nobody@example.com"))


def test_individual_without_active_tokens_raises_no_recipients(add_account, db_session):
    add_account("ana@example.com", "Ana", inactive_tokens=("ana-old",))

    with pytest.raises(NoRecipients):
        resolve_recipients(db_session, NotificationTarget.individual("ana@example.com"))


def test_empty_group_raises_no_recipients(database, db_session):
    with pytest.raises(NoRecipients, match="group: Ghosts"):
        resolve_recipients(db_session, NotificationTarget.group("Ghosts"))


@pytest.mark.parametrize(
    "target",
    [
        NotificationTarget(kind=TargetKind.INDIVIDUAL, email="  "),
        NotificationTarget(kind=TargetKind.GROUP, group_name=""),
    ],
)
def test_incomplete_target_is_invalid(database, db_session, target):
    with pytest.raises(InvalidTarget):
        resolve_recipients(db_session, target)


def test_morning_squad_scenario(add_account, db_session, fake_gateway):
    add_account("ana@example.com", "Ana", groups=("Morning Squad",))
    add_account("ben@example.com", "Ben", groups=("Morning Squad",), tokens=("ben-token",))
    add_account("cas@example.com", "Cas", groups=("Morning Squad",), tokens=("cas-token",))
    fake_gateway.failures["cas-token"] = PushGatewayError(
        INVALID_TOKEN_CODE, "The registration token is not a valid FCM registration token"
    )
    target = NotificationTarget.group("Morning Squad")
    request = NotificationRequest(target=target, title="6am run", body="Meet at the park")
    dispatcher = NotificationDispatcher(fake_gateway)

    recipients = resolve_recipients(db_session, target)
    assert len(recipients) == 2

    async def scenario():
        outcomes = await dispatcher.dispatch(recipients, request)
        await dispatcher.wait_for_pending()
        return outcomes

    outcomes = asyncio.run(scenario())

    assert len(outcomes) == 2
    statuses = {outcome.token: outcome.status for outcome in outcomes}
    assert statuses == {
        "ben-token": OutcomeStatus.FULFILLED,
        "cas-token": OutcomeStatus.REJECTED,
    }
    rejected = next(outcome for outcome in outcomes if not outcome.fulfilled)
    assert rejected.error_code == INVALID_TOKEN_CODE

    report = aggregate_outcomes(outcomes, len(recipients))
    assert report.as_dict() == {
        "requested": 2,
        "sent": 1,
        "failed": 1,
        "overall": "Partial",
    }

    db_session.expire_all()
    assert DeviceTokenRepository(db_session).get_by_token("cas-token").active is False
    assert DeviceTokenRepository(db_session).get_by_token("ben-token").active is True


def test_send_notification_resolves_off_the_event_loop(add_account, db_session, fake_gateway, monkeypatch):
    add_account("ana@example.com", "Ana", tokens=("ana-token",))
    lookup_threads: list[int] = []

    def recording_resolve(session, target):
        lookup_threads.append(threading.get_ident())
        return resolve_recipients(session, target)

    monkeypatch.setattr(send_notification_module, "resolve_recipients", recording_resolve)
    request = NotificationRequest(target=NotificationTarget.everyone(), title="6am run", body="Park")

    async def scenario():
        report = await send_notification(db_session, NotificationDispatcher(fake_gateway), request)
        return report, threading.get_ident()

    report, loop_thread = asyncio.run(scenario())

    assert report.sent == 1
    assert len(lookup_threads) == 1
    assert lookup_threads[0] != loop_thread


def test_broadcast_touches_the_database_off_the_event_loop(add_account, db_session, fake_gateway, monkeypatch):
    add_account("ana@example.com", "Ana", groups=("Morning Squad",), tokens=("ana-token",))
    lookup_threads: list[int] = []
    original_list_by_group = UserRepository.list_by_group

    def recording_list_by_group(self, group_name):
        lookup_threads.append(threading.get_ident())
        return original_list_by_group(self, group_name)

    monkeypatch.setattr(UserRepository, "list_by_group", recording_list_by_group)

    async def scenario():
        await broadcast_group_message(
            db_session,
            dispatcher=NotificationDispatcher(fake_gateway),
            group_name="Morning Squad",
            title="Hello",
            body="Welcome",
            send_email=False,
        )
        return threading.get_ident()

    loop_thread = asyncio.run(scenario())

    assert fake_gateway.tokens == ["ana-token"]
    assert lookup_threads
    assert loop_thread not in lookup_threads
