"""Expand a notification target into concrete recipients."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from vitrix.domain.entities import NotificationTarget, Recipient, TargetKind, User
from vitrix.domain.exceptions import InvalidTarget, NoRecipients
from vitrix.infrastructure.repositories import DeviceTokenRepository, UserRepository

logger = logging.getLogger(__name__)


def resolve_recipients(session: Session, target: NotificationTarget) -> set[Recipient]:
    """Return the deduplicated recipients reachable through ``target``.

    Group and "all" targets skip staff accounts. Accounts without an active
    device token are dropped, and ``NoRecipients`` is raised when nobody is
    left to notify.
    """

    accounts = _accounts_for_target(session, target)
    recipients = _attach_active_tokens(session, accounts)
    if not recipients:
        raise NoRecipients(f"No active recipients found for {target.describe()}")

    logger.info(
        "Resolved %s recipient(s) for %s", len(recipients), target.describe()
    )
    return recipients


def _accounts_for_target(session: Session, target: NotificationTarget) -> list[User]:
    repository = UserRepository(session)

    if target.kind is TargetKind.INDIVIDUAL:
        email = (target.email or "").strip()
        if not email:
            raise InvalidTarget("An individual target requires an email address")
        user = repository.get_by_email(email)
        if user is None:
            raise NoRecipients(f"No account found with email: {email}")
        return [user]

    if target.kind is TargetKind.GROUP:
        group_name = (target.group_name or "").strip()
        if not group_name:
            raise InvalidTarget("A group target requires a group name")
        members = repository.list_by_group(group_name)
        return [user for user in members if not user.is_staff()]

    if target.kind is TargetKind.ALL:
        return [user for user in repository.list_active() if not user.is_staff()]

    raise InvalidTarget(f"Unsupported notification target: {target.kind!r}")


def _attach_active_tokens(session: Session, accounts: Iterable[User]) -> set[Recipient]:
    unique: dict[int, User] = {}
    for account in accounts:
        if account.id is not None:
            unique.setdefault(account.id, account)

    tokens_by_user = DeviceTokenRepository(session).list_active_tokens_by_user(unique)

    recipients: set[Recipient] = set()
    for user_id, account in unique.items():
        tokens = tokens_by_user.get(user_id)
        if not tokens:
            logger.debug("Skipping %s: no active device tokens", account.email)
            continue
        recipients.add(
            Recipient(
                user_id=user_id,
                email=account.email,
                name=account.name,
                device_tokens=frozenset(tokens),
            )
        )
    return recipients


__all__ = ["resolve_recipients"]
