"""Email side of a broadcast: one personalised message per account."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from vitrix.domain.entities import User
from vitrix.infrastructure.email import send_group_message_email

logger = logging.getLogger(__name__)

NO_EMAIL_ADDRESS = "No email address"
DELIVERY_FAILED = "Email delivery failed"

EmailSender = Callable[[str, str, str, str], bool]


@dataclass(frozen=True)
class EmailOutcome:
    """Result of emailing one account."""

    user_id: int | None
    email: str | None
    success: bool
    error: str | None = None


def send_group_email(
    recipients: Iterable[User],
    title: str,
    message: str,
    *,
    sender: EmailSender = send_group_message_email,
) -> list[EmailOutcome]:
    """Email ``message`` to every account, greeting each one by name."""

    outcomes: list[EmailOutcome] = []
    for user in recipients:
        email = (user.email or "").strip()
        if not email:
            outcomes.append(
                EmailOutcome(user_id=user.id, email=None, success=False, error=NO_EMAIL_ADDRESS)
            )
            continue

        try:
            delivered = sender(email, user.name or email, title, message)
        except Exception as exc:
            logger.exception("Error sending broadcast email to %s", email)
            outcomes.append(
                EmailOutcome(user_id=user.id, email=email, success=False, error=str(exc))
            )
            continue

        outcomes.append(
            EmailOutcome(
                user_id=user.id,
                email=email,
                success=delivered,
                error=None if delivered else DELIVERY_FAILED,
            )
        )

    sent = sum(1 for outcome in outcomes if outcome.success)
    logger.info("Broadcast email sent to %s of %s account(s)", sent, len(outcomes))
    return outcomes


__all__ = ["EmailOutcome", "NO_EMAIL_ADDRESS", "send_group_email"]
