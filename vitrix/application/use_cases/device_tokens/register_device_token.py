"""Use case for registering a device token against an account."""

import logging

from sqlalchemy.orm import Session

from vitrix.domain.entities import DEVICE_PLATFORMS, DeviceToken
from vitrix.domain.exceptions import AccountNotFound, MissingFields, MissingIdentity
from vitrix.infrastructure.repositories import DeviceTokenRepository, UserRepository

logger = logging.getLogger(__name__)


def register_device_token(
    session: Session,
    *,
    token: str,
    user_id: int | None = None,
    email: str | None = None,
    platform: str | None = None,
) -> DeviceToken:
    """Store ``token`` for the account, reactivating it if already known."""

    token = (token or "").strip()
    if not token:
        raise MissingFields("Missing required fields: token")

    normalized_platform = (platform or "").strip().lower() or None
    if normalized_platform and normalized_platform not in DEVICE_PLATFORMS:
        raise ValueError(f"Unsupported device platform: {platform}")

    users = UserRepository(session)
    if user_id is not None:
        account = users.get(user_id)
    elif email and email.strip():
        account = users.get_by_email(email)
    else:
        raise MissingIdentity("Email or userId is required to register a token")

    if account is None or account.id is None:
        raise AccountNotFound(f"No account found for {email or user_id}")

    device_token = DeviceTokenRepository(session).register(
        user_id=account.id, token=token, platform=normalized_platform
    )
    logger.info("Registered %s device token for %s", normalized_platform or "unknown", account.email)
    return device_token


__all__ = ["register_device_token"]
