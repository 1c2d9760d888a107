"""Concurrent push fan-out with per-token outcome tracking."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any

from anyio import to_thread

from vitrix.domain.entities import (
    DispatchOutcome,
    NotificationRequest,
    OutcomeStatus,
    Recipient,
)
from vitrix.infrastructure.database import SessionLocal
from vitrix.infrastructure.notifications import PushGateway, PushGatewayError
from vitrix.infrastructure.notifications.gateway import (
    STALE_TOKEN_CODES,
    UNKNOWN_ERROR_CODE,
)
from vitrix.infrastructure.repositories import DeviceTokenRepository

logger = logging.getLogger(__name__)

CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"
ANDROID_CHANNEL_ID = "vitrix_notifications"
DEFAULT_SOUND = "default"

TokenDeactivator = Callable[[str], Any]


def build_push_payload(token: str, request: NotificationRequest) -> dict[str, Any]:
    """Return the FCM v1 request body addressed to ``token``."""

    notification: dict[str, str] = {"title": request.title, "body": request.body}
    android_notification: dict[str, str] = {
        "channel_id": ANDROID_CHANNEL_ID,
        "sound": DEFAULT_SOUND,
    }
    if request.image_url:
        notification["image"] = request.image_url
        android_notification["image"] = request.image_url

    data = {str(key): _stringify(value) for key, value in (request.data or {}).items()}
    data["click_action"] = CLICK_ACTION

    return {
        "message": {
            "token": token,
            "notification": notification,
            "data": data,
            "android": {
                "priority": "high",
                "notification": android_notification,
            },
            "apns": {
                "payload": {
                    "aps": {
                        "alert": {"title": request.title, "body": request.body},
                        "sound": DEFAULT_SOUND,
                        "badge": 1,
                    }
                }
            },
        }
    }


def deactivate_token_in_database(token: str) -> int:
    """Flag ``token`` inactive using a dedicated session."""

    session = SessionLocal()
    try:
        return DeviceTokenRepository(session).deactivate(token)
    finally:
        session.close()


class NotificationDispatcher:
    """Send one push per device token and report every settled result."""

    def __init__(
        self,
        gateway: PushGateway,
        *,
        deactivate_token: TokenDeactivator = deactivate_token_in_database,
    ) -> None:
        self._gateway = gateway
        self._deactivate_token = deactivate_token
        self._pending: set[asyncio.Task[None]] = set()

    async def dispatch(
        self, recipients: Iterable[Recipient], request: NotificationRequest
    ) -> list[DispatchOutcome]:
        """Send ``request`` to every token of ``recipients``.

        Sends run concurrently and are all awaited; a failing token only ever
        produces its own ``Rejected`` outcome. A gateway that cannot
        authenticate raises ``GatewayUnconfigured`` before anything is sent.
        """

        deliveries = [
            (recipient.user_id, token)
            for recipient in sorted(recipients, key=lambda item: item.user_id)
            for token in sorted(recipient.device_tokens)
        ]
        if not deliveries:
            return []

        await self._gateway.prepare()
        logger.info("Sending push notification to %s token(s)", len(deliveries))
        results = await asyncio.gather(
            *(self._gateway.send(build_push_payload(token, request)) for _, token in deliveries),
            return_exceptions=True,
        )

        outcomes: list[DispatchOutcome] = []
        for (recipient_id, token), result in zip(deliveries, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                outcomes.append(self._rejected(token, recipient_id, result))
            else:
                outcomes.append(
                    DispatchOutcome(
                        token=token,
                        recipient_id=recipient_id,
                        status=OutcomeStatus.FULFILLED,
                        message_name=result or None,
                    )
                )
        return outcomes

    async def wait_for_pending(self) -> None:
        """Wait for scheduled token deactivations to finish."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _rejected(
        self, token: str, recipient_id: int, error: Exception
    ) -> DispatchOutcome:
        if isinstance(error, PushGatewayError):
            code, message = error.code, error.message
        else:
            code, message = UNKNOWN_ERROR_CODE, str(error) or type(error).__name__

        logger.error("Failed to send to token %s: [%s] %s", _mask(token), code, message)
        if code in STALE_TOKEN_CODES:
            self._schedule_deactivation(token)

        return DispatchOutcome(
            token=token,
            recipient_id=recipient_id,
            status=OutcomeStatus.REJECTED,
            error_code=code,
            error_message=message,
        )

    def _schedule_deactivation(self, token: str) -> None:
        task = asyncio.get_running_loop().create_task(self._deactivate(token))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deactivate(self, token: str) -> None:
        try:
            await to_thread.run_sync(self._deactivate_token, token)
        except Exception:
            logger.exception("Could not deactivate device token %s", _mask(token))
        else:
            logger.info("Deactivated stale device token %s", _mask(token))


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def _mask(token: str) -> str:
    return f"{token[:20]}..." if len(token) > 20 else token


__all__ = [
    "ANDROID_CHANNEL_ID",
    "CLICK_ACTION",
    "NotificationDispatcher",
    "TokenDeactivator",
    "build_push_payload",
    "deactivate_token_in_database",
]
