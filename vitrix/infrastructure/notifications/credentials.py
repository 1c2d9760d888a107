"""OAuth2 access tokens for the FCM HTTP v1 API."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import anyio
from anyio import to_thread
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from vitrix.domain.exceptions import GatewayUnconfigured

logger = logging.getLogger(__name__)

FCM_SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]


class AccessTokenProvider(Protocol):
    """Anything able to hand out a bearer token for the push gateway."""

    async def get_token(self) -> str: ...


class ServiceAccountTokenProvider:
    """Mint and cache access tokens from a Firebase service account key.

    Concurrent callers share one refresh: the first one to find the token
    expired refreshes it while the others wait on the lock and then reuse
    the fresh token.
    """

    def __init__(self, credentials: Any, *, project_id: str | None = None) -> None:
        self._credentials = credentials
        self._project_id = project_id
        self._lock = anyio.Lock()

    @classmethod
    def from_service_account_json(cls, credentials_json: str) -> "ServiceAccountTokenProvider":
        info = _load_credentials_info(credentials_json)
        try:
            credentials = service_account.Credentials.from_service_account_info(
                info, scopes=FCM_SCOPES
            )
        except (KeyError, ValueError) as exc:
            raise GatewayUnconfigured(
                f"Invalid FCM service account credentials: {exc}"
            ) from exc
        return cls(credentials, project_id=info.get("project_id"))

    @property
    def project_id(self) -> str | None:
        return self._project_id

    async def get_token(self) -> str:
        """Return a valid access token, refreshing it in a worker thread."""

        if self._credentials.valid:
            return self._credentials.token

        async with self._lock:
            if not self._credentials.valid:
                logger.debug("Refreshing FCM access token")
                try:
                    await to_thread.run_sync(self._credentials.refresh, Request())
                except (
                    google_auth_exceptions.RefreshError,
                    google_auth_exceptions.TransportError,
                ) as exc:
                    logger.error("Could not obtain an FCM access token: %s", exc)
                    raise GatewayUnconfigured(
                        f"Could not obtain an FCM access token: {exc}"
                    ) from exc
        return self._credentials.token


class StaticTokenProvider:
    """Provider returning a fixed token, used for emulators and tests."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def get_token(self) -> str:
        return self._token


def _load_credentials_info(credentials_json: str) -> dict[str, Any]:
    try:
        info = json.loads(credentials_json)
    except json.JSONDecodeError as exc:
        logger.error("Error while loading FCM credentials JSON: %s", exc)
        raise GatewayUnconfigured("Invalid FCM credentials JSON") from exc
    if not isinstance(info, dict):
        raise GatewayUnconfigured("FCM credentials JSON must be an object")
    return info


__all__ = [
    "AccessTokenProvider",
    "FCM_SCOPES",
    "ServiceAccountTokenProvider",
    "StaticTokenProvider",
]
