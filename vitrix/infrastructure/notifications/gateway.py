"""Client for the FCM HTTP v1 push gateway."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from vitrix.config import Settings, get_settings
from vitrix.domain.exceptions import GatewayUnconfigured

from .credentials import AccessTokenProvider, ServiceAccountTokenProvider

logger = logging.getLogger(__name__)

INVALID_TOKEN_CODE = "invalid-registration-token"
UNREGISTERED_TOKEN_CODE = "registration-token-not-registered"
STALE_TOKEN_CODES = frozenset({INVALID_TOKEN_CODE, UNREGISTERED_TOKEN_CODE})

NETWORK_ERROR_CODE = "network-error"
AUTHENTICATION_ERROR_CODE = "authentication-error"
UNKNOWN_ERROR_CODE = "unknown-error"

_FCM_ERROR_CODES = {
    "UNREGISTERED": UNREGISTERED_TOKEN_CODE,
    "QUOTA_EXCEEDED": "message-rate-exceeded",
    "SENDER_ID_MISMATCH": "mismatched-credential",
    "UNAVAILABLE": "server-unavailable",
    "INTERNAL": "internal-error",
    "THIRD_PARTY_AUTH_ERROR": "third-party-auth-error",
    "NOT_FOUND": "not-found",
    "PERMISSION_DENIED": AUTHENTICATION_ERROR_CODE,
    "UNAUTHENTICATED": AUTHENTICATION_ERROR_CODE,
}
_FCM_ERROR_TYPE = "type.googleapis.com/google.firebase.fcm.v1.FcmError"


class PushGatewayError(Exception):
    """A single send was refused by, or never reached, the push gateway."""

    def __init__(
        self, code: str, message: str, *, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    @property
    def is_stale_token(self) -> bool:
        return self.code in STALE_TOKEN_CODES


class PushGateway(Protocol):
    """Send one fully built payload and return the provider message name.

    ``prepare`` runs once before a fan-out and raises ``GatewayUnconfigured``
    when the gateway cannot authenticate at all.
    """

    async def prepare(self) -> None: ...

    async def send(self, payload: dict[str, Any]) -> str: ...


class FcmPushGateway:
    """Post messages to ``/v1/projects/{project}/messages:send``."""

    def __init__(
        self,
        *,
        project_id: str,
        token_provider: AccessTokenProvider,
        base_url: str = "https://fcm.googleapis.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._project_id = project_id
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
        )

    @property
    def send_path(self) -> str:
        return f"/v1/projects/{self._project_id}/messages:send"

    async def prepare(self) -> None:
        await self._token_provider.get_token()

    async def send(self, payload: dict[str, Any]) -> str:
        access_token = await self._token_provider.get_token()
        try:
            response = await self._client.post(
                self.send_path,
                json=payload,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as exc:
            raise PushGatewayError(NETWORK_ERROR_CODE, str(exc) or type(exc).__name__) from exc

        if response.status_code >= 400:
            error = error_from_response(response)
            logger.warning(
                "Push gateway responded with status %s (%s): %s",
                response.status_code,
                error.code,
                error.message,
            )
            raise error

        try:
            body = response.json()
        except ValueError:
            body = {}
        return str(body.get("name", "")) if isinstance(body, dict) else ""

    async def aclose(self) -> None:
        await self._client.aclose()


def error_from_response(response: httpx.Response) -> PushGatewayError:
    """Translate an FCM error response into a :class:`PushGatewayError`."""

    try:
        payload = response.json()
    except ValueError:
        payload = {}

    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        error = {}

    message = str(error.get("message") or response.reason_phrase or "Push gateway error")
    status = str(error.get("status") or "")
    fcm_code = _extract_fcm_error_code(error.get("details")) or status

    if fcm_code == "INVALID_ARGUMENT":
        code = (
            INVALID_TOKEN_CODE
            if "registration token" in message.lower()
            else "invalid-argument"
        )
    elif fcm_code in _FCM_ERROR_CODES:
        code = _FCM_ERROR_CODES[fcm_code]
    elif response.status_code in (401, 403):
        code = AUTHENTICATION_ERROR_CODE
    else:
        code = UNKNOWN_ERROR_CODE

    return PushGatewayError(code, message, status_code=response.status_code)


def _extract_fcm_error_code(details: Any) -> str | None:
    if not isinstance(details, list):
        return None
    for item in details:
        if not isinstance(item, dict):
            continue
        if item.get("@type") == _FCM_ERROR_TYPE and item.get("errorCode"):
            return str(item["errorCode"])
    return None


def build_push_gateway(settings: Settings | None = None) -> FcmPushGateway:
    """Create the FCM gateway from settings or raise ``GatewayUnconfigured``."""

    settings = settings or get_settings()
    if not settings.push_configured:
        raise GatewayUnconfigured("FCM credentials are not configured")

    token_provider = ServiceAccountTokenProvider.from_service_account_json(
        settings.fcm_credentials_json
    )
    project_id = settings.fcm_project_id or token_provider.project_id
    if not project_id:
        raise GatewayUnconfigured("FCM project id is not configured")

    return FcmPushGateway(
        project_id=project_id,
        token_provider=token_provider,
        base_url=settings.fcm_base_url,
        timeout=settings.push_timeout_seconds,
    )


__all__ = [
    "AUTHENTICATION_ERROR_CODE",
    "FcmPushGateway",
    "INVALID_TOKEN_CODE",
    "NETWORK_ERROR_CODE",
    "PushGateway",
    "PushGatewayError",
    "STALE_TOKEN_CODES",
    "UNREGISTERED_TOKEN_CODE",
    "build_push_gateway",
    "error_from_response",
]
