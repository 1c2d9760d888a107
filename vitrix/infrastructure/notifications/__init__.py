"""Push gateway helpers for the infrastructure layer."""

from .credentials import (
    AccessTokenProvider,
    ServiceAccountTokenProvider,
    StaticTokenProvider,
)
from .gateway import (
    INVALID_TOKEN_CODE,
    STALE_TOKEN_CODES,
    UNREGISTERED_TOKEN_CODE,
    FcmPushGateway,
    PushGateway,
    PushGatewayError,
    build_push_gateway,
    error_from_response,
)

__all__ = [
    "AccessTokenProvider",
    "ServiceAccountTokenProvider",
    "StaticTokenProvider",
    "INVALID_TOKEN_CODE",
    "STALE_TOKEN_CODES",
    "UNREGISTERED_TOKEN_CODE",
    "FcmPushGateway",
    "PushGateway",
    "PushGatewayError",
    "build_push_gateway",
    "error_from_response",
]
