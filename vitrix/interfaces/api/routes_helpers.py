"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from vitrix.domain.exceptions import (
    AccountNotFound,
    GatewayUnconfigured,
    MessageNotFound,
)


def domain_error_to_http(exc: Exception) -> HTTPException:
    """Return the HTTP error reported to clients for a use case failure."""

    if isinstance(exc, (MessageNotFound, AccountNotFound)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    if isinstance(exc, GatewayUnconfigured):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        )

    # InvalidTarget, MissingFields, MissingIdentity, NoRecipients and any
    # other ValueError are problems with the request itself.
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
