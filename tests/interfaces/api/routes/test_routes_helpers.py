"""Tests for helper utilities shared by the API routes."""

import pytest

from vitrix.domain.exceptions import (
    AccountNotFound,
    GatewayUnconfigured,
    InvalidTarget,
    MessageNotFound,
    MissingFields,
    MissingIdentity,
    NoRecipients,
)
from vitrix.interfaces.api.routes_helpers import domain_error_to_http


@pytest.mark.parametrize(
    ("error", "expected_status"),
    [
        (InvalidTarget("bad target"), 400),
        (MissingFields("Missing required fields: title"), 400),
        (MissingIdentity("Email or userId is required"), 400),
        (NoRecipients("No active recipients found for all users"), 400),
        (ValueError("Unsupported device platform: blackberry"), 400),
        (MessageNotFound("Message with id x not found"), 404),
        (AccountNotFound("No account found for x"), 404),
        (GatewayUnconfigured("FCM credentials are not configured"), 500),
    ],
)
def test_domain_error_to_http(error, expected_status):
    """Use case failures must map onto the documented HTTP statuses."""

    http_error = domain_error_to_http(error)

    assert http_error.status_code == expected_status
    assert http_error.detail == str(error)
