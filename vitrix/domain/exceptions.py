"""Errors raised by the notification use cases."""

from __future__ import annotations


class InvalidTarget(ValueError):
    """The audience selector names neither a user, a group nor everybody."""


class MissingFields(ValueError):
    """A required notification field (title, body, group) is empty."""


class MissingIdentity(ValueError):
    """An open event or token registration names neither an email nor a user id."""


class NoRecipients(ValueError):
    """A valid target resolved to zero active recipients."""


class MessageNotFound(ValueError):
    """The broadcast message referenced by an open event does not exist."""


class AccountNotFound(ValueError):
    """No account matches the given email or id."""


class GatewayUnconfigured(RuntimeError):
    """The push gateway credential is missing or unusable."""


__all__ = [
    "AccountNotFound",
    "GatewayUnconfigured",
    "InvalidTarget",
    "MessageNotFound",
    "MissingFields",
    "MissingIdentity",
    "NoRecipients",
]
