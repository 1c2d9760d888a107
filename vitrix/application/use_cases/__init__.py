"""Aggregate application use cases."""

from .device_tokens import register_device_token
from .notifications import record_open, send_notification
from .users import create_user

__all__ = [
    "create_user",
    "record_open",
    "register_device_token",
    "send_notification",
]
