"""Use cases for managing push device tokens."""

from .register_device_token import register_device_token

__all__ = ["register_device_token"]
