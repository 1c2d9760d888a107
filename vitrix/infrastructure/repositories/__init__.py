"""Repository implementations for infrastructure layer."""

from .device_token_repository import DeviceTokenRepository
from .group_message_repository import GroupMessageRepository
from .user_repository import UserRepository

__all__ = [
    "DeviceTokenRepository",
    "GroupMessageRepository",
    "UserRepository",
]
