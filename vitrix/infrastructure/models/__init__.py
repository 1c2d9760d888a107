"""ORM models used by the application infrastructure."""

from .device_token import DeviceTokenModel
from .group_message import GroupMessageModel, ReadReceiptModel
from .user import UserModel

__all__ = [
    "DeviceTokenModel",
    "GroupMessageModel",
    "ReadReceiptModel",
    "UserModel",
]
