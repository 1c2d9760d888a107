"""Domain entity representing a push delivery device token."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

DEVICE_PLATFORMS = ("android", "ios", "web")


@dataclass
class DeviceToken:
    """Opaque identifier the push gateway uses to address one app install."""

    id: int | None
    user_id: int
    token: str
    platform: str | None = None
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = ["DEVICE_PLATFORMS", "DeviceToken"]
