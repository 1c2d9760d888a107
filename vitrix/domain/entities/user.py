"""Domain entity representing a user account."""

from dataclasses import dataclass, field
from datetime import datetime

STAFF_ROLES = frozenset({"admin", "trainer", "coach"})


@dataclass
class User:
    """Core attributes describing a trainee or staff account."""

    id: int | None
    email: str
    name: str
    role: str = "trainee"
    group_names: list[str] = field(default_factory=list)
    is_active: bool = True
    created_at: datetime | None = None

    def is_staff(self) -> bool:
        """Return ``True`` for admins, trainers and coaches."""

        return (self.role or "").lower() in STAFF_ROLES

    def belongs_to(self, group_name: str) -> bool:
        """Return ``True`` when the user is a member of ``group_name``."""

        return group_name in (self.group_names or [])


__all__ = ["STAFF_ROLES", "User"]
