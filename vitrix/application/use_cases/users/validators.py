"""Common validation helpers for account use cases."""

from collections.abc import Iterable


def ensure_valid_email(email: str) -> str:
    """Return a normalized email address or raise ``ValueError``."""

    normalized = (email or "").strip()
    if normalized.count("@") != 1:
        raise ValueError("A valid email address is required")

    local_part, domain = normalized.split("@", 1)
    if not local_part or "." not in domain:
        raise ValueError("A valid email address is required")

    return f"{local_part}@{domain.lower()}"


def normalize_group_names(group_names: Iterable[str] | None) -> list[str]:
    """Strip group names, dropping blanks and duplicates."""

    names = (name.strip() for name in group_names or [])
    return list(dict.fromkeys(name for name in names if name))
