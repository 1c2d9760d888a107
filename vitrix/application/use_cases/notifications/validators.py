"""Common validation helpers for notification use cases."""

from vitrix.domain.exceptions import MissingFields


def ensure_required_text(**fields: str | None) -> dict[str, str]:
    """Return the stripped ``fields`` or raise ``MissingFields``."""

    cleaned: dict[str, str] = {}
    missing: list[str] = []
    for name, value in fields.items():
        text = (value or "").strip()
        if not text:
            missing.append(name)
        cleaned[name] = text

    if missing:
        raise MissingFields(f"Missing required fields: {', '.join(missing)}")
    return cleaned
