"""Use case for creating accounts."""

from sqlalchemy.orm import Session

from vitrix.domain.entities import User
from vitrix.infrastructure.repositories import UserRepository
from vitrix.utils import now_in_app_timezone

from .validators import ensure_valid_email, normalize_group_names


def create_user(
    session: Session,
    *,
    name: str,
    email: str,
    role: str = "trainee",
    group_names: list[str] | None = None,
) -> User:
    """Create a new account ensuring unique email addresses."""

    repository = UserRepository(session)
    normalized_email = ensure_valid_email(email)

    if repository.get_by_email(normalized_email):
        msg = f"An account with email {normalized_email} already exists"
        raise ValueError(msg)

    user = User(
        id=None,
        email=normalized_email,
        name=name.strip(),
        role=(role or "trainee").strip().lower(),
        group_names=normalize_group_names(group_names),
        is_active=True,
        created_at=now_in_app_timezone(),
    )
    return repository.create(user)
