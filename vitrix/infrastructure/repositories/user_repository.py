"""Persistence layer for user accounts."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from vitrix.domain.entities import User
from vitrix.infrastructure.models import UserModel
from vitrix.utils import ensure_app_timezone


class UserRepository:
    """Provide lookups and writes for :class:`User` accounts."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_active(self) -> Sequence[User]:
        query = (
            self.session.query(UserModel)
            .filter(UserModel.is_active.is_(True))
            .order_by(UserModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def list_by_group(self, group_name: str) -> Sequence[User]:
        # Membership lives in a JSON list, so it is matched in Python to stay
        # portable across database backends.
        return [user for user in self.list_active() if user.belongs_to(group_name)]

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> User | None:
        normalized = email.strip().lower()
        if not normalized:
            return None
        model = (
            self.session.query(UserModel)
            .filter(func.lower(UserModel.email) == normalized)
            .first()
        )
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel()
        self._apply_entity_to_model(model, user)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _apply_entity_to_model(model: UserModel, user: User) -> None:
        model.email = user.email.strip()
        model.name = user.name
        model.role = (user.role or "trainee").lower()
        model.group_names = list(dict.fromkeys(user.group_names or []))
        model.is_active = user.is_active

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            email=model.email,
            name=model.name or "",
            role=model.role or "trainee",
            group_names=list(model.group_names or []),
            is_active=bool(model.is_active),
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["UserRepository"]
