"""Persistence helpers for device tokens."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from sqlalchemy.orm import Session

from vitrix.domain.entities import DeviceToken
from vitrix.infrastructure.models import DeviceTokenModel
from vitrix.utils import ensure_app_timezone, now_in_app_timezone


class DeviceTokenRepository:
    """Provide lookups and writes for :class:`DeviceToken` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_token(self, token: str) -> DeviceToken | None:
        model = self._get_model(token)
        return self._to_entity(model) if model else None

    def list_active_tokens_by_user(
        self, user_ids: Iterable[int]
    ) -> dict[int, list[str]]:
        ids = {int(user_id) for user_id in user_ids if user_id is not None}
        if not ids:
            return {}

        query = (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.user_id.in_(ids))
            .filter(DeviceTokenModel.active.is_(True))
            .order_by(DeviceTokenModel.id)
        )
        tokens: defaultdict[int, list[str]] = defaultdict(list)
        for model in query.all():
            tokens[model.user_id].append(model.token)
        return dict(tokens)

    def register(
        self, *, user_id: int, token: str, platform: str | None = None
    ) -> DeviceToken:
        """Create ``token`` for ``user_id`` or reassign and reactivate it."""

        model = self._get_model(token)
        if model is None:
            model = DeviceTokenModel(
                user_id=user_id,
                token=token,
                platform=platform,
                active=True,
                created_at=now_in_app_timezone(),
            )
        else:
            model.user_id = user_id
            model.active = True
            if platform:
                model.platform = platform
            model.updated_at = now_in_app_timezone()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def deactivate(self, token: str) -> int:
        """Mark every row holding ``token`` inactive and return the count."""

        updated = (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.token == token)
            .filter(DeviceTokenModel.active.is_(True))
            .update(
                {
                    DeviceTokenModel.active: False,
                    DeviceTokenModel.updated_at: now_in_app_timezone(),
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return updated

    def _get_model(self, token: str) -> DeviceTokenModel | None:
        return (
            self.session.query(DeviceTokenModel)
            .filter(DeviceTokenModel.token == token)
            .first()
        )

    @staticmethod
    def _to_entity(model: DeviceTokenModel) -> DeviceToken:
        return DeviceToken(
            id=model.id,
            user_id=model.user_id,
            token=model.token,
            platform=model.platform,
            active=bool(model.active),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["DeviceTokenRepository"]
