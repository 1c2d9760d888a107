"""Shared fixtures: a throwaway SQLite database and a scripted push gateway."""

from __future__ import annotations

import os
from pathlib import Path

TEST_DB_PATH = Path(__file__).parent / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
for _name in ("FCM_CREDENTIALS_JSON", "FCM_PROJECT_ID", "SENDGRID_API_KEY", "SENDGRID_SENDER"):
    os.environ.pop(_name, None)

import pytest

from vitrix.config import reset_settings_cache

reset_settings_cache()


class FakeGateway:
    """Push gateway double that fails for the tokens listed in ``failures``."""

    def __init__(self) -> None:
        self.failures: dict[str, Exception] = {}
        self.sent: list[dict] = []
        self.prepare_error: Exception | None = None
        self.prepared = 0

    async def prepare(self) -> None:
        self.prepared += 1
        if self.prepare_error is not None:
            raise self.prepare_error

    async def send(self, payload: dict) -> str:
        self.sent.append(payload)
        token = payload["message"]["token"]
        if token in self.failures:
            raise self.failures[token]
        return f"projects/vitrix-test/messages/{len(self.sent)}"

    @property
    def tokens(self) -> list[str]:
        return [payload["message"]["token"] for payload in self.sent]


@pytest.fixture()
def database():
    """Create every table on the test database and drop them afterwards."""

    from vitrix.infrastructure import database as database_module

    database_module.Base.metadata.drop_all(bind=database_module.engine, checkfirst=True)
    database_module.initialize_database()
    yield database_module
    database_module.Base.metadata.drop_all(bind=database_module.engine, checkfirst=True)
    database_module.engine.dispose()
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()


@pytest.fixture()
def db_session(database):
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def add_account(database):
    """Return a helper storing an account and its device tokens."""

    from vitrix.domain.entities import User
    from vitrix.infrastructure.repositories import DeviceTokenRepository, UserRepository

    def _add_account(
        email: str,
        name: str,
        *,
        role: str = "trainee",
        groups: tuple[str, ...] = (),
        tokens: tuple[str, ...] = (),
        inactive_tokens: tuple[str, ...] = (),
        is_active: bool = True,
    ) -> User:
        session = database.SessionLocal()
        try:
            user = UserRepository(session).create(
                User(
                    id=None,
                    email=email,
                    name=name,
                    role=role,
                    group_names=list(groups),
                    is_active=is_active,
                )
            )
            tokens_repository = DeviceTokenRepository(session)
            for token in tokens:
                tokens_repository.register(user_id=user.id, token=token, platform="android")
            for token in inactive_tokens:
                tokens_repository.register(user_id=user.id, token=token, platform="ios")
                tokens_repository.deactivate(token)
            return user
        finally:
            session.close()

    return _add_account


@pytest.fixture()
def fake_gateway() -> FakeGateway:
    return FakeGateway()
