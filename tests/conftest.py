"""Shared fixtures: a fresh SQLite database per test and user factories."""

import pytest

from user_directory_api.app.core.config import settings
from user_directory_api.app.core.db import get_connection, init_db
from user_directory_api.app.core.security import Requester
from user_directory_api.app.schemas.user import UserCreate
from user_directory_api.app.services.user_service import UserService


SUPER_ADMIN, ADMIN, USER = 1, 2, 3


@pytest.fixture
def db(tmp_path, monkeypatch):
    """Point the service at an empty, migrated database."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "directory.db"))
    init_db()
    return settings.database_url


def set_role(user_id: int, role_id: int) -> None:
    conn = get_connection()
    try:
        conn.execute("UPDATE users SET role_id = ? WHERE id = ?", (role_id, user_id))
        conn.commit()
    finally:
        conn.close()


@pytest.fixture
def make_user(db):
    """Return an async factory creating a user with the given role."""

    async def _make(login: str, role_id: int = USER, **fields):
        fields.setdefault("name", login.title())
        fields.setdefault("password", "secret123")
        user = await UserService.create_user(UserCreate(login=login, **fields))
        if role_id != user.role_id:
            set_role(user.id, role_id)
            user = await UserService.get_user_by_id(user.id)
        return user

    return _make


def as_requester(user) -> Requester:
    return Requester(user_id=user.id, role_id=user.role_id, login=user.login)


@pytest.fixture
def requester():
    return as_requester


@pytest.fixture
def promote(db):
    return set_role
