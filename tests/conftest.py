"""Shared fixtures: a throwaway SQLite database and in-memory channel fakes."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "tuition_api_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["APP_TIMEZONE"] = "UTC"

from tuition_api.domain.entities import Recipient  # noqa: E402
from tuition_api.infrastructure import database  # noqa: E402
from tuition_api.infrastructure.repositories import UserRepository  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def session_factory():
    """Recreate every table and return the session factory bound to it."""

    from tuition_api.infrastructure import models  # noqa: F401

    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)
    database.Base.metadata.create_all(bind=database.engine)
    yield database.SessionLocal
    database.Base.metadata.drop_all(bind=database.engine, checkfirst=True)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def add_user(db_session):
    """Insert a directory user; keyword arguments override the defaults."""

    def _add_user(user_id: str, role: str = "teacher", **fields) -> Recipient:
        return UserRepository(db_session).create(Recipient(id=user_id, role=role, **fields))

    return _add_user
