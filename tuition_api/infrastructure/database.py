"""Database configuration and session management."""

from __future__ import annotations

import logging
from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from tuition_api.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


def create_database_engine(database_url: str) -> Engine:
    """Build an engine for ``database_url``.

    SQLite connections are shared with worker threads because repository
    calls are offloaded with ``anyio.to_thread``.
    """

    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


settings = get_settings()
engine = create_database_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def initialize_database(bind: Engine | None = None) -> None:
    """Ensure all ORM models have corresponding database tables."""

    from tuition_api.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=bind or engine, checkfirst=True)
    logger.info("Database schema ready")


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and close it afterwards."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
