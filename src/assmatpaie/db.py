from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings
from .models import Base

logger = logging.getLogger(__name__)


def make_engine(database_url: str) -> Engine:
    """
    PostgreSQL in production; an in-memory SQLite URL gets a single shared
    connection so tests and local tooling see one database.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


engine = make_engine(settings.database_url)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def create_schema(bind: Engine | None = None) -> None:
    """Create tables without Alembic (SQLite dev databases, tests)."""
    target = bind or engine
    logger.info("creating schema on %s", target.url.render_as_string(hide_password=True))
    Base.metadata.create_all(target)


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Context manager for scripts and the report CLI.
    Commits on success, rolls back and re-raises on error.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
