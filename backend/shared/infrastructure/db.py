"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns with synchronous sessions; async callers
push session work onto a worker thread (see rest_api.repositories.store).
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from shared.config.settings import DATABASE_URL


def _engine_kwargs(url: str) -> dict[str, Any]:
    """
    Pool settings per backend.

    SQLite connections are shared with worker threads, and an in-memory
    database only exists for the lifetime of its single connection.
    """
    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": 10,
        "max_overflow": 10,
        "pool_timeout": 30,  # Wait max 30s for connection from pool
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
    }


def build_engine(url: str = DATABASE_URL, echo: bool = False) -> Engine:
    """Create an engine with settings suited to ``url``."""
    return create_engine(url, echo=echo, **_engine_kwargs(url))


def build_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False)


engine = build_engine()

# Session factory
SessionLocal = build_session_factory(engine)


@contextmanager
def get_db_context(
    factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside of FastAPI.

    Usage:
        with get_db_context() as db:
            db.scalars(select(Task)).all()
    """
    db = (factory or SessionLocal)()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """
    Commit, rolling back on failure.

    Raises the original exception after rolling back.
    """
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
