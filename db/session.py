"""
db/session.py

Engine and session factory for the adaptation job store.

Nothing connects at import time: the engine is built on first use so the
catalog services and their tests run without a database.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url


@dataclass(frozen=True)
class EnginePoolSettings:
    """
    Connection pool tuning read from SQL_ECHO and DB_POOL_* variables.
    """

    echo: bool = False
    pool_recycle: int = 1800
    pool_size: int = 5
    max_overflow: int = 10

    @classmethod
    def from_env(cls) -> "EnginePoolSettings":
        defaults = cls()
        return cls(
            echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
            pool_recycle=_int_env("DB_POOL_RECYCLE", defaults.pool_recycle),
            pool_size=_int_env("DB_POOL_SIZE", defaults.pool_size),
            max_overflow=_int_env("DB_MAX_OVERFLOW", defaults.max_overflow),
        )


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, ""))
    except ValueError:
        return default


def create_db_engine(database_url: str | None = None, pool: EnginePoolSettings | None = None) -> Engine:
    """
    Build the job store engine. Only PostgreSQL URLs are accepted.
    """

    url = database_url or resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError("The adaptation job store requires a PostgreSQL URL.")

    settings = pool or EnginePoolSettings.from_env()
    return create_engine(
        url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_recycle=settings.pool_recycle,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def SessionLocal() -> Session:
    """
    Open a new job store session. Background job runs use one each.
    """

    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    return _session_factory()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding a request-scoped session.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
