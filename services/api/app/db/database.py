from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_ENGINE_URL: str | None = None
_SESSIONMAKER: sessionmaker | None = None


def database_url() -> str:
    # Local-only default. Production must provide DATABASE_URL explicitly.
    return os.getenv("DATABASE_URL", "sqlite+pysqlite:///.local/storefront.db")


def _connect_args(url: str) -> dict[str, Any]:
    if not url.startswith("sqlite"):
        return {}
    # Writers queue on the database lock instead of failing fast.
    busy_timeout = float(os.getenv("STOREFRONT_SQLITE_BUSY_TIMEOUT_SECONDS", "15"))
    return {"check_same_thread": False, "timeout": busy_timeout}


def get_engine() -> Engine:
    """Engine for the current DATABASE_URL, rebuilt when the URL changes."""

    global _ENGINE, _ENGINE_URL, _SESSIONMAKER

    url = database_url()
    if _ENGINE is not None and _ENGINE_URL == url:
        return _ENGINE

    _ENGINE = create_engine(url, pool_pre_ping=True, connect_args=_connect_args(url))
    _ENGINE_URL = url
    _SESSIONMAKER = sessionmaker(bind=_ENGINE, autoflush=False, expire_on_commit=True)
    return _ENGINE


def db_session() -> Session:
    get_engine()
    assert _SESSIONMAKER is not None
    return _SESSIONMAKER()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run a unit of work that commits when the block completes.

    Any error raised inside the block (or by the commit itself) rolls the whole unit back,
    so composite writes are never partially visible.
    """

    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
