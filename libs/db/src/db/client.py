"""Centralized SQLAlchemy engine/session helpers for the workspace.

Usage
-----
from db.client import session_scope

with session_scope(database_url="sqlite:///ledger.db") as s:
    s.execute(...)

The engine is process-wide. Tests that need a fresh database per case call
``dispose_engine()`` between cases.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return url


def _engine_kwargs(url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if make_url(url).get_backend_name() == "sqlite":
        # Reminder inserts may run on a timer thread.
        kwargs["connect_args"] = {"check_same_thread": False}
    return kwargs


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return a shared SQLAlchemy engine, creating it on first use."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _resolve(database_url)
    if _ENGINE is None:
        engine = create_engine(url, **_engine_kwargs(url))
        _SESSION_MAKER = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
        _ENGINE = engine
        _DB_URL = url
        return engine
    # Engine already initialized; guard against cross-environment misuse.
    if _DB_URL is not None and url != _DB_URL:
        raise RuntimeError(
            "get_engine() already initialized with a different DATABASE_URL; "
            "call dispose_engine() first or avoid passing a different URL"
        )
    return _ENGINE


def _resolve(override: str | None) -> str:
    # Once bound, callers without an explicit URL reuse the bound one.
    if override is None and _DB_URL is not None:
        return _DB_URL
    return database_url(override)


def get_session(*, database_url: str | None = None) -> Session:
    """Return a new SQLAlchemy session bound to the shared engine."""

    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None  # bound by get_engine
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engine() -> None:
    """Dispose the shared engine so the next call may bind a different URL."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
    _DB_URL = None


__all__ = [
    "database_url",
    "get_engine",
    "get_session",
    "session_scope",
    "dispose_engine",
]
