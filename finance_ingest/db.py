"""SQLAlchemy engine/session helpers and the state-blob table.

Usage
-----
from finance_ingest.db import session_scope

with session_scope(database_url="sqlite:///state.db") as s:
    s.execute(...)

The URL comes from the argument, else ``FI_DATABASE_URL``, else
``DATABASE_URL``. Engines are cached per URL.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import DateTime, LargeBinary, String, create_engine, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker


class Base(DeclarativeBase):
    pass


class FiStateBlob(Base):
    """One serialized application state per ``key``."""

    __tablename__ = "fi_state_blobs"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    blob: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


_ENGINES: dict[str, tuple[Engine, sessionmaker[Session]]] = {}
_LOCK = threading.Lock()


def _resolve_url(override: str | None = None) -> str:
    url = override or os.getenv("FI_DATABASE_URL") or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("FI_DATABASE_URL is not set; cannot initialize database client")
    return url


def _engine_and_maker(database_url: str | None) -> tuple[Engine, sessionmaker[Session]]:
    url = _resolve_url(database_url)
    with _LOCK:
        cached = _ENGINES.get(url)
        if cached is None:
            engine = create_engine(url, pool_pre_ping=True)
            Base.metadata.create_all(engine)
            cached = (engine, sessionmaker(bind=engine, expire_on_commit=False, class_=Session))
            _ENGINES[url] = cached
        return cached


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the engine for the resolved URL, creating it (and the schema) once."""

    return _engine_and_maker(database_url)[0]


def get_session(*, database_url: str | None = None) -> Session:
    return _engine_and_maker(database_url)[1]()


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


__all__ = [
    "Base",
    "FiStateBlob",
    "get_engine",
    "get_session",
    "session_scope",
]
