"""Persistence boundary: an opaque blob store holding the application state.

The ingestion core only needs two guarantees from a store: ``load()`` returns
the last saved blob (or ``None``), and ``save(blob)`` is eventually durable.
Two implementations are provided:

- :class:`FileBlobStore`: one JSON file; writes target ``.tmp`` first and are
  then moved into place with ``os.replace``.
- :class:`SqlBlobStore`: one row per state key through SQLAlchemy.

:class:`DebouncedSaver` coalesces bursts of mutating operations into a single
write.
"""

from __future__ import annotations

import json
import os
import threading
from os import PathLike
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .db import FiStateBlob, session_scope
from .logging_setup import get_logger
from .models import AppState

_logger = get_logger("finance_ingest.store")

DEFAULT_SAVE_DELAY = 0.6


class BlobStore(Protocol):
    def load(self) -> bytes | None: ...

    def save(self, blob: bytes) -> bool: ...


def default_state_path() -> Path:
    """Return the state file path.

    Default: ``./.finance_ingest/state.json`` under the current working
    directory. Override: ``FI_STATE_PATH`` environment variable.
    """

    raw = os.getenv("FI_STATE_PATH")
    if raw and raw.strip():
        return Path(raw).expanduser().resolve()
    return (Path.cwd() / ".finance_ingest" / "state.json").resolve()


class FileBlobStore:
    def __init__(self, path: str | PathLike[str] | None = None) -> None:
        self.path = Path(path) if path is not None else default_state_path()

    def load(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def save(self, blob: bytes) -> bool:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(blob)
            os.replace(tmp, self.path)
        except OSError:
            _logger.exception("failed to save state to %s", self.path)
            return False
        return True


class SqlBlobStore:
    def __init__(self, database_url: str | None = None, *, key: str = "default") -> None:
        self.database_url = database_url
        self.key = key

    def load(self) -> bytes | None:
        with session_scope(database_url=self.database_url) as session:
            row = session.get(FiStateBlob, self.key)
            return bytes(row.blob) if row is not None else None

    def save(self, blob: bytes) -> bool:
        try:
            with session_scope(database_url=self.database_url) as session:
                row = session.get(FiStateBlob, self.key)
                if row is None:
                    session.add(FiStateBlob(key=self.key, blob=blob))
                else:
                    row.blob = blob
        except SQLAlchemyError:
            _logger.exception("failed to save state key %r", self.key)
            return False
        return True


# ---------------------------------------------------------------------------
# State codec
# ---------------------------------------------------------------------------


def encode_state(state: AppState) -> bytes:
    payload = state.model_dump(mode="json", exclude={"transactions"})
    # Records drop inapplicable optional fields instead of writing nulls.
    payload["transactions"] = [tx.to_record() for tx in state.transactions]
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def decode_state(blob: bytes) -> AppState:
    try:
        return AppState.model_validate_json(blob)
    except ValidationError as exc:
        raise ValueError(f"stored state is corrupt: {exc}") from exc


def load_state(store: BlobStore) -> AppState:
    """Load the saved state; a store with nothing saved yields an empty state."""

    blob = store.load()
    if blob is None:
        return AppState()
    return decode_state(blob)


def save_state(store: BlobStore, state: AppState) -> bool:
    return store.save(encode_state(state))


class DebouncedSaver:
    """Save the latest scheduled state once no new schedule arrives for ``delay`` seconds."""

    def __init__(self, store: BlobStore, *, delay: float = DEFAULT_SAVE_DELAY) -> None:
        self._store = store
        self._delay = delay
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._pending: AppState | None = None

    def schedule(self, state: AppState) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = state
            self._timer = threading.Timer(self._delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool | None:
        """Write any pending state now; ``None`` when nothing was pending."""

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            state, self._pending = self._pending, None
            if state is None:
                return None
            return save_state(self._store, state)


__all__ = [
    "BlobStore",
    "DebouncedSaver",
    "FileBlobStore",
    "SqlBlobStore",
    "decode_state",
    "default_state_path",
    "encode_state",
    "load_state",
    "save_state",
]
