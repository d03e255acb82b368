"""
Key-value persistence for rooms and message logs.

Keys:
    room:<roomId>            JSON Room record
    room:<roomId>:messages   JSON list of Message records (max 100)

Values are opaque bytes. No compare-and-swap is offered, so concurrent
read-modify-write on a message log can lose an update.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Dict, Optional

logger = logging.getLogger(__name__)


def room_key(room_id: str) -> str:
    return f"room:{room_id}"


def messages_key(room_id: str) -> str:
    return f"room:{room_id}:messages"


class KeyValueStore:
    """get / put / delete by string key over byte blobs."""

    def get(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def put(self, key: str, value: bytes) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Process-local dict. Good for tests and a single dev server."""

    def __init__(self):
        self._data: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self):
        with self._lock:
            return sorted(self._data)


class SqliteStore(KeyValueStore):
    """Single-table SQLite store; one connection per call."""

    def __init__(self, path: str):
        self.path = path
        with self._connect() as conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS kv (k TEXT PRIMARY KEY, v BLOB NOT NULL)"
            )

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(self.path, timeout=10)
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def get(self, key: str) -> Optional[bytes]:
        with self._connect() as conn:
            row = conn.execute("SELECT v FROM kv WHERE k = ?", (key,)).fetchone()
        return bytes(row[0]) if row else None

    def put(self, key: str, value: bytes) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv (k, v) VALUES (?, ?)",
                (key, sqlite3.Binary(value)),
            )

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv WHERE k = ?", (key,))


def open_store(url: str) -> KeyValueStore:
    """``memory`` or ``sqlite:///path/to/file.db``."""
    if url == "memory":
        return MemoryStore()
    if url.startswith("sqlite:///"):
        path = url[len("sqlite:///"):]
        logger.info(f"Opening SQLite store at {path}")
        return SqliteStore(path)
    raise ValueError(f"Unsupported store URL: {url!r}")
