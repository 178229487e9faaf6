"""Key-based blob stores used as persistence targets for classifiers.

A store holds opaque byte payloads addressed by ``(bucket, key)``. Two
implementations ship with the package: an in-memory store (tests,
short-lived processes) and a SQLite-backed store for durable storage.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from .exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "default"


class BlobStore(ABC):
    """Abstract byte store addressed by key within an optional bucket."""

    @abstractmethod
    def write(self, key: str, data: bytes, bucket: Optional[str] = None) -> None:
        """Store ``data`` under ``key``, replacing any previous payload."""
        ...

    @abstractmethod
    def read(self, key: str, bucket: Optional[str] = None) -> bytes:
        """Return the payload stored under ``key``.

        Raises:
            KeyError: If nothing is stored under ``key``.
        """
        ...

    @abstractmethod
    def exists(self, key: str, bucket: Optional[str] = None) -> bool:
        """Whether a payload is stored under ``key``."""
        ...

    @abstractmethod
    def delete(self, key: str, bucket: Optional[str] = None) -> bool:
        """Remove the payload stored under ``key``. Returns whether one existed."""
        ...


class InMemoryBlobStore(BlobStore):
    """Dictionary-backed store; contents vanish with the process."""

    def __init__(self) -> None:
        self._blobs: dict[tuple[str, str], bytes] = {}

    def __len__(self) -> int:
        return len(self._blobs)

    def write(self, key: str, data: bytes, bucket: Optional[str] = None) -> None:
        self._blobs[(bucket or DEFAULT_BUCKET, key)] = bytes(data)

    def read(self, key: str, bucket: Optional[str] = None) -> bytes:
        return self._blobs[(bucket or DEFAULT_BUCKET, key)]

    def exists(self, key: str, bucket: Optional[str] = None) -> bool:
        return (bucket or DEFAULT_BUCKET, key) in self._blobs

    def delete(self, key: str, bucket: Optional[str] = None) -> bool:
        return self._blobs.pop((bucket or DEFAULT_BUCKET, key), None) is not None


class SQLiteBlobStore(BlobStore):
    """Blob store persisted in a single SQLite database file.

    Buckets share one ``blobs`` table keyed by ``(bucket, key)``.

    Args:
        path: Database file, created along with its parent directories on
            first use. ``":memory:"`` keeps the database in memory.

    Raises:
        StorageUnavailableError: If the database cannot be opened or
            queried.
    """

    _SCHEMA = """
        CREATE TABLE IF NOT EXISTS blobs (
            bucket TEXT NOT NULL,
            key TEXT NOT NULL,
            data BLOB NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (bucket, key)
        )
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = str(path)
        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.path)
            with self._conn:
                self._conn.execute(self._SCHEMA)
        except (OSError, sqlite3.Error) as exc:
            raise StorageUnavailableError(f"Cannot open blob store at {self.path}: {exc}") from exc

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLiteBlobStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def write(self, key: str, data: bytes, bucket: Optional[str] = None) -> None:
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO blobs (bucket, key, data, updated_at)
                    VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(bucket, key) DO UPDATE SET
                        data=excluded.data,
                        updated_at=CURRENT_TIMESTAMP
                    """,
                    (bucket or DEFAULT_BUCKET, key, sqlite3.Binary(data)),
                )
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Cannot write blob {key!r}: {exc}") from exc
        logger.debug("Wrote %d bytes to %s/%s", len(data), bucket or DEFAULT_BUCKET, key)

    def read(self, key: str, bucket: Optional[str] = None) -> bytes:
        row = self._fetch_one(
            "SELECT data FROM blobs WHERE bucket = ? AND key = ?", key, bucket
        )
        if row is None:
            raise KeyError(key)
        return bytes(row[0])

    def exists(self, key: str, bucket: Optional[str] = None) -> bool:
        row = self._fetch_one(
            "SELECT 1 FROM blobs WHERE bucket = ? AND key = ?", key, bucket
        )
        return row is not None

    def delete(self, key: str, bucket: Optional[str] = None) -> bool:
        try:
            with self._conn:
                cursor = self._conn.execute(
                    "DELETE FROM blobs WHERE bucket = ? AND key = ?",
                    (bucket or DEFAULT_BUCKET, key),
                )
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Cannot delete blob {key!r}: {exc}") from exc
        return cursor.rowcount > 0

    def _fetch_one(self, query: str, key: str, bucket: Optional[str]) -> Optional[tuple]:
        try:
            return self._conn.execute(query, (bucket or DEFAULT_BUCKET, key)).fetchone()
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Cannot read blob {key!r}: {exc}") from exc
