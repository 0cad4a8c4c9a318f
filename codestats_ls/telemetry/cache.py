"""Offline pulse cache: pulses that failed delivery, kept until a retry succeeds.

Layout: <cache_dir>/cache.sqlite3 with one table mapping coded_at to the
JSON-encoded pulse. Each public operation runs in its own transaction that
commits on success and rolls back on any error.
"""
from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator

from codestats_ls.errors import CacheError
from codestats_ls.models import Pulse

logger = logging.getLogger(__name__)

DB_FILENAME = "cache.sqlite3"
BUSY_TIMEOUT_SECONDS = 5.0

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache (
    coded_at TEXT PRIMARY KEY,
    pulse    TEXT NOT NULL
)
"""


class PulseCache:
    """Disk-backed store of undelivered pulses, keyed by Pulse.coded_at.

    Writers are serialized in-process by a lock on top of SQLite's own file
    locking; readers get a consistent snapshot from SQLite's isolation.
    """

    def __init__(self, cache_dir: str):
        self.cache_dir = cache_dir
        self.db_path = os.path.join(cache_dir, DB_FILENAME)
        self._write_lock = threading.Lock()
        try:
            os.makedirs(cache_dir, exist_ok=True)
        except OSError as e:
            raise CacheError(f"failed to create cache directory {cache_dir}: {e}") from e
        with self._transaction(write=True) as conn:
            conn.execute(_SCHEMA)

    @contextmanager
    def _transaction(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        """Open a connection and run one transaction on it.

        Commits when the block exits cleanly, rolls back on any exception and
        always closes the connection. sqlite3 errors surface as CacheError.
        """
        lock = self._write_lock if write else None
        if lock is not None:
            lock.acquire()
        try:
            try:
                conn = sqlite3.connect(
                    self.db_path, timeout=BUSY_TIMEOUT_SECONDS, isolation_level=None)
            except sqlite3.Error as e:
                raise CacheError(f"failed to open cache database {self.db_path}: {e}") from e
            try:
                conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
                try:
                    yield conn
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                raise CacheError(f"cache transaction failed: {e}") from e
            finally:
                conn.close()
        finally:
            if lock is not None:
                lock.release()

    def list(self) -> list[Pulse]:
        """All cached pulses, oldest key first. Unreadable rows are skipped."""
        with self._transaction() as conn:
            rows = conn.execute("SELECT coded_at, pulse FROM cache ORDER BY coded_at").fetchall()

        pulses = []
        for coded_at, raw in rows:
            try:
                pulses.append(Pulse.from_dict(json.loads(raw)))
            except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                logger.error("Skipping unreadable cached pulse %s: %s", coded_at, e)
        return pulses

    def save(self, pulse: Pulse) -> None:
        """Insert or overwrite the pulse stored under pulse.coded_at."""
        if not pulse.xps:
            raise ValueError("refusing to cache a pulse without XP")
        raw = json.dumps(pulse.to_dict())
        with self._transaction(write=True) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO cache (coded_at, pulse) VALUES (?, ?)",
                (pulse.coded_at, raw),
            )

    def remove(self, pulse: Pulse) -> None:
        """Delete the pulse stored under pulse.coded_at. No-op if absent."""
        with self._transaction(write=True) as conn:
            conn.execute("DELETE FROM cache WHERE coded_at = ?", (pulse.coded_at,))

    def clear(self) -> int:
        """Delete every cached pulse. Returns how many were removed."""
        with self._transaction(write=True) as conn:
            return conn.execute("DELETE FROM cache").rowcount

    def count(self) -> int:
        with self._transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM cache").fetchone()[0]
