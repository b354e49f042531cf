from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from invtrack.domain.errors import UnavailableError

log = logging.getLogger(__name__)

_TRANSIENT_MARKERS = ("locked", "busy", "unable to open")


class ConnectionPool:
    """Bounded pool of SQLite connections shared by all requests.

    At most ``size`` connections are checked out at once. A caller that cannot
    get one within ``timeout`` seconds gets :class:`UnavailableError`.
    """

    def __init__(self, db_path: Path | str, size: int = 10, timeout: float = 5.0):
        if size < 1:
            raise ValueError("Pool size must be >= 1.")
        self.db_path = str(db_path)
        self.size = int(size)
        self.timeout = float(timeout)
        self._slots = threading.BoundedSemaphore(self.size)
        self._idle: list[sqlite3.Connection] = []
        self._lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """Open a fresh connection outside the pool."""
        conn = sqlite3.connect(self.db_path, timeout=self.timeout, check_same_thread=False)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        if not self._slots.acquire(timeout=self.timeout):
            log.warning("db_pool_exhausted size=%s timeout=%.1fs", self.size, self.timeout)
            raise UnavailableError("Service busy, retry shortly.")
        conn = None
        try:
            conn = self._checkout()
            yield conn
        except sqlite3.OperationalError as exc:
            if conn is not None:
                conn.rollback()
            if any(marker in str(exc).lower() for marker in _TRANSIENT_MARKERS):
                log.error("db_unavailable error=%s", exc)
                raise UnavailableError("Database is unavailable, retry shortly.") from exc
            raise
        except BaseException:
            if conn is not None:
                conn.rollback()
            raise
        finally:
            if conn is not None:
                self._checkin(conn)
            self._slots.release()

    def _checkout(self) -> sqlite3.Connection:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        try:
            return self.connect()
        except sqlite3.OperationalError as exc:
            log.error("db_connect_failed path=%s error=%s", self.db_path, exc)
            raise UnavailableError("Database is unavailable, retry shortly.") from exc

    def _checkin(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.rollback()
        with self._lock:
            self._idle.append(conn)

    def close(self) -> None:
        with self._lock:
            idle, self._idle = self._idle, []
        for conn in idle:
            conn.close()
