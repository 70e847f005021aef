"""Run locks giving one ranking generation exclusive write access."""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Generator

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)

# Engines without advisory locks (SQLite) serialize runs inside the process only
_local_locks: dict[str, threading.Lock] = {}
_local_locks_guard = threading.Lock()


class RunLockBusy(TimeoutError):
    """Another run holds the named lock."""


def advisory_lock_key(name: str) -> int:
    """Return a deterministic signed 64-bit lock key from a run name."""
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=True)


def ranking_lock_name(league: str, version_id: int) -> str:
    return f"tennisrank:ranking:{league}:{version_id}"


def _local_lock(name: str) -> threading.Lock:
    with _local_locks_guard:
        return _local_locks.setdefault(name, threading.Lock())


def _poll(
    try_acquire: Callable[[], bool],
    timeout_seconds: float,
    poll_interval_seconds: float,
) -> bool:
    deadline = time.monotonic() + max(timeout_seconds, 0.0)
    while True:
        if try_acquire():
            return True
        if timeout_seconds <= 0 or time.monotonic() >= deadline:
            return False
        time.sleep(max(poll_interval_seconds, 0.05))


def _try_pg_lock(connection: Connection, key: int) -> bool:
    return bool(
        connection.execute(text("SELECT pg_try_advisory_lock(:key)"), {"key": key}).scalar()
    )


@contextmanager
def ranking_run_lock(
    engine: Engine,
    name: str,
    *,
    timeout_seconds: float = 0.0,
    poll_interval_seconds: float = 1.0,
) -> Generator[bool, None, None]:
    """
    Hold the named run lock for the life of this context.

    PostgreSQL engines take a session-level advisory lock, so concurrent
    runs in other processes are excluded too. Other engines fall back to
    a lock local to this process.

    Yields:
        True once the lock is held.

    Raises:
        RunLockBusy: if the lock cannot be acquired before timeout.
    """
    if engine.dialect.name != "postgresql":
        lock = _local_lock(name)
        if not _poll(lambda: lock.acquire(blocking=False), timeout_seconds, poll_interval_seconds):
            logger.warning("Run lock %s is held by another run", name)
            raise RunLockBusy(f"Could not acquire run lock {name}")
        try:
            yield True
        finally:
            lock.release()
        return

    key = advisory_lock_key(name)
    connection = engine.connect()
    acquired = False
    try:
        acquired = _poll(lambda: _try_pg_lock(connection, key), timeout_seconds, poll_interval_seconds)
        if not acquired:
            logger.warning("Advisory lock %s (key=%s) is held by another run", name, key)
            raise RunLockBusy(f"Could not acquire advisory lock {name} key={key}")
        yield True
    finally:
        if acquired:
            connection.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": key})
        connection.close()
