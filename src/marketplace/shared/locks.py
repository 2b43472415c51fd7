"""Row locks — exclusive, per-record locks held across a unit of work.

The lifecycle acquires the lock of every row it is about to read-modify-write
*before* the unit of work starts, and releases it only after the unit of work
has committed. A second transition on the same product therefore blocks until
the first one is durable, then reads the updated quantity. This is the
in-process equivalent of ``SELECT ... FOR UPDATE``.

Locks are keyed by ``(kind, id)``: two orders on different products never
contend. Several keys requested together are acquired in sorted order so two
callers can never wait on each other. Locks are re-entrant for the owning
thread, which lets a coordinator re-take a row lock its caller already holds.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field

import structlog

from marketplace.config import get_settings
from marketplace.errors import LockTimeout

logger = structlog.get_logger(__name__)

RowKey = tuple[str, str]


def row_key(kind: str, identifier) -> RowKey:
    return (kind, str(identifier))


@dataclass
class _Entry:
    lock: threading.RLock = field(default_factory=threading.RLock)
    users: int = 0


class RowLocks:
    """Registry of re-entrant row locks, created on demand and dropped when idle."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: dict[RowKey, _Entry] = {}

    def _checkout(self, key: RowKey) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: RowKey) -> None:
        with self._guard:
            entry = self._entries[key]
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]

    @contextmanager
    def hold(self, *keys: RowKey, timeout: float | None = None):
        """Hold the locks for ``keys`` for the duration of the block.

        Raises LockTimeout when a lock cannot be acquired within ``timeout``
        seconds (the registry default when not given; ``None`` waits forever).
        """
        wait = self.timeout if timeout is None else timeout
        acquired: list[tuple[RowKey, _Entry]] = []
        try:
            for key in sorted(set(keys)):
                entry = self._checkout(key)
                if not entry.lock.acquire(timeout=-1 if wait is None or wait < 0 else wait):
                    self._checkin(key)
                    logger.warning("row_lock_timeout", kind=key[0], row_id=key[1], timeout=wait)
                    raise LockTimeout(
                        f"Timed out waiting for the {key[0]} {key[1]} lock",
                        kind=key[0],
                        row_id=key[1],
                        timeout=wait,
                    )
                acquired.append((key, entry))
            yield
        finally:
            for key, entry in reversed(acquired):
                entry.lock.release()
                self._checkin(key)

    def in_use(self) -> set[RowKey]:
        """Keys currently held or waited on."""
        with self._guard:
            return set(self._entries)


_current_locks: RowLocks | None = None


def get_row_locks() -> RowLocks:
    """Return the process-wide row lock registry."""
    global _current_locks
    if _current_locks is None:
        _current_locks = RowLocks(timeout=get_settings().row_lock_timeout)
    return _current_locks


def set_row_locks(locks: RowLocks) -> None:
    """Override the process-wide registry (useful for tests)."""
    global _current_locks
    _current_locks = locks


def reset_row_locks() -> None:
    global _current_locks
    _current_locks = None
