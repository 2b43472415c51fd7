"""Clock port and adapters.

Every timestamp the order lifecycle writes (accepted_at, delivered_at, ...)
comes from the active clock, so tests can pin time instead of patching
``datetime.now``. Use get_clock() / set_clock() to swap implementations:
- SystemClock for normal operation
- FixedClock for tests and replays
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):
    """Abstract source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current, timezone-aware UTC time."""
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, at: datetime) -> None:
        if at.tzinfo is None:
            at = at.replace(tzinfo=UTC)
        self._at = at

    def now(self) -> datetime:
        return self._at

    def set(self, at: datetime) -> None:
        self._at = at if at.tzinfo is not None else at.replace(tzinfo=UTC)

    def advance(self, **delta) -> datetime:
        """Move the clock forward by a ``timedelta(**delta)`` and return the new time."""
        self._at = self._at + timedelta(**delta)
        return self._at


_current_clock: Clock | None = None


def get_clock() -> Clock:
    """Return the current clock. Defaults to SystemClock."""
    global _current_clock
    if _current_clock is None:
        _current_clock = SystemClock()
    return _current_clock


def set_clock(clock: Clock) -> None:
    """Override the active clock (useful for tests)."""
    global _current_clock
    _current_clock = clock


def reset_clock() -> None:
    """Reset to the default clock."""
    global _current_clock
    _current_clock = None
