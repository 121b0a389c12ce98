"""Calendar-day arithmetic - pure functions, no I/O.

Every "today" in the engine comes from here so that journal day tracking,
milestones and rollover detection agree on a single timezone policy: the
configured zone when one is given, otherwise the device-local wall clock.
"""

from datetime import date, datetime, tzinfo
from typing import Callable
from zoneinfo import ZoneInfo


def now(tz: tzinfo | None = None) -> datetime:
    """Current instant as an aware datetime in the given zone (local if None)."""
    if tz is None:
        return datetime.now().astimezone()
    return datetime.now(tz)


def day_of(timestamp: datetime, tz: tzinfo | None = None) -> date:
    """Truncate an instant to its calendar day.

    Aware timestamps are converted to ``tz`` (or the local zone) first;
    naive timestamps are taken as already being wall-clock time.
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(tz) if tz is not None else timestamp.astimezone()
    return timestamp.date()


def today(tz: tzinfo | None = None) -> date:
    """The canonical calendar day."""
    return day_of(now(tz), tz)


def days_between(a: date, b: date) -> int:
    """Absolute number of days between two calendar days."""
    return abs((b - a).days)


class Clock:
    """Bundles the day functions with one timezone policy and time source.

    ``now_fn`` lets callers (and tests) substitute a simulated clock.
    """

    def __init__(
        self,
        tz: tzinfo | None = None,
        now_fn: Callable[[], datetime] | None = None,
    ):
        self.tz = tz
        self._now_fn = now_fn

    @classmethod
    def from_name(cls, name: str) -> "Clock":
        """Build a clock from an IANA zone name; empty means device local."""
        return cls(ZoneInfo(name) if name else None)

    def now(self) -> datetime:
        if self._now_fn is not None:
            current = self._now_fn()
            if current.tzinfo is None:
                current = current.replace(tzinfo=self.tz) if self.tz else current.astimezone()
            return current
        return now(self.tz)

    def today(self) -> date:
        return self.day_of(self.now())

    def day_of(self, timestamp: datetime) -> date:
        return day_of(timestamp, self.tz)

    def days_between(self, a: date, b: date) -> int:
        return days_between(a, b)
