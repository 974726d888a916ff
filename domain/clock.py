"""Injectable time source.

Services never call datetime.now() directly; they ask the clock they were
built with so tests can move time forward.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):

    def now(self) -> datetime:
        """Current timezone-aware UTC time"""
        ...

    def today(self) -> date:
        ...


class SystemClock:
    """Production clock - real system time"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Test clock that only moves when told to"""

    def __init__(self, fixed_dt: datetime):
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime")
        self._fixed_dt = fixed_dt

    def now(self) -> datetime:
        return self._fixed_dt

    def today(self) -> date:
        return self._fixed_dt.date()

    def advance(self, **kwargs) -> None:
        """Move time forward, e.g. clock.advance(minutes=16)"""
        self._fixed_dt = self._fixed_dt + timedelta(**kwargs)
