"""Wall-clock source used for session timestamps and stats reference dates.

Tests inject a FixedClock-style object with the same now() method.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current instant as a timezone-aware datetime."""
        ...


class SystemClock:
    """Production clock: aware UTC datetime from the OS."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
