"""Display helpers shared by the timer, stats and export code."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone


def format_clock(seconds: int) -> str:
    """Stopwatch style: 3725 → '01:02:05'."""
    seconds = max(int(seconds), 0)
    h, rest = divmod(seconds, 3600)
    m, s = divmod(rest, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def format_duration(seconds: int) -> str:
    """Compact total: 3900 → '1h 5m', 300 → '5m'. Seconds are dropped."""
    seconds = max(int(seconds), 0)
    h, rest = divmod(seconds, 3600)
    m = rest // 60
    if h > 0:
        return f"{h}h {m}m"
    return f"{m}m"


def days_until(target: date, now: datetime) -> int:
    """Whole days left until midnight UTC of target, rounded up."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    deadline = datetime.combine(target, time.min, tzinfo=timezone.utc)
    return math.ceil((deadline - now).total_seconds() / 86400)
