"""Shared fixtures: in-memory SQLite, a settable clock and a manual tick scheduler."""

import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from studyfocus.data.database import SCHEMA_SQL
from studyfocus.data.repository import Repository
from studyfocus.errors import PersistenceError


class FixedClock:
    """Returns a fixed instant until advanced by hand."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeScheduler:
    """Records start/stop calls; tests drive ticks with fire()."""

    def __init__(self) -> None:
        self.callback = None
        self.starts = 0
        self.stops = 0

    @property
    def is_active(self) -> bool:
        return self.callback is not None

    def start(self, callback) -> None:
        self.callback = callback
        self.starts += 1

    def stop(self) -> None:
        self.callback = None
        self.stops += 1

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.callback is None:
                return
            self.callback()


class MemoryAdapter:
    """Dict-backed key-value adapter that can be told to fail."""

    def __init__(self) -> None:
        self.data = {}
        self.fail_saves = False
        self.fail_loads = False
        self.save_calls = 0

    def save(self, key: str, value: str) -> None:
        self.save_calls += 1
        if self.fail_saves:
            raise PersistenceError("disk full")
        self.data[key] = value

    def get(self, key: str):
        if self.fail_loads:
            raise PersistenceError("storage unavailable")
        return self.data.get(key)


@pytest.fixture
def conn():
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def repo(conn):
    return Repository(conn)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def adapter():
    return MemoryAdapter()
