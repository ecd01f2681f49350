"""
Data models for Study Focus.

Plain dataclasses for the study hierarchy (Subject → Chapter → Topic → Session)
plus the running-timer marker and the snapshot that gets persisted. The
to_dict/from_dict pairs define the stored JSON shape; key names are kept
camelCase so blobs written by earlier versions of the app load unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


def format_instant(moment: datetime) -> str:
    """Render an aware datetime as a UTC ISO instant, e.g. 2026-10-19T08:15:00.000Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_instant(text: str) -> datetime:
    """Inverse of format_instant. Naive strings are read as UTC."""
    moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class Session:
    """One finished timer run. Never edited after creation."""
    timestamp: str
    duration_seconds: int

    @property
    def started_at(self) -> datetime:
        return parse_instant(self.timestamp)

    def to_dict(self) -> dict:
        return {"date": self.timestamp, "duration": self.duration_seconds}

    @classmethod
    def from_dict(cls, data: dict) -> Session:
        timestamp = str(data["date"])
        parse_instant(timestamp)  # raises ValueError on a bad date
        return cls(timestamp=timestamp, duration_seconds=int(data["duration"]))


@dataclass
class Topic:
    """Leaf of the hierarchy; the only level that owns sessions."""
    id: int
    name: str
    total_time: int = 0
    sessions: List[Session] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "totalTime": self.total_time,
            "sessions": [s.to_dict() for s in self.sessions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Topic:
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            total_time=int(data.get("totalTime", 0)),
            sessions=[Session.from_dict(s) for s in data.get("sessions") or []],
        )


@dataclass
class Chapter:
    id: int
    name: str
    topics: List[Topic] = field(default_factory=list)
    total_time: int = 0

    @property
    def manual_time(self) -> int:
        """Seconds logged by hand on this chapter (not attributable to a topic)."""
        return self.total_time - sum(t.total_time for t in self.topics)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "topics": [t.to_dict() for t in self.topics],
            "totalTime": self.total_time,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Chapter:
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            topics=[Topic.from_dict(t) for t in data.get("topics") or []],
            total_time=int(data.get("totalTime", 0)),
        )


@dataclass
class Subject:
    id: int
    name: str
    chapters: List[Chapter] = field(default_factory=list)
    total_time: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "chapters": [c.to_dict() for c in self.chapters],
            "totalTime": self.total_time,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Subject:
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            chapters=[Chapter.from_dict(c) for c in data.get("chapters") or []],
            total_time=int(data.get("totalTime", 0)),
        )


@dataclass(frozen=True)
class ActiveTimer:
    """The (subject, chapter, topic) path a running timer is attributed to."""
    subject_id: int
    chapter_id: int
    topic_id: int

    def to_dict(self) -> dict:
        return {
            "subjectId": self.subject_id,
            "chapterId": self.chapter_id,
            "topicId": self.topic_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ActiveTimer:
        return cls(
            subject_id=int(data["subjectId"]),
            chapter_id=int(data["chapterId"]),
            topic_id=int(data["topicId"]),
        )


@dataclass
class AppSnapshot:
    """Everything that is persisted under the storage key."""
    subjects: List[Subject] = field(default_factory=list)
    active_timer: Optional[ActiveTimer] = None
    timer_seconds: int = 0

    @classmethod
    def empty(cls) -> AppSnapshot:
        return cls()

    def to_dict(self) -> dict:
        return {
            "subjects": [s.to_dict() for s in self.subjects],
            "activeTimer": self.active_timer.to_dict() if self.active_timer else None,
            "timerSeconds": self.timer_seconds,
        }

    @classmethod
    def from_dict(cls, data: dict) -> AppSnapshot:
        if not isinstance(data, dict):
            raise ValueError("snapshot must be a JSON object")
        timer = data.get("activeTimer")
        return cls(
            subjects=[Subject.from_dict(s) for s in data.get("subjects") or []],
            active_timer=ActiveTimer.from_dict(timer) if timer else None,
            timer_seconds=int(data.get("timerSeconds") or 0) if timer else 0,
        )


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Defines the shape of the study hierarchy as Python dataclasses:
#   Subject → Chapter → Topic → Session, plus ActiveTimer (what is being
#   timed right now) and AppSnapshot (what gets written to storage).
#
# Key classes and why they exist:
#   - Session is frozen: once a timer run is recorded it is history. The
#     only way a session disappears is when its topic (or an ancestor) is
#     deleted.
#   - total_time on every level is a pre-computed rollup so the UI never
#     has to walk the tree to show a number.
#   - Chapter.manual_time is derived, not stored: hand-logged time is the
#     residual between the chapter total and its topics' totals.
#
# Data flow:
#   StudyLedger mutates these objects → SnapshotStore calls to_dict() →
#   JSON string → key-value store. Startup reverses it with from_dict().
#
# Interviewer-friendly talking points:
#   1. Stored key names stay camelCase (totalTime, activeTimer) so data
#      saved by the first version of the app still loads.
#   2. Timestamps are UTC ISO strings with a 'Z' suffix: sortable as text
#      and unambiguous across timezones.
#   3. Frozen vs mutable dataclasses is a deliberate signal to readers
#      about which objects are allowed to change.
