"""
Persistence Service — writes and reads the whole app snapshot as one blob.

The snapshot ({subjects, activeTimer, timerSeconds}) is serialized to JSON on
the caller's thread and handed to a single background worker, so a slow disk
never stalls the timer tick. Failed writes are logged, never raised; the next
save carries the full latest state and acts as the retry.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Protocol

from studyfocus.data.models import AppSnapshot
from studyfocus.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "study-app-data"


class PersistenceAdapter(Protocol):
    """Key-value contract implemented by data.repository.Repository."""

    def save(self, key: str, value: str) -> None: ...

    def get(self, key: str) -> Optional[str]: ...


class SnapshotStore:
    """Serializes AppSnapshot to/from the key-value adapter."""

    def __init__(
        self,
        adapter: PersistenceAdapter,
        key: str = DEFAULT_STORAGE_KEY,
        background: bool = True,
    ) -> None:
        self.adapter = adapter
        self.key = key
        self.background = background
        self.failed_writes = 0
        self.last_error: Optional[str] = None
        self._executor: Optional[ThreadPoolExecutor] = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="snapshot-writer")
            if background else None
        )

    # ── Load ────────────────────────────────────────────────────────────────

    def load(self) -> AppSnapshot:
        """Read the stored snapshot. Missing or unreadable data → empty snapshot."""
        try:
            raw = self.adapter.get(self.key)
        except PersistenceError as exc:
            logger.warning("Could not load snapshot: %s. Starting empty.", exc)
            self.last_error = str(exc)
            return AppSnapshot.empty()
        if raw is None:
            logger.info("No saved data under %r; starting with an empty ledger.", self.key)
            return AppSnapshot.empty()
        try:
            snapshot = AppSnapshot.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Stored snapshot is unreadable (%s). Starting empty.", exc)
            return AppSnapshot.empty()
        logger.info(
            "Snapshot loaded: %d subject(s), timer %s",
            len(snapshot.subjects), "running" if snapshot.active_timer else "idle",
        )
        return snapshot

    # ── Save ────────────────────────────────────────────────────────────────

    def save(self, snapshot: AppSnapshot) -> Optional[Future]:
        """Persist a snapshot. Fire-and-forget when running in the background."""
        text = json.dumps(snapshot.to_dict(), separators=(",", ":"))
        if self._executor is None:
            self._write(text)
            return None
        return self._executor.submit(self._write, text)

    def _write(self, text: str) -> bool:
        try:
            self.adapter.save(self.key, text)
        except PersistenceError as exc:
            self.failed_writes += 1
            self.last_error = str(exc)
            logger.warning(
                "Snapshot save failed (%d in a row): %s. Will retry on next save.",
                self.failed_writes, exc,
            )
            return False
        if self.failed_writes:
            logger.info("Snapshot save recovered after %d failure(s).", self.failed_writes)
        self.failed_writes = 0
        self.last_error = None
        return True

    @property
    def healthy(self) -> bool:
        return self.failed_writes == 0

    def close(self) -> None:
        """Wait for queued writes and stop the worker."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
            logger.info("Snapshot writer stopped.")


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Turns the in-memory ledger + timer into one JSON string and stores it
#   under a fixed key, and does the reverse at startup.
#
# Key design decisions:
#   - Memory is the source of truth. A failed save never rolls back or
#     blocks a change the user already made; it is logged and counted.
#   - "Retry" is free: every save writes the complete latest snapshot, so
#     the next checkpoint or mutation repairs a missed write.
#   - A single-worker executor keeps writes in submission order. The JSON
#     is built before submitting, so the worker never reads live objects.
#   - Loading is the one blocking step: the app waits for it before the
#     ledger becomes usable. Missing data simply means "fresh install".
#
# Data flow:
#   StudyContext.checkpoint() → SnapshotStore.save() → worker thread →
#   Repository.save(key, json) → SQLite.
#
# Interviewer-friendly talking points:
#   1. Fire-and-forget with observability: failures are not surfaced as
#      dialogs, but failed_writes / last_error let the UI show a status dot.
#   2. Corrupt data on disk degrades to an empty ledger instead of a crash
#      loop on every launch.
