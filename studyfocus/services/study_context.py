"""
Study Context — the application object the UI talks to.

Owns the ledger, the timer controller, the snapshot store and the current
selection (which subject/chapter is open). This is the recovery boundary:
ValidationError and NotFoundError from the core are logged here and turned
into no-ops, and every successful mutation is persisted.
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from studyfocus import config as app_config
from studyfocus.data.models import ActiveTimer, AppSnapshot, Chapter, Session, Subject, Topic
from studyfocus.errors import NotFoundError, ValidationError
from studyfocus.services.clock import Clock, SystemClock
from studyfocus.services.ledger_service import NodeKind, StudyLedger
from studyfocus.services.persistence_service import PersistenceAdapter, SnapshotStore
from studyfocus.services.stats_service import StatsAggregator, StatsBucket, StudySummary
from studyfocus.services.timer_service import DEFAULT_CHECKPOINT_EVERY, Scheduler, TimerController

logger = logging.getLogger(__name__)


class StudyContext:
    """Everything one running app instance needs, passed around explicitly."""

    def __init__(
        self,
        store: SnapshotStore,
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
        aggregator: Optional[StatsAggregator] = None,
        checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY,
    ) -> None:
        self.clock: Clock = clock or SystemClock()
        self.store = store
        self.ledger = StudyLedger(self.clock)
        self.timer = TimerController(
            self.ledger, scheduler,
            on_checkpoint=self.checkpoint,
            checkpoint_every=checkpoint_every,
        )
        self.aggregator = aggregator or StatsAggregator()

        self.selected_subject_id: Optional[int] = None
        self.selected_chapter_id: Optional[int] = None
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: dict,
        adapter: PersistenceAdapter,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Clock] = None,
    ) -> StudyContext:
        store = SnapshotStore(
            adapter,
            key=config["storage_key"],
            background=bool(config["background_saves"]),
        )
        aggregator = StatsAggregator(
            tz=app_config.stats_timezone(config),
            week_starts_on=int(config["week_starts_on"]),
        )
        return cls(
            store, clock=clock, scheduler=scheduler, aggregator=aggregator,
            checkpoint_every=int(config["checkpoint_every_ticks"]),
        )

    # ── Lifecycle ───────────────────────────────────────────────────────────

    def load(self) -> None:
        """Restore the saved ledger and, if one was running, the timer."""
        snapshot = self.store.load()
        self.ledger.hydrate(snapshot.subjects)
        if snapshot.active_timer is not None:
            if not self.timer.resume(snapshot.active_timer, snapshot.timer_seconds):
                self.checkpoint()  # drop the stale timer from storage

    def snapshot(self) -> AppSnapshot:
        return AppSnapshot(
            subjects=self.ledger.snapshot(),
            active_timer=self.timer.active,
            timer_seconds=self.timer.elapsed_seconds,
        )

    def checkpoint(self) -> None:
        if self._closed:
            logger.debug("Checkpoint after shutdown ignored.")
            return
        self.store.save(self.snapshot())

    def shutdown(self) -> None:
        """Cancel ticking, write a final snapshot and drain the writer."""
        if self._closed:
            return
        self.timer.shutdown()
        if not self.store.healthy:
            self.checkpoint()
        self._closed = True
        self.store.close()
        logger.info("Study context shut down.")

    def __enter__(self) -> StudyContext:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # ── Structure ───────────────────────────────────────────────────────────

    def add_subject(self, name: str) -> Optional[Subject]:
        return self._mutate(self.ledger.add_subject, name)

    def add_chapter(self, subject_id: int, name: str) -> Optional[Chapter]:
        return self._mutate(self.ledger.add_chapter, subject_id, name)

    def add_topic(self, subject_id: int, chapter_id: int, name: str) -> Optional[Topic]:
        return self._mutate(self.ledger.add_topic, subject_id, chapter_id, name)

    def delete_subject(self, subject_id: int) -> int:
        removed = self._delete(NodeKind.SUBJECT, subject_id)
        if self.selected_subject_id == subject_id:
            self.selected_subject_id = None
            self.selected_chapter_id = None
        return removed

    def delete_chapter(self, subject_id: int, chapter_id: int) -> int:
        removed = self._delete(NodeKind.CHAPTER, subject_id, chapter_id)
        if self.selected_chapter_id == chapter_id:
            self.selected_chapter_id = None
        return removed

    def delete_topic(self, subject_id: int, chapter_id: int, topic_id: int) -> int:
        return self._delete(NodeKind.TOPIC, subject_id, chapter_id, topic_id)

    # ── Time ────────────────────────────────────────────────────────────────

    def log_manual_time(self, subject_id: int, chapter_id: int, hours: Any, minutes: Any) -> int:
        """Returns the seconds added (0 when nothing was logged)."""
        try:
            seconds = self.ledger.apply_manual_log(subject_id, chapter_id, hours, minutes)
        except NotFoundError as exc:
            logger.warning("Manual log ignored: %s", exc)
            return 0
        if seconds:
            self.checkpoint()
        return seconds

    def start_timer(self, subject_id: int, chapter_id: int, topic_id: int) -> Optional[ActiveTimer]:
        try:
            return self.timer.start(subject_id, chapter_id, topic_id)
        except NotFoundError as exc:
            logger.warning("Timer not started: %s", exc)
            return None

    def stop_timer(self) -> Optional[Session]:
        return self.timer.stop()

    # ── Selection ───────────────────────────────────────────────────────────

    def select_subject(self, subject_id: Optional[int]) -> None:
        if subject_id is not None and self.ledger.find_subject(subject_id) is None:
            logger.warning("Cannot select missing subject %s", subject_id)
            return
        self.selected_subject_id = subject_id
        self.selected_chapter_id = None

    def select_chapter(self, chapter_id: Optional[int]) -> None:
        if chapter_id is not None:
            if self.selected_subject_id is None:
                logger.warning("Select a subject before chapter %s", chapter_id)
                return
            try:
                self.ledger.get_chapter(self.selected_subject_id, chapter_id)
            except NotFoundError as exc:
                logger.warning("Cannot select chapter: %s", exc)
                return
        self.selected_chapter_id = chapter_id

    @property
    def selected_subject(self) -> Optional[Subject]:
        if self.selected_subject_id is None:
            return None
        return self.ledger.find_subject(self.selected_subject_id)

    @property
    def selected_chapter(self) -> Optional[Chapter]:
        subject = self.selected_subject
        if subject is None or self.selected_chapter_id is None:
            return None
        return next((c for c in subject.chapters if c.id == self.selected_chapter_id), None)

    # ── Read side ───────────────────────────────────────────────────────────

    def stats(self, granularity: str, reference: Optional[datetime] = None) -> List[StatsBucket]:
        return self.aggregator.buckets(
            self.ledger.subjects, granularity, reference or self.clock.now()
        )

    def summary(self, reference: Optional[datetime] = None) -> StudySummary:
        return self.aggregator.summary(self.ledger.subjects, reference or self.clock.now())

    def export_sessions_csv(self) -> str:
        """All sessions as CSV text (empty string when there are none)."""
        rows = list(self.ledger.iter_sessions())
        if not rows:
            return ""
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(["subject", "chapter", "topic", "timestamp", "duration_seconds"])
        for subject, chapter, topic, session in rows:
            writer.writerow([
                subject.name, chapter.name, topic.name,
                session.timestamp, session.duration_seconds,
            ])
        return buf.getvalue()

    # ── Internal ────────────────────────────────────────────────────────────

    def _mutate(self, op: Callable, *args):
        try:
            result = op(*args)
        except (ValidationError, NotFoundError) as exc:
            logger.warning("%s ignored: %s", op.__name__, exc)
            return None
        self.checkpoint()
        return result

    def _delete(self, kind: str, *ids: int) -> int:
        active = self.timer.active
        if active is not None:
            path = (active.subject_id, active.chapter_id, active.topic_id)
            if path[:len(ids)] == ids:
                logger.info("Deleting the running timer's %s; cancelling the timer.", kind)
                self.timer.cancel()
        removed = self.ledger.delete(kind, *ids)
        self.checkpoint()
        return removed


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Wires the ledger, timer, storage and stats together and exposes one
#   flat API to the UI: add/delete nodes, start/stop the timer, log time by
#   hand, read stats, export CSV.
#
# Key design decisions:
#   - No globals. "Which subject is open" and "which timer is running" are
#     fields on this object, so tests can build as many contexts as they
#     like and nothing leaks between them.
#   - Errors stop here. A blank name or a stale id logs a warning and
#     returns None/0; the window never needs try/except around a click.
#   - Persist after every successful mutation, plus the timer's periodic
#     checkpoints. Storage failures are handled inside SnapshotStore.
#   - Deleting the topic that is being timed cancels the timer rather than
#     letting it tick against a node that no longer exists.
#
# Data flow:
#   Button click → StudyContext.op() → ledger/timer mutation →
#   checkpoint() → SnapshotStore.save() (background) → SQLite.
#
# Interviewer-friendly talking points:
#   1. Composition root: this is the one place that knows every service.
#      The services themselves only know the pieces they're handed.
#   2. Context manager: "with StudyContext(...) as ctx:" guarantees the
#      tick timer is stopped and queued writes are flushed on exit, even on
#      an exception.
