"""
Main Window — the central hub of Study Focus.

Contains:
  - Subject / Chapter / Topic columns with add, delete and log-time controls
  - Live timer display, focus banner and exam countdown
  - Tab navigation to Stats
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from PySide6.QtCore import Qt, QTimer, Slot
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QDialog, QDialogButtonBox, QFormLayout, QHBoxLayout, QLabel, QLineEdit,
    QListWidget, QListWidgetItem, QMainWindow, QMessageBox, QPushButton,
    QTabWidget, QVBoxLayout, QWidget,
)

from studyfocus import config as app_config
from studyfocus.errors import NotFoundError
from studyfocus.services.formatting import days_until, format_clock, format_duration
from studyfocus.services.study_context import StudyContext
from studyfocus.ui.stats_widget import StatsWidget

logger = logging.getLogger(__name__)

FOCUS_BANNER_TEXT = "Focus mode: the timer is running. Stay on this topic until you stop it."


class MainWindow(QMainWindow):
    """The main application window."""

    def __init__(self, context: StudyContext, config: dict) -> None:
        super().__init__()
        self.context = context
        self.config = config
        self.setWindowTitle("Study Focus")
        self.setMinimumSize(900, 620)
        self.resize(1080, 720)

        # ── Live display ────────────────────────────────────────────────
        # Repaints the clock; elapsed time itself is counted by the context's
        # tick scheduler.
        self._live_timer = QTimer()
        self._live_timer.timeout.connect(self._update_timer_display)
        self._live_timer.setInterval(int(config["tick_interval_ms"]))

        self._build_ui()
        self._refresh_all()
        if self.context.timer.is_running:
            self._live_timer.start()

    # ── UI Construction ─────────────────────────────────────────────────

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(0, 0, 0, 0)

        self.tabs = QTabWidget()
        main_layout.addWidget(self.tabs)

        self.study_tab = self._build_study_tab()
        self.tabs.addTab(self.study_tab, "Study")

        self.stats_widget = StatsWidget(self.context)
        self.tabs.addTab(self.stats_widget, "Stats")

        self.tabs.currentChanged.connect(self._on_tab_changed)

    def _build_study_tab(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setSpacing(12)
        layout.setContentsMargins(20, 20, 20, 20)

        # ── Header ──────────────────────────────────────────────────
        header = QHBoxLayout()
        title = QLabel("Study Focus")
        title.setObjectName("title")
        header.addWidget(title)
        header.addStretch()
        self.save_status_label = QLabel("")
        self.save_status_label.setObjectName("save_status")
        header.addWidget(self.save_status_label)
        self.countdown_label = QLabel("")
        self.countdown_label.setObjectName("countdown")
        header.addWidget(self.countdown_label)
        layout.addLayout(header)

        # ── Focus banner ────────────────────────────────────────────
        self.focus_banner = QWidget()
        banner_row = QHBoxLayout(self.focus_banner)
        banner_row.setContentsMargins(0, 0, 0, 0)
        banner_label = QLabel(FOCUS_BANNER_TEXT)
        banner_label.setObjectName("focus_banner")
        banner_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        banner_row.addWidget(banner_label, stretch=1)
        dismiss_btn = QPushButton("Dismiss")
        dismiss_btn.clicked.connect(self._on_dismiss_banner)
        banner_row.addWidget(dismiss_btn)
        self.focus_banner.setVisible(False)
        self._banner_dismissed = False
        layout.addWidget(self.focus_banner)

        # ── Timer ───────────────────────────────────────────────────
        self.timer_label = QLabel(format_clock(0))
        self.timer_label.setObjectName("timer")
        self.timer_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.timer_label)

        timer_row = QHBoxLayout()
        self.target_label = QLabel("No timer running")
        self.target_label.setObjectName("subtitle")
        timer_row.addWidget(self.target_label)
        timer_row.addStretch()
        self.btn_stop = QPushButton("Stop Timer")
        self.btn_stop.setObjectName("danger")
        self.btn_stop.clicked.connect(self._on_stop_timer)
        timer_row.addWidget(self.btn_stop)
        layout.addLayout(timer_row)

        # ── Hierarchy columns ───────────────────────────────────────
        columns = QHBoxLayout()
        columns.setSpacing(12)

        subj_col, self.subject_list, self.subject_input = self._build_column(
            "subjects", "New subject...", self._on_add_subject, self._on_delete_subject
        )
        self.subject_list.currentItemChanged.connect(self._on_subject_selected)
        columns.addLayout(subj_col)

        chap_col, self.chapter_list, self.chapter_input = self._build_column(
            "chapters", "New chapter...", self._on_add_chapter, self._on_delete_chapter
        )
        self.chapter_list.currentItemChanged.connect(self._on_chapter_selected)
        self.btn_log = QPushButton("Log Time")
        self.btn_log.clicked.connect(self._on_log_time)
        chap_col.addWidget(self.btn_log)
        columns.addLayout(chap_col)

        topic_col, self.topic_list, self.topic_input = self._build_column(
            "topics", "New topic...", self._on_add_topic, self._on_delete_topic
        )
        self.btn_start = QPushButton("Start Timer")
        self.btn_start.setObjectName("start")
        self.btn_start.clicked.connect(self._on_start_timer)
        topic_col.addWidget(self.btn_start)
        columns.addLayout(topic_col)

        layout.addLayout(columns, stretch=1)
        return widget

    def _build_column(
        self,
        title: str,
        placeholder: str,
        on_add: Callable[[], None],
        on_delete: Callable[[], None],
    ):
        col = QVBoxLayout()
        label = QLabel(title)
        label.setObjectName("column_title")
        col.addWidget(label)

        items = QListWidget()
        col.addWidget(items, stretch=1)

        row = QHBoxLayout()
        line = QLineEdit()
        line.setPlaceholderText(placeholder)
        line.returnPressed.connect(on_add)
        row.addWidget(line)
        add_btn = QPushButton("Add")
        add_btn.setObjectName("primary")
        add_btn.clicked.connect(on_add)
        row.addWidget(add_btn)
        del_btn = QPushButton("Delete")
        del_btn.clicked.connect(on_delete)
        row.addWidget(del_btn)
        col.addLayout(row)
        return col, items, line

    # ── Structure actions ───────────────────────────────────────────────

    @Slot()
    def _on_add_subject(self) -> None:
        if self.context.add_subject(self.subject_input.text()) is not None:
            self.subject_input.clear()
        self._refresh_all()

    @Slot()
    def _on_add_chapter(self) -> None:
        sid = self.context.selected_subject_id
        if sid is None:
            return
        if self.context.add_chapter(sid, self.chapter_input.text()) is not None:
            self.chapter_input.clear()
        self._refresh_all()

    @Slot()
    def _on_add_topic(self) -> None:
        sid, cid = self.context.selected_subject_id, self.context.selected_chapter_id
        if sid is None or cid is None:
            return
        if self.context.add_topic(sid, cid, self.topic_input.text()) is not None:
            self.topic_input.clear()
        self._refresh_all()

    @Slot()
    def _on_delete_subject(self) -> None:
        sid = self.context.selected_subject_id
        if sid is None or not self._confirm("Delete this subject and everything in it?"):
            return
        self.context.delete_subject(sid)
        self._refresh_all()

    @Slot()
    def _on_delete_chapter(self) -> None:
        sid, cid = self.context.selected_subject_id, self.context.selected_chapter_id
        if sid is None or cid is None or not self._confirm("Delete this chapter and its topics?"):
            return
        self.context.delete_chapter(sid, cid)
        self._refresh_all()

    @Slot()
    def _on_delete_topic(self) -> None:
        sid, cid = self.context.selected_subject_id, self.context.selected_chapter_id
        tid = self._current_id(self.topic_list)
        if sid is None or cid is None or tid is None:
            return
        if not self._confirm("Delete this topic and its sessions?"):
            return
        self.context.delete_topic(sid, cid, tid)
        self._refresh_all()

    @Slot()
    def _on_log_time(self) -> None:
        sid, cid = self.context.selected_subject_id, self.context.selected_chapter_id
        if sid is None or cid is None:
            return
        dialog = ManualLogDialog(self)
        if dialog.exec() != QDialog.DialogCode.Accepted:
            return
        added = self.context.log_manual_time(sid, cid, dialog.hours_text, dialog.minutes_text)
        if added == 0:
            logger.info("Manual log added nothing.")
        self._refresh_all()

    # ── Selection ───────────────────────────────────────────────────────

    def _on_subject_selected(self, current: Optional[QListWidgetItem], _previous=None) -> None:
        self.context.select_subject(self._item_id(current))
        self._refresh_all()

    def _on_chapter_selected(self, current: Optional[QListWidgetItem], _previous=None) -> None:
        self.context.select_chapter(self._item_id(current))
        self._refresh_all()

    # ── Timer actions ───────────────────────────────────────────────────

    @Slot()
    def _on_start_timer(self) -> None:
        sid, cid = self.context.selected_subject_id, self.context.selected_chapter_id
        tid = self._current_id(self.topic_list)
        if sid is None or cid is None or tid is None:
            return
        if self.context.start_timer(sid, cid, tid) is not None:
            self._banner_dismissed = False
            self._live_timer.start()
        self._refresh_all()

    @Slot()
    def _on_dismiss_banner(self) -> None:
        self._banner_dismissed = True
        self.focus_banner.setVisible(False)

    @Slot()
    def _on_stop_timer(self) -> None:
        session = self.context.stop_timer()
        self._live_timer.stop()
        if session is not None:
            logger.info("Recorded %s", format_duration(session.duration_seconds))
        self._refresh_all()

    # ── Display ─────────────────────────────────────────────────────────

    @Slot()
    def _update_timer_display(self) -> None:
        timer = self.context.timer
        self.timer_label.setText(format_clock(timer.elapsed_seconds))
        self.focus_banner.setVisible(timer.is_running and not self._banner_dismissed)
        store = self.context.store
        self.save_status_label.setText("" if store.healthy else "Not saved: retrying")
        if not timer.is_running:
            self._live_timer.stop()

    def _refresh_all(self) -> None:
        ctx = self.context
        self._fill_list(self.subject_list, ctx.ledger.subjects, ctx.selected_subject_id)
        subject = ctx.selected_subject
        self._fill_list(self.chapter_list, subject.chapters if subject else [],
                        ctx.selected_chapter_id)
        chapter = ctx.selected_chapter
        self._fill_list(self.topic_list, chapter.topics if chapter else [], None)

        self.btn_log.setEnabled(chapter is not None)
        self.btn_start.setEnabled(chapter is not None and bool(chapter.topics))
        self.btn_stop.setEnabled(ctx.timer.is_running)
        self.target_label.setText(self._target_text())

        exam = app_config.exam_date(self.config)
        left = days_until(exam, ctx.clock.now())
        self.countdown_label.setText(f"{max(left, 0)} days until exam ({exam.isoformat()})")
        self._update_timer_display()

    def _target_text(self) -> str:
        active = self.context.timer.active
        if active is None:
            return "No timer running"
        try:
            subject, chapter, topic = self.context.ledger.get_topic(
                active.subject_id, active.chapter_id, active.topic_id
            )
        except NotFoundError:
            return "Timing a deleted topic"
        return f"Studying: {subject.name} / {chapter.name} / {topic.name}"

    @staticmethod
    def _fill_list(widget: QListWidget, nodes: List, selected_id: Optional[int]) -> None:
        widget.blockSignals(True)
        widget.clear()
        for node in nodes:
            item = QListWidgetItem(f"{node.name}    {format_duration(node.total_time)}")
            item.setData(Qt.ItemDataRole.UserRole, node.id)
            widget.addItem(item)
            if node.id == selected_id:
                widget.setCurrentItem(item)
        widget.blockSignals(False)

    @staticmethod
    def _item_id(item: Optional[QListWidgetItem]) -> Optional[int]:
        return item.data(Qt.ItemDataRole.UserRole) if item is not None else None

    def _current_id(self, widget: QListWidget) -> Optional[int]:
        return self._item_id(widget.currentItem())

    def _confirm(self, question: str) -> bool:
        reply = QMessageBox.question(
            self, "Confirm", question,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        return reply == QMessageBox.StandardButton.Yes

    # ── Misc ────────────────────────────────────────────────────────────

    @Slot(int)
    def _on_tab_changed(self, index: int) -> None:
        if index == 1:  # Stats tab
            self.stats_widget.refresh_data()

    def closeEvent(self, event: QCloseEvent) -> None:
        # A running timer is saved, not stopped; the next launch resumes it.
        self._live_timer.stop()
        self.context.shutdown()
        event.accept()


class ManualLogDialog(QDialog):
    """Asks for hours and minutes to add to a chapter by hand."""

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Log study time")
        self.setMinimumWidth(300)
        layout = QFormLayout(self)

        self.hours_input = QLineEdit()
        self.hours_input.setPlaceholderText("0")
        layout.addRow("Hours:", self.hours_input)

        self.minutes_input = QLineEdit()
        self.minutes_input.setPlaceholderText("0")
        layout.addRow("Minutes:", self.minutes_input)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addRow(buttons)

    # Raw text; the ledger turns anything non-numeric or negative into 0.
    @property
    def hours_text(self) -> str:
        return self.hours_input.text()

    @property
    def minutes_text(self) -> str:
        return self.minutes_input.text()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The study screen: three columns (subjects, chapters, topics), a big
#   stopwatch, start/stop and manual-log buttons, and the Stats tab.
#
# Key classes:
#   - MainWindow: QMainWindow subclass. Receives a ready StudyContext and
#     only translates clicks into context calls, then redraws.
#   - ManualLogDialog: hours/minutes popup for time studied away from the
#     timer.
#
# Data flow:
#   Click → MainWindow slot → StudyContext op → _refresh_all() redraws the
#   lists from context.ledger. A separate 1s QTimer repaints the clock.
#
# Interviewer-friendly talking points:
#   1. The window owns no state of its own: selection lives in the context
#      too, so it survives a redraw and is testable without Qt.
#   2. blockSignals() while repopulating lists stops currentItemChanged
#      from firing selection changes in the middle of a redraw.
#   3. Closing the window keeps a running timer: shutdown() checkpoints it
#      and the next launch resumes counting from the saved seconds.
