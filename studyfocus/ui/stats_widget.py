"""
Stats Widget — overview cards, hours chart and per-subject breakdown.

Reads everything through StudyContext.stats() / summary(); the granularity
combo picks daily, weekly or monthly buckets.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import (
    QComboBox, QFileDialog, QFrame, QHBoxLayout, QLabel, QMessageBox,
    QPushButton, QScrollArea, QSizePolicy, QVBoxLayout, QWidget,
)
from PySide6.QtCharts import QChartView

from studyfocus.services.formatting import format_duration
from studyfocus.services.stats_service import Granularity
from studyfocus.services.study_context import StudyContext
from studyfocus.ui import plot_backend

logger = logging.getLogger(__name__)

_BG      = "#191919"
_SURFACE = "#252525"
_HOVER   = "#2f2f2f"
_BORDER  = "#333333"
_TEXT    = "#e3e3e3"
_MUTED   = "#9b9a97"
_DIM     = "#5a5a5a"


class MetricCard(QFrame):
    """Small card: big coloured value over a muted label."""

    def __init__(self, label: str, accent: str = "#58C4DD",
                 tooltip: str = "",
                 parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setMinimumWidth(120)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.setFixedHeight(70)
        self.setStyleSheet(f"""
            MetricCard {{
                background-color: {_SURFACE};
                border-radius: 6px;
                border: 1px solid {_BORDER};
            }}
            MetricCard:hover {{ background-color: {_HOVER}; }}
        """)
        if tooltip:
            self.setToolTip(tooltip)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(14, 10, 14, 8)
        layout.setSpacing(2)

        self.value_label = QLabel("—")
        self.value_label.setStyleSheet(
            f"font-size: 20px; font-weight: 500; color: {accent}; background: transparent;"
        )
        name_label = QLabel(label.lower())
        name_label.setStyleSheet(
            f"font-size: 9px; color: {_DIM}; background: transparent; letter-spacing: 0.5px;"
        )
        layout.addWidget(self.value_label)
        layout.addWidget(name_label)

    def set_text(self, text: str) -> None:
        self.value_label.setText(text)


class SectionHeader(QLabel):
    def __init__(self, text: str, parent: Optional[QWidget] = None) -> None:
        super().__init__(text.lower(), parent)
        self.setContentsMargins(2, 16, 0, 6)
        self.setStyleSheet(f"""
            font-size: 11px; font-weight: 600; color: {_MUTED};
            background: transparent; letter-spacing: 1px;
        """)


class ChartSlot(QFrame):
    """Holds one QChartView; set_chart() swaps it out on refresh."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setStyleSheet(f"""
            ChartSlot {{
                background-color: {_SURFACE};
                border-radius: 8px;
                border: 1px solid {_BORDER};
            }}
        """)
        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(2, 2, 2, 2)
        self._current_view: Optional[QChartView] = None
        self.setMinimumHeight(240)

    def set_chart(self, view: QChartView) -> None:
        if self._current_view is not None:
            self._layout.removeWidget(self._current_view)
            self._current_view.deleteLater()
        self._current_view = view
        self._layout.addWidget(view)


class StatsWidget(QWidget):
    """The Stats tab."""

    def __init__(self, context: StudyContext, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.context = context
        self._setup_ui()

    def _setup_ui(self) -> None:
        outer = QVBoxLayout(self)
        outer.setContentsMargins(0, 0, 0, 0)

        # ── Header ────────────────────────────────────────────────────
        header = QWidget()
        header.setStyleSheet(f"background-color: {_BG}; border-bottom: 1px solid {_BORDER};")
        header.setFixedHeight(46)
        hl = QHBoxLayout(header)
        hl.setContentsMargins(24, 0, 24, 0)

        title = QLabel("statistics")
        title.setStyleSheet(f"font-size: 13px; font-weight: 600; color: {_MUTED}; "
                            "background: transparent; letter-spacing: 1.5px;")
        hl.addWidget(title)
        hl.addStretch()

        self.granularity_combo = QComboBox()
        for g in Granularity.ALL:
            self.granularity_combo.addItem(g.capitalize(), g)
        self.granularity_combo.currentIndexChanged.connect(self.refresh_data)
        hl.addWidget(self.granularity_combo)

        export_btn = QPushButton("export csv")
        export_btn.clicked.connect(self._on_export)
        hl.addWidget(export_btn)
        outer.addWidget(header)

        # ── Scrollable content ────────────────────────────────────────
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        content = QWidget()
        content.setStyleSheet(f"background: {_BG};")
        cl = QVBoxLayout(content)
        cl.setContentsMargins(24, 20, 24, 24)
        cl.setSpacing(14)

        cl.addWidget(SectionHeader("overview"))
        cards = QHBoxLayout()
        cards.setSpacing(8)
        self.card_total = MetricCard("total study time", "#83C167")
        self.card_subjects = MetricCard("subjects", "#58C4DD")
        self.card_average = MetricCard(
            "avg per day", "#F4D345",
            "Timed sessions over the last 7 days, divided by 7.\n"
            "Hand-logged time is not included.",
        )
        for c in (self.card_total, self.card_subjects, self.card_average):
            cards.addWidget(c)
        cl.addLayout(cards)

        cl.addWidget(SectionHeader("hours"))
        self.chart_hours = ChartSlot()
        cl.addWidget(self.chart_hours)

        cl.addWidget(SectionHeader("breakdown"))
        self.chart_breakdown = ChartSlot()
        cl.addWidget(self.chart_breakdown)
        self.breakdown_label = QLabel("")
        self.breakdown_label.setWordWrap(True)
        self.breakdown_label.setStyleSheet(f"color: {_TEXT}; background: transparent;")
        cl.addWidget(self.breakdown_label)

        cl.addStretch()
        scroll.setWidget(content)
        outer.addWidget(scroll)

    @property
    def granularity(self) -> str:
        return self.granularity_combo.currentData() or Granularity.DAILY

    @Slot()
    def refresh_data(self) -> None:
        granularity = self.granularity
        buckets = self.context.stats(granularity)
        summary = self.context.summary()

        self.card_total.set_text(format_duration(summary.total_seconds))
        self.card_subjects.set_text(str(summary.subject_count))
        self.card_average.set_text(format_duration(summary.average_per_day_seconds))

        self.chart_hours.set_chart(plot_backend.plot_study_hours(buckets, granularity))
        self.chart_breakdown.set_chart(plot_backend.plot_subject_breakdown(summary))

        lines = []
        for share in summary.breakdown:
            chapters = ", ".join(
                f"{name} {format_duration(seconds)}" for name, seconds in share.chapters
            )
            lines.append(
                f"<b>{share.name}</b>: {format_duration(share.total_seconds)}"
                + (f"  ({chapters})" if chapters else "")
            )
        self.breakdown_label.setText("<br>".join(lines))
        logger.info("Stats refreshed: %s, %d bucket(s)", granularity, len(buckets))

    @Slot()
    def _on_export(self) -> None:
        text = self.context.export_sessions_csv()
        if not text:
            QMessageBox.information(self, "Export", "No sessions to export yet.")
            return
        path, _ = QFileDialog.getSaveFileName(
            self, "Export sessions", "study_sessions.csv", "CSV files (*.csv)"
        )
        if not path:
            return
        try:
            Path(path).write_text(text, encoding="utf-8")
        except OSError as exc:
            logger.error("CSV export to %s failed: %s", path, exc)
            QMessageBox.warning(self, "Export failed", str(exc))
            return
        logger.info("Exported sessions to %s", path)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The Stats tab: three overview cards, a bar chart of hours per day /
#   week / month and a per-subject breakdown, plus CSV export.
#
# Key points:
#   - The widget never aggregates anything itself. It asks the context for
#     buckets and a summary and only formats them.
#   - Chart views are rebuilt on each refresh and swapped into a ChartSlot;
#     the old view is deleteLater()'d so Qt frees it on the event loop.
#
# Interviewer-friendly talking points:
#   1. Keeping math out of widgets means every number on this screen is
#      covered by tests that never create a QApplication.
