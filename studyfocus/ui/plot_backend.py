"""
Chart Backend — study-hours bar charts on QtCharts.

Each public function takes already-aggregated data (buckets or a summary)
and returns an interactive QChartView with hover tooltips. No aggregation
happens here.
"""

from __future__ import annotations

import logging
from typing import Sequence

from PySide6.QtCore import Qt, QMargins
from PySide6.QtGui import QBrush, QColor, QCursor, QFont, QPainter
from PySide6.QtWidgets import QToolTip
from PySide6.QtCharts import (
    QBarCategoryAxis, QBarSeries, QBarSet, QChart, QChartView,
    QHorizontalBarSeries, QValueAxis,
)

from studyfocus.services.formatting import format_duration
from studyfocus.services.stats_service import StatsBucket, StudySummary, chart_ceiling

logger = logging.getLogger(__name__)

# ── Notion dark palette ──────────────────────────────────────────────────────
BG       = QColor("#191919")
MUTED    = QColor("#9b9a97")
DIM      = QColor("#5a5a5a")
GRID_CLR = QColor("#2a2a2a")

BLUE   = "#58C4DD"
GREEN  = "#83C167"
GOLD   = "#F4D345"
PURPLE = "#9A72AC"

BAR_COLORS = {"daily": BLUE, "weekly": GREEN, "monthly": PURPLE}


def _base_chart(title: str = "") -> QChart:
    chart = QChart()
    chart.setBackgroundBrush(QBrush(BG))
    chart.setBackgroundRoundness(0)
    chart.setMargins(QMargins(8, 8, 8, 8))
    if title:
        chart.setTitle(title)
        chart.setTitleFont(QFont("Segoe UI", 10))
        chart.setTitleBrush(QBrush(MUTED))
    chart.legend().setVisible(False)
    chart.setAnimationOptions(QChart.AnimationOption.SeriesAnimations)
    chart.setAnimationDuration(400)
    return chart


def _value_axis(label: str = "") -> QValueAxis:
    axis = QValueAxis()
    axis.setLabelsColor(DIM)
    axis.setLabelsFont(QFont("Segoe UI", 8))
    axis.setGridLineColor(GRID_CLR)
    axis.setLineVisible(False)
    axis.setMinorGridLineVisible(False)
    axis.setTitleText(label)
    axis.setTitleBrush(QBrush(DIM))
    axis.setTitleFont(QFont("Segoe UI", 8))
    return axis


def _cat_axis(categories: list) -> QBarCategoryAxis:
    axis = QBarCategoryAxis()
    axis.append(categories)
    axis.setLabelsColor(MUTED)
    axis.setLabelsFont(QFont("Segoe UI", 8))
    axis.setGridLineVisible(False)
    axis.setLineVisible(False)
    return axis


def make_chart_view(chart: QChart) -> QChartView:
    view = QChartView(chart)
    view.setRenderHint(QPainter.RenderHint.Antialiasing)
    view.setStyleSheet("background: transparent; border: none;")
    view.setMinimumHeight(220)
    return view


# ── Public chart functions ───────────────────────────────────────────────────

def plot_study_hours(buckets: Sequence[StatsBucket], granularity: str) -> QChartView:
    """Vertical bars, one per bucket, oldest on the left."""
    chart = _base_chart(f"{granularity} study hours")
    labels = [b.label for b in buckets]

    bar_set = QBarSet("hours")
    bar_set.setColor(QColor(BAR_COLORS.get(granularity, BLUE)))
    bar_set.setBorderColor(QColor(0, 0, 0, 0))
    for b in buckets:
        bar_set.append(b.hours)

    series = QBarSeries()
    series.append(bar_set)
    series.setBarWidth(0.6)

    def _hover(status, idx, barset):
        if status and 0 <= idx < len(buckets):
            b = buckets[idx]
            span = b.start.isoformat() if b.start == b.end else f"{b.start} to {b.end}"
            QToolTip.showText(QCursor.pos(), f"{b.label} ({span}): {b.hours:.1f}h")

    series.hovered.connect(_hover)
    chart.addSeries(series)

    x_axis = _cat_axis(labels)
    y_axis = _value_axis("hours")
    chart.addAxis(x_axis, Qt.AlignmentFlag.AlignBottom)
    chart.addAxis(y_axis, Qt.AlignmentFlag.AlignLeft)
    series.attachAxis(x_axis)
    series.attachAxis(y_axis)

    y_axis.setRange(0, chart_ceiling(buckets) * 1.15)
    return make_chart_view(chart)


def plot_subject_breakdown(summary: StudySummary) -> QChartView:
    """Horizontal bars of total hours per subject."""
    chart = _base_chart("time by subject")
    shares = list(summary.breakdown)
    if not shares:
        chart.setTitle("time by subject: no subjects yet")
        return make_chart_view(chart)

    names = [s.name for s in shares]
    bar_set = QBarSet("subjects")
    bar_set.setColor(QColor(GOLD))
    bar_set.setBorderColor(QColor(0, 0, 0, 0))
    for s in shares:
        bar_set.append(s.total_seconds / 3600.0)

    series = QHorizontalBarSeries()
    series.append(bar_set)
    series.setBarWidth(0.5)

    def _hover(status, idx, barset):
        if status and 0 <= idx < len(shares):
            s = shares[idx]
            QToolTip.showText(
                QCursor.pos(),
                f"{s.name}: {format_duration(s.total_seconds)} ({s.share * 100:.0f}%)",
            )

    series.hovered.connect(_hover)
    chart.addSeries(series)

    x_axis = _value_axis("hours")
    y_axis = _cat_axis(names)
    chart.addAxis(x_axis, Qt.AlignmentFlag.AlignBottom)
    chart.addAxis(y_axis, Qt.AlignmentFlag.AlignLeft)
    series.attachAxis(x_axis)
    series.attachAxis(y_axis)

    top = max(s.total_seconds for s in shares) / 3600.0
    x_axis.setRange(0, max(top, 1.0) * 1.15)
    return make_chart_view(chart)
