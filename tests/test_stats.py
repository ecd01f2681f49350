"""Unit tests for the stats aggregator."""

import time
from datetime import date, datetime, timedelta, timezone

import pytest

from studyfocus.services.ledger_service import StudyLedger
from studyfocus.services.stats_service import (
    Granularity, StatsAggregator, StatsBucket, chart_ceiling,
)

# Monday
REFERENCE = datetime(2026, 10, 19, 21, 0, tzinfo=timezone.utc)


def _at(y, m, d, h=12, mi=0) -> datetime:
    return datetime(y, m, d, h, mi, tzinfo=timezone.utc)


@pytest.fixture
def ledger(clock):
    return StudyLedger(clock)


@pytest.fixture
def topic_ids(ledger):
    s = ledger.add_subject("Physics")
    c = ledger.add_chapter(s.id, "Mechanics")
    t = ledger.add_topic(s.id, c.id, "Kinematics")
    return s.id, c.id, t.id


@pytest.fixture
def record(ledger, topic_ids):
    def _record(seconds: int, at: datetime) -> None:
        ledger.apply_session(*topic_ids, seconds, at=at)
    return _record


@pytest.fixture
def agg():
    return StatsAggregator()


@pytest.fixture
def eastern_system_zone(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "EST5EDT,M3.2.0,M11.1.0")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


class TestDaily:
    def test_seven_buckets_oldest_first(self, agg, ledger):
        buckets = agg.buckets(ledger.subjects, Granularity.DAILY, REFERENCE)
        assert [b.label for b in buckets] == ["Tue", "Wed", "Thu", "Fri", "Sat", "Sun", "Mon"]
        assert buckets[0].start == date(2026, 10, 13)
        assert buckets[-1].start == buckets[-1].end == date(2026, 10, 19)
        assert all(b.hours == 0.0 for b in buckets)

    def test_same_day_sessions_sum(self, agg, ledger, record):
        record(3600, _at(2026, 10, 19, 9))
        record(1800, _at(2026, 10, 19, 20))
        buckets = agg.buckets(ledger.subjects, Granularity.DAILY, REFERENCE)
        assert buckets[-1].hours == 1.5
        assert sum(b.hours for b in buckets[:-1]) == 0.0

    def test_window_edges(self, agg, ledger, record):
        record(3600, _at(2026, 10, 13, 0, 0))    # six days back: first bucket
        record(7200, _at(2026, 10, 12, 23, 59))  # seven days back: out
        record(7200, _at(2026, 10, 20, 1))       # after the reference day: out
        buckets = agg.buckets(ledger.subjects, Granularity.DAILY, REFERENCE)
        assert [b.hours for b in buckets] == [1.0, 0, 0, 0, 0, 0, 0]

    def test_timezone_shifts_day(self, ledger, record):
        record(3600, _at(2026, 10, 18, 23, 30))
        utc = StatsAggregator(tz=timezone.utc).buckets(ledger.subjects, Granularity.DAILY, REFERENCE)
        plus2 = StatsAggregator(tz=timezone(timedelta(hours=2))).buckets(
            ledger.subjects, Granularity.DAILY, REFERENCE)
        assert utc[-2].hours == 1.0      # Sunday in UTC
        assert plus2[-1].hours == 1.0    # already Monday at +02:00

    def test_system_zone_uses_offset_of_each_instant(self, ledger, record, eastern_system_zone):
        # 04:30Z on 1 July is 00:30 EDT, but 23:30 on 30 June at the winter offset
        record(3600, _at(2026, 7, 1, 4, 30))
        buckets = StatsAggregator(tz=None).buckets(
            ledger.subjects, Granularity.MONTHLY, _at(2026, 12, 15))
        assert buckets[0].label == "Jul"
        assert buckets[0].hours == 1.0
        assert sum(b.hours for b in buckets) == 1.0

    def test_naive_reference_read_in_stats_timezone(self, agg, ledger, record):
        record(3600, _at(2026, 10, 19, 9))
        buckets = agg.buckets(ledger.subjects, Granularity.DAILY, datetime(2026, 10, 19, 12))
        assert buckets[-1].hours == 1.0


class TestWeekly:
    def test_labels_and_ranges(self, agg, ledger):
        buckets = agg.buckets(ledger.subjects, Granularity.WEEKLY, REFERENCE)
        assert [b.label for b in buckets] == ["3 weeks ago", "2 weeks ago", "1 week ago", "This Week"]
        # Weeks start on Sunday by default.
        assert buckets[-1].start == date(2026, 10, 18)
        assert buckets[-1].end == date(2026, 10, 24)
        assert buckets[0].start == date(2026, 9, 27)

    def test_sunday_boundary(self, agg, ledger, record):
        record(3600, _at(2026, 10, 18, 0, 5))   # Sunday: this week
        record(1800, _at(2026, 10, 17, 23, 55))  # Saturday: last week
        buckets = agg.buckets(ledger.subjects, Granularity.WEEKLY, REFERENCE)
        assert buckets[-1].hours == 1.0
        assert buckets[-2].hours == 0.5

    def test_monday_week_start(self, ledger, record):
        record(3600, _at(2026, 10, 18, 12))     # Sunday
        agg = StatsAggregator(week_starts_on=0)
        buckets = agg.buckets(ledger.subjects, Granularity.WEEKLY, REFERENCE)
        assert buckets[-1].start == date(2026, 10, 19)
        assert buckets[-1].hours == 0.0
        assert buckets[-2].hours == 1.0

    def test_older_than_four_weeks_excluded(self, agg, ledger, record):
        record(3600, _at(2026, 9, 26, 12))
        buckets = agg.buckets(ledger.subjects, Granularity.WEEKLY, REFERENCE)
        assert sum(b.hours for b in buckets) == 0.0


class TestMonthly:
    def test_six_months(self, agg, ledger):
        buckets = agg.buckets(ledger.subjects, Granularity.MONTHLY, REFERENCE)
        assert [b.label for b in buckets] == ["May", "Jun", "Jul", "Aug", "Sep", "Oct"]
        assert buckets[-1].start == date(2026, 10, 1)
        assert buckets[-1].end == date(2026, 10, 31)
        assert buckets[1].end == date(2026, 6, 30)

    def test_year_wrap(self, agg, ledger, record):
        record(7200, _at(2026, 12, 5))
        buckets = agg.buckets(ledger.subjects, Granularity.MONTHLY, _at(2027, 2, 10))
        assert [b.label for b in buckets] == ["Sep", "Oct", "Nov", "Dec", "Jan", "Feb"]
        assert buckets[3].hours == 2.0
        assert buckets[0].start == date(2026, 9, 1)

    def test_month_edges(self, agg, ledger, record):
        record(3600, _at(2026, 10, 1, 0, 0))
        record(3600, _at(2026, 4, 30, 23, 59))   # before the window
        buckets = agg.buckets(ledger.subjects, Granularity.MONTHLY, REFERENCE)
        assert buckets[-1].hours == 1.0
        assert sum(b.hours for b in buckets) == 1.0


class TestGeneral:
    def test_unknown_granularity(self, agg, ledger):
        with pytest.raises(ValueError):
            agg.buckets(ledger.subjects, "yearly", REFERENCE)

    def test_deterministic(self, agg, ledger, record):
        record(1234, _at(2026, 10, 15))
        record(4321, _at(2026, 8, 2))
        for g in Granularity.ALL:
            assert agg.buckets(ledger.subjects, g, REFERENCE) == agg.buckets(ledger.subjects, g, REFERENCE)

    def test_manual_time_not_bucketed(self, agg, ledger, topic_ids):
        sid, cid, _ = topic_ids
        ledger.apply_manual_log(sid, cid, 3, 0)
        buckets = agg.buckets(ledger.subjects, Granularity.DAILY, REFERENCE)
        assert sum(b.hours for b in buckets) == 0.0
        assert agg.summary(ledger.subjects, REFERENCE).total_seconds == 3 * 3600

    def test_chart_ceiling(self):
        assert chart_ceiling([]) == 1.0
        bucket = StatsBucket("Mon", 2.5, date(2026, 10, 19), date(2026, 10, 19))
        assert chart_ceiling([bucket]) == 2.5


class TestSummary:
    def test_average_per_day(self, agg, ledger, record):
        for day in range(13, 20):
            record(3600, _at(2026, 10, day))
        summary = agg.summary(ledger.subjects, REFERENCE)
        assert summary.average_per_day_seconds == 3600

    def test_average_floors(self, agg, ledger, record):
        record(100, _at(2026, 10, 19))
        assert agg.summary(ledger.subjects, REFERENCE).average_per_day_seconds == 14

    def test_average_ignores_old_sessions(self, agg, ledger, record):
        record(7200, _at(2026, 9, 1))
        assert agg.summary(ledger.subjects, REFERENCE).average_per_day_seconds == 0

    def test_breakdown(self, agg, ledger, record, topic_ids):
        other = ledger.add_subject("Chemistry")
        chap = ledger.add_chapter(other.id, "Organic")
        ledger.apply_manual_log(other.id, chap.id, 1, 0)
        record(3600 * 3, _at(2026, 10, 19))
        summary = agg.summary(ledger.subjects, REFERENCE)
        assert summary.subject_count == 2
        assert summary.total_seconds == 4 * 3600
        physics, chemistry = summary.breakdown
        assert physics.name == "Physics"
        assert physics.share == 0.75
        assert chemistry.chapters == (("Organic", 3600),)

    def test_empty_ledger(self, agg, ledger):
        summary = agg.summary(ledger.subjects, REFERENCE)
        assert summary.total_seconds == 0
        assert summary.average_per_day_seconds == 0
        assert summary.breakdown == ()
