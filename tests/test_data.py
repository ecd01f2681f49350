"""Unit tests for the data layer (models, database, repository, snapshot store, config)."""

import json
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from studyfocus import config as app_config
from studyfocus.data.database import Database
from studyfocus.data.models import (
    ActiveTimer, AppSnapshot, Chapter, Session, Subject, Topic,
    format_instant, parse_instant,
)
from studyfocus.data.repository import Repository
from studyfocus.errors import PersistenceError
from studyfocus.services.persistence_service import DEFAULT_STORAGE_KEY, SnapshotStore


def _sample_snapshot() -> AppSnapshot:
    topic = Topic(id=3, name="Kinematics", total_time=125,
                  sessions=[Session("2026-10-19T09:30:00.000Z", 125)])
    chapter = Chapter(id=2, name="Mechanics", topics=[topic], total_time=125 + 1800)
    subject = Subject(id=1, name="Physics", chapters=[chapter], total_time=125 + 1800)
    return AppSnapshot(subjects=[subject], active_timer=ActiveTimer(1, 2, 3), timer_seconds=42)


class TestModels:
    def test_format_instant_is_utc_with_millis(self):
        moment = datetime(2026, 10, 19, 8, 15, tzinfo=timezone(timedelta(hours=2)))
        assert format_instant(moment) == "2026-10-19T06:15:00.000Z"

    def test_parse_instant_reads_z_suffix(self):
        parsed = parse_instant("2026-10-19T06:15:00.000Z")
        assert parsed == datetime(2026, 10, 19, 6, 15, tzinfo=timezone.utc)

    def test_naive_instant_treated_as_utc(self):
        assert parse_instant("2026-10-19T06:15:00").tzinfo is not None

    def test_session_uses_stored_key_names(self):
        s = Session("2026-10-19T06:15:00.000Z", 90)
        assert s.to_dict() == {"date": "2026-10-19T06:15:00.000Z", "duration": 90}

    def test_session_rejects_unparseable_date(self):
        with pytest.raises(ValueError):
            Session.from_dict({"date": "garbage", "duration": 60})

    def test_session_is_immutable(self):
        s = Session("2026-10-19T06:15:00.000Z", 90)
        with pytest.raises(Exception):
            s.duration_seconds = 10

    def test_manual_time_is_residual(self):
        topic = Topic(id=3, name="t", total_time=100)
        chapter = Chapter(id=2, name="c", topics=[topic], total_time=700)
        assert chapter.manual_time == 600

    def test_snapshot_json_shape(self):
        data = _sample_snapshot().to_dict()
        assert set(data) == {"subjects", "activeTimer", "timerSeconds"}
        assert data["activeTimer"] == {"subjectId": 1, "chapterId": 2, "topicId": 3}
        assert data["subjects"][0]["totalTime"] == 1925

    def test_snapshot_from_dict_restores_everything(self):
        original = _sample_snapshot()
        restored = AppSnapshot.from_dict(json.loads(json.dumps(original.to_dict())))
        assert restored == original

    def test_timer_seconds_ignored_without_timer(self):
        snap = AppSnapshot.from_dict({"subjects": [], "activeTimer": None, "timerSeconds": 99})
        assert snap.active_timer is None
        assert snap.timer_seconds == 0

    def test_snapshot_must_be_object(self):
        with pytest.raises(ValueError):
            AppSnapshot.from_dict([1, 2, 3])

    def test_missing_optional_fields_default(self):
        snap = AppSnapshot.from_dict({"subjects": [{"id": 5, "name": "Maths"}]})
        assert snap.subjects[0].chapters == []
        assert snap.subjects[0].total_time == 0


class TestDatabase:
    def test_connect_creates_kv_table(self):
        db = Database(db_path=Path(":memory:"))
        conn = db.connect()
        tables = {r["name"] for r in conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'")}
        assert "kv_store" in tables
        db.close()
        assert db.conn is None

    def test_connect_is_idempotent(self):
        db = Database(db_path=Path(":memory:"))
        assert db.connect() is db.connect()
        db.close()

    def test_file_database(self, tmp_path):
        db = Database(db_path=tmp_path / "study.db")
        Repository(db.connect()).save("k", "v")
        db.close()
        db2 = Database(db_path=tmp_path / "study.db")
        assert Repository(db2.connect()).get("k") == "v"
        db2.close()


class TestRepository:
    def test_get_missing_is_none(self, repo: Repository):
        assert repo.get("nothing-here") is None

    def test_save_and_get(self, repo: Repository):
        repo.save(DEFAULT_STORAGE_KEY, '{"subjects": []}')
        assert repo.get(DEFAULT_STORAGE_KEY) == '{"subjects": []}'

    def test_save_overwrites(self, repo: Repository):
        repo.save("k", "one")
        repo.save("k", "two")
        assert repo.get("k") == "two"
        assert repo.keys() == ["k"]

    def test_updated_at_recorded(self, repo: Repository):
        repo.save("k", "v")
        assert repo.updated_at("k").endswith("Z")
        assert repo.updated_at("missing") is None

    def test_delete(self, repo: Repository):
        repo.save("a", "1")
        repo.save("b", "2")
        repo.delete("a")
        assert repo.keys() == ["b"]

    def test_driver_errors_become_persistence_errors(self, conn):
        repo = Repository(conn)
        conn.close()
        with pytest.raises(PersistenceError):
            repo.save("k", "v")
        with pytest.raises(PersistenceError):
            repo.get("k")


class TestSnapshotStore:
    def test_empty_storage_loads_empty(self, adapter):
        store = SnapshotStore(adapter, background=False)
        snap = store.load()
        assert snap.subjects == []
        assert snap.active_timer is None

    def test_save_then_load(self, repo):
        store = SnapshotStore(repo, background=False)
        store.save(_sample_snapshot())
        assert store.load() == _sample_snapshot()
        assert json.loads(repo.get(DEFAULT_STORAGE_KEY))["timerSeconds"] == 42

    def test_custom_key(self, adapter):
        store = SnapshotStore(adapter, key="other", background=False)
        store.save(AppSnapshot.empty())
        assert list(adapter.data) == ["other"]

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"subjects": [{"name": "x"}]}'])
    def test_corrupt_blob_loads_empty(self, adapter, raw):
        adapter.data[DEFAULT_STORAGE_KEY] = raw
        assert SnapshotStore(adapter, background=False).load() == AppSnapshot.empty()

    def test_bad_session_date_loads_empty(self, adapter):
        topic = {"id": 3, "name": "Limits", "totalTime": 60,
                 "sessions": [{"date": "garbage", "duration": 60}]}
        chapter = {"id": 2, "name": "Calculus", "totalTime": 60, "topics": [topic]}
        blob = {"subjects": [{"id": 1, "name": "Maths", "totalTime": 60, "chapters": [chapter]}]}
        adapter.data[DEFAULT_STORAGE_KEY] = json.dumps(blob)
        assert SnapshotStore(adapter, background=False).load() == AppSnapshot.empty()

    def test_load_failure_loads_empty(self, adapter):
        adapter.fail_loads = True
        store = SnapshotStore(adapter, background=False)
        assert store.load() == AppSnapshot.empty()
        assert store.last_error is not None

    def test_failed_save_is_counted_not_raised(self, adapter):
        adapter.fail_saves = True
        store = SnapshotStore(adapter, background=False)
        store.save(_sample_snapshot())
        store.save(_sample_snapshot())
        assert store.failed_writes == 2
        assert not store.healthy

        adapter.fail_saves = False
        store.save(_sample_snapshot())
        assert store.healthy
        assert store.last_error is None
        assert DEFAULT_STORAGE_KEY in adapter.data

    def test_background_save_completes(self, adapter):
        store = SnapshotStore(adapter, background=True)
        future = store.save(_sample_snapshot())
        assert future.result(timeout=5) is True
        store.close()
        assert AppSnapshot.from_dict(json.loads(adapter.data[DEFAULT_STORAGE_KEY])) == _sample_snapshot()

    def test_background_writes_keep_order(self, adapter):
        store = SnapshotStore(adapter, background=True)
        for seconds in range(1, 21):
            store.save(AppSnapshot(active_timer=ActiveTimer(1, 2, 3), timer_seconds=seconds))
        store.close()
        assert json.loads(adapter.data[DEFAULT_STORAGE_KEY])["timerSeconds"] == 20


class TestConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert app_config.load_config(tmp_path / "none.json") == app_config.DEFAULT_CONFIG

    def test_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"week_starts_on": 0, "bogus": 1}), encoding="utf-8")
        cfg = app_config.load_config(path)
        assert cfg["week_starts_on"] == 0
        assert cfg["storage_key"] == "study-app-data"
        assert "bogus" not in cfg

    def test_bad_json_gives_defaults(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text("{nope", encoding="utf-8")
        assert app_config.load_config(path) == app_config.DEFAULT_CONFIG

    def test_save_config_round_trip(self, tmp_path):
        path = tmp_path / "sub" / "cfg.json"
        cfg = dict(app_config.DEFAULT_CONFIG, exam_date="2027-06-01")
        app_config.save_config(cfg, path)
        assert app_config.load_config(path)["exam_date"] == "2027-06-01"

    def test_stats_timezone(self):
        assert app_config.stats_timezone({"stats_timezone": "utc"}) is timezone.utc
        assert app_config.stats_timezone({"stats_timezone": "local"}) is None

    def test_exam_date_falls_back(self):
        assert app_config.exam_date({"exam_date": "2027-03-04"}) == date(2027, 3, 4)
        assert app_config.exam_date({"exam_date": "soon"}) == date(2027, 1, 1)
