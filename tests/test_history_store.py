import sqlite3

import pytest

from services.history_store import HistoryStore, HistoryStoreError


def test_record_start_reuses_open_record(history):
    first_id = history.record_start("a.mp3", 600.4)
    second_id = history.record_start("a.mp3", 600.4)

    assert first_id == second_id
    records = history.file_history("a.mp3")
    assert len(records) == 1
    assert records[0].duration == 600
    assert records[0].is_open


def test_record_completion_closes_open_record(history):
    history.record_start("a.mp3")

    assert history.record_completion("a.mp3") == 1

    record = history.file_history("a.mp3")[0]
    assert not record.is_open
    assert record.completed_at is not None


def test_record_completion_without_open_record(history):
    assert history.record_completion("missing.mp3") == 0

    history.record_start("a.mp3")
    history.record_completion("a.mp3")
    assert history.record_completion("a.mp3") == 0


def test_new_start_after_completion_creates_record(history):
    history.record_start("a.mp3")
    history.record_completion("a.mp3")
    history.record_start("a.mp3")

    records = history.file_history("a.mp3")
    assert len(records) == 2
    assert sum(record.is_open for record in records) == 1


def test_completion_stats_count_start_records_only(history):
    history.record_start("a.mp3")
    history.record_completion("a.mp3")
    history.record_start("b.mp3")
    history.record_recent_play("a.mp3")

    stats = history.completion_stats()

    assert stats.total == 2
    assert stats.completed == 1
    assert stats.rate == 50.0


def test_completion_stats_empty(history):
    stats = history.completion_stats()

    assert stats.total == 0
    assert stats.rate == 0.0


def test_recent_history_newest_first(history):
    history.record_recent_play("a.mp3", 300)
    history.record_recent_play("b.mp3", 400)
    history.record_start("c.mp3")

    records = history.recent_history(limit=10)

    assert [record.filename for record in records] == ["b.mp3", "a.mp3"]
    assert all(record.entry_type == "recent" for record in records)


def test_recent_history_respects_limit(history):
    for i in range(5):
        history.record_recent_play(f"f{i}.mp3")

    assert len(history.recent_history(limit=3)) == 3


def test_upgrades_old_schema(tmp_path):
    db_path = tmp_path / "meditations.db"
    db = sqlite3.connect(db_path)
    db.execute(
        "CREATE TABLE meditations (id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "filename TEXT NOT NULL, played_at DATETIME NOT NULL)"
    )
    db.execute("INSERT INTO meditations (filename, played_at) VALUES ('old.mp3', '2024-01-01 10:00:00')")
    db.commit()
    db.close()

    store = HistoryStore(db_path)
    try:
        records = store.file_history("old.mp3")
        assert len(records) == 1
        assert records[0].entry_type == "start"
        assert records[0].is_open

        assert store.record_completion("old.mp3") == 1
        assert store.completion_stats().completed == 1
    finally:
        store.close()


def test_persists_across_connections(tmp_path):
    db_path = tmp_path / "data" / "meditations.db"
    store = HistoryStore(db_path)
    store.record_start("a.mp3")
    store.close()

    reopened = HistoryStore(db_path)
    try:
        assert len(reopened.file_history("a.mp3")) == 1
    finally:
        reopened.close()


def test_closed_store_raises():
    store = HistoryStore()
    store.close()

    with pytest.raises(HistoryStoreError):
        store.record_start("a.mp3")
    with pytest.raises(HistoryStoreError):
        store.completion_stats()


def test_unopenable_database_raises(tmp_path):
    with pytest.raises(HistoryStoreError):
        HistoryStore(tmp_path)
