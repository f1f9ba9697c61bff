import json
import random

from models.track import Track
from services.file_selector import RandomFileSelector, RecentlyPlayedWindow, SessionHistory


def test_window_evicts_oldest_beyond_limit(tmp_path):
    window = RecentlyPlayedWindow(tmp_path / "recent.json", limit=10)

    for i in range(11):
        window.add(f"f{i}.mp3")

    assert window.names == [f"f{i}.mp3" for i in range(1, 11)]
    assert "f0.mp3" not in window
    assert len(window) == 10


def test_window_persists_and_reloads(tmp_path):
    path = tmp_path / "recent.json"
    window = RecentlyPlayedWindow(path)
    window.add("a.mp3")
    window.add("b.mp3")

    data = json.loads(path.read_text())
    assert data["recently_played"] == ["a.mp3", "b.mp3"]
    assert "timestamp" in data

    assert RecentlyPlayedWindow(path).names == ["a.mp3", "b.mp3"]


def test_window_truncates_oversized_file(tmp_path):
    path = tmp_path / "recent.json"
    path.write_text(json.dumps({"recently_played": [f"f{i}.mp3" for i in range(15)]}))

    window = RecentlyPlayedWindow(path, limit=10)

    assert window.names == [f"f{i}.mp3" for i in range(5, 15)]


def test_window_ignores_corrupt_file(tmp_path):
    path = tmp_path / "recent.json"
    path.write_text("{not json")

    assert RecentlyPlayedWindow(path).names == []


def test_window_ignores_wrong_shape(tmp_path):
    path = tmp_path / "recent.json"
    path.write_text(json.dumps({"recently_played": "a.mp3"}))

    assert RecentlyPlayedWindow(path).names == []


def test_window_write_failure_is_not_raised(tmp_path):
    window = RecentlyPlayedWindow(tmp_path)

    window.add("a.mp3")

    assert window.names == ["a.mp3"]


def test_session_history_back_navigation(tracks):
    history = SessionHistory()
    assert history.current is None
    assert history.back() is None

    for track in tracks:
        history.push(track)

    assert history.current == tracks[2]
    assert history.back() == tracks[1]
    assert history.back() == tracks[0]
    assert history.back() is None
    assert history.cursor == 0
    assert history.current == tracks[0]


def test_select_random_avoids_recent(tracks, recent_window):
    recent_window.add(tracks[0].name)
    recent_window.add(tracks[1].name)
    selector = RandomFileSelector(tracks, recent_window, rng=random.Random(3))

    picks = {selector.select_random() for _ in range(50)}

    assert picks == {tracks[2]}


def test_select_random_falls_back_when_all_recent(tracks, recent_window):
    for track in tracks:
        recent_window.add(track.name)
    selector = RandomFileSelector(tracks, recent_window, rng=random.Random(3))

    assert selector.select_random() in tracks


def test_select_random_empty_library(recent_window):
    selector = RandomFileSelector([], recent_window)

    assert selector.select_random() is None
    assert selector.initialize_session() is None
    assert selector.next_random_file() is None
    assert selector.current is None


def test_duplicate_tracks_are_collapsed(tracks, recent_window):
    selector = RandomFileSelector(tracks + [Track(tracks[0].path)], recent_window)

    assert selector.tracks == tracks


def test_initialize_session_does_not_record(selector, tracks):
    track = selector.initialize_session(tracks[1])

    assert track == tracks[1]
    assert selector.current == tracks[1]
    assert selector.recent.names == []


def test_initialize_session_ignores_unknown_initial(selector, tracks, tmp_path):
    stranger = Track(str(tmp_path / "elsewhere.mp3"))

    assert selector.initialize_session(stranger) in tracks


def test_previous_file_walks_back(selector, tracks):
    first = selector.initialize_session(tracks[0])
    second = selector.next_random_file()
    third = selector.next_random_file()

    assert selector.current == third
    assert selector.previous_file() == second
    assert selector.previous_file() == first
    assert selector.previous_file() is None
    assert selector.current == first


def test_record_played_ignores_unknown_tracks(selector, tmp_path):
    selector.record_played(Track(str(tmp_path / "elsewhere.mp3")))

    assert selector.recent.names == []


def test_record_played_uses_file_name(selector, tracks):
    selector.record_played(tracks[0])

    assert selector.recent.names == ["a.mp3"]
