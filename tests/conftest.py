"""Shared fakes for the playback core.

FakePlayer stands in for the mpv subprocess adapter and FakeWatcher for the
background completion poller, so controller tests run without mpv and
without threads.
"""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from models.track import Track
from services.file_selector import RandomFileSelector, RecentlyPlayedWindow
from services.history_store import HistoryStore
from services.playback_controller import PlaybackController


class FakePlayer:
    def __init__(self):
        self.calls: list[tuple] = []
        self.progress = 0.0
        self.alive = False
        self.paused = False
        self.track: Track | None = None
        self.fail_play = False

    def play(self, track: Track) -> bool:
        self.calls.append(("play", track.name))
        if self.fail_play:
            return False
        self.alive = True
        self.paused = False
        self.track = track
        self.progress = 0.0
        return True

    def stop(self) -> float:
        self.calls.append(("stop",))
        if self.track is None:
            return 0.0
        progress = self.progress
        self.alive = False
        self.paused = False
        self.track = None
        return progress

    def pause(self) -> None:
        if self.alive and not self.paused:
            self.calls.append(("pause",))
            self.paused = True

    def resume(self) -> None:
        if self.alive and self.paused:
            self.calls.append(("resume",))
            self.paused = False

    def is_alive(self) -> bool:
        return self.alive

    def is_playing(self) -> bool:
        return self.alive and not self.paused

    def is_paused(self) -> bool:
        return self.alive and self.paused

    def current_progress(self) -> float:
        return self.progress if self.alive else 0.0

    @property
    def last_progress(self) -> float:
        return self.progress

    def current_track_name(self):
        return self.track.name if self.track else None

    def played(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "play"]


class FakeWatcher:
    def __init__(self, player, on_complete, thresholds=(), interval=0.5):
        self.player = player
        self.on_complete = on_complete
        self.thresholds = list(thresholds)
        self.interval = interval
        self.started: list[int] = []
        self.cancelled = 0
        self.generation: int | None = None

    def start(self, generation: int) -> None:
        self.generation = generation
        self.started.append(generation)

    def cancel(self) -> None:
        self.cancelled += 1

    def complete(self, progress: float, generation: int | None = None) -> None:
        """Simulate mpv exiting at end of file."""
        self.player.alive = False
        self.player.progress = progress
        self.on_complete(self.generation if generation is None else generation, progress)

    def cross(self, name: str, progress: float) -> None:
        threshold = next(t for t in self.thresholds if t.name == name)
        threshold.callback(self.generation, progress)


@pytest.fixture
def audio_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "audio"
    directory.mkdir()
    for name in ("a.mp3", "b.mp3", "c.mp3"):
        (directory / name).write_bytes(b"not really audio")
    return directory


@pytest.fixture
def tracks(audio_dir: Path) -> list[Track]:
    return [Track.from_file(audio_dir / name, duration=600.0) for name in ("a.mp3", "b.mp3", "c.mp3")]


@pytest.fixture
def recent_window(tmp_path: Path) -> RecentlyPlayedWindow:
    return RecentlyPlayedWindow(tmp_path / "recently_played.json")


@pytest.fixture
def selector(tracks, recent_window) -> RandomFileSelector:
    return RandomFileSelector(tracks, recent_window, rng=random.Random(7))


@pytest.fixture
def history() -> HistoryStore:
    store = HistoryStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture
def controller(player, selector, history) -> PlaybackController:
    return PlaybackController(player, selector, history, watcher_factory=FakeWatcher)
