"""Controller running against the real threaded completion watcher."""

import threading
import time

import pytest

from models.playback import PlaybackState
from services.file_selector import RandomFileSelector, RecentlyPlayedWindow
from services.playback_controller import PlaybackController
from tests.conftest import FakePlayer

POLL_INTERVAL = 0.001
ROUNDS = 25


class ExitingPlayer(FakePlayer):
    """FakePlayer that records every teardown of a live track."""

    def __init__(self):
        super().__init__()
        self.teardowns: list[str] = []
        self._lock = threading.Lock()

    def stop(self) -> float:
        with self._lock:
            if self.track is not None:
                self.teardowns.append(self.track.name)
            return super().stop()

    def play(self, track) -> bool:
        with self._lock:
            return super().play(track)

    def exit_on_its_own(self, track) -> None:
        """mpv reaching end of ``track``: the process dies, the handle stays."""
        with self._lock:
            if self.track == track:
                self.alive = False


def _controller(tracks):
    player = ExitingPlayer()
    selector = RandomFileSelector(tracks, RecentlyPlayedWindow())
    controller = PlaybackController(player, selector, poll_interval=POLL_INTERVAL)
    return controller, player, selector


def _race(player, track, user_action):
    barrier = threading.Barrier(2)

    def exit_soon():
        barrier.wait()
        player.exit_on_its_own(track)

    racer = threading.Thread(target=exit_soon)
    racer.start()
    barrier.wait()
    user_action()
    racer.join()
    # let any watcher from the finished track run to the end
    time.sleep(0.05)


@pytest.mark.parametrize("round_number", range(ROUNDS))
def test_stop_racing_natural_completion_tears_down_once(tracks, round_number):
    controller, player, selector = _controller(tracks)
    controller.play()
    first = controller.current_track
    player.progress = 0.95

    try:
        _race(player, first, controller.stop)

        assert controller.state is PlaybackState.STOPPED
        assert player.teardowns == [first.name]
        assert selector.recent.names == [first.name]
        assert not player.is_alive()
    finally:
        controller.shutdown()


@pytest.mark.parametrize("round_number", range(ROUNDS))
def test_next_racing_natural_completion_keeps_new_track(tracks, round_number):
    controller, player, selector = _controller(tracks)
    controller.play()
    first = controller.current_track
    player.progress = 0.95

    try:
        _race(player, first, controller.next_track)

        assert player.teardowns == [first.name]
        assert selector.recent.names == [first.name]
        if controller.state is PlaybackState.PLAYING:
            # next won the race: the replacement must survive the old watcher
            assert player.is_alive()
            assert player.track == controller.current_track
            assert player.track != first
            assert controller.watcher.is_running()
        else:
            # completion won: next only moved the selection
            assert controller.state is PlaybackState.STOPPED
            assert player.played() == [first.name]
    finally:
        controller.shutdown()


def test_late_completion_from_replaced_process_is_discarded(tracks):
    controller, player, selector = _controller(tracks)
    controller.play()
    first = controller.current_track
    stale_generation = controller.generation

    try:
        controller.next_track()
        controller.handle_natural_completion(stale_generation, 0.97)
        time.sleep(0.05)

        assert controller.state is PlaybackState.PLAYING
        assert player.is_alive()
        assert player.teardowns == [first.name]
        assert selector.recent.names == []
    finally:
        controller.shutdown()
