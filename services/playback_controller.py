from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from models.playback import Effect, PlaybackEvent, PlaybackState, transition
from models.track import Track
from services.completion_watcher import CompletionWatcher, ProgressThreshold
from services.file_selector import RandomFileSelector
from services.history_store import HistoryStore, HistoryStoreError
from services.mpv_player import MpvPlayer

logger = logging.getLogger(__name__)

LISTENED_THRESHOLD = 0.5
COMPLETION_THRESHOLD = 0.9

PlaybackListener = Callable[[str, Optional[Track], float], None]
WatcherFactory = Callable[..., CompletionWatcher]


class PlaybackController:
    """Stopped/playing/paused state machine driving the mpv player.

    All events are serialized behind one lock, shared with the callbacks of
    the completion watcher. Each subprocess start or stop bumps a generation
    counter; watcher events carrying an older generation are discarded.

    Tracks that end (by stop, next or natural completion) with progress at
    or past ``completion_threshold`` are added to the recently played window
    and close their open history record. Crossing ``listened_threshold``
    logs a "recent" history entry. History store failures are logged and
    never interrupt playback.
    """

    def __init__(
        self,
        player: MpvPlayer,
        selector: RandomFileSelector,
        history: Optional[HistoryStore] = None,
        listened_threshold: float = LISTENED_THRESHOLD,
        completion_threshold: float = COMPLETION_THRESHOLD,
        poll_interval: float = 0.5,
        watcher_factory: WatcherFactory = CompletionWatcher,
    ):
        self.player = player
        self.selector = selector
        self.history = history
        self.listened_threshold = listened_threshold
        self.completion_threshold = completion_threshold

        self._lock = threading.RLock()
        self._state = PlaybackState.STOPPED
        self._generation = 0
        self._playing_track: Optional[Track] = None
        self._listeners: list[PlaybackListener] = []

        self.watcher = watcher_factory(
            player,
            self.handle_natural_completion,
            thresholds=[
                ProgressThreshold(listened_threshold, self._on_listened, "listened"),
                ProgressThreshold(completion_threshold, self._on_completion_reached, "completed"),
            ],
            interval=poll_interval,
        )

        self._handlers: dict[Effect, Callable[[], bool]] = {
            Effect.START_PLAYBACK: self._start_playback,
            Effect.RESUME_PLAYBACK: self._resume_playback,
            Effect.PAUSE_PLAYBACK: self._pause_playback,
            Effect.STOP_PLAYBACK: self._stop_playback,
            Effect.ADVANCE: self._advance,
            Effect.RETREAT: self._retreat,
            Effect.RECORD_START: self._record_start,
        }

    # ---- queries for the view ----

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_track(self) -> Optional[Track]:
        return self.selector.current

    def current_track_name(self) -> Optional[str]:
        track = self.selector.current
        return track.name if track else None

    def current_progress(self) -> float:
        if self._state is PlaybackState.STOPPED:
            return 0.0
        return self.player.current_progress()

    def is_playing(self) -> bool:
        return self._state is PlaybackState.PLAYING

    def is_paused(self) -> bool:
        return self._state is PlaybackState.PAUSED

    def add_listener(self, listener: PlaybackListener) -> None:
        """Register a callback for background events.

        Called with ("listened" | "threshold" | "completed", track, progress)
        from the watcher thread, outside the controller lock.
        """
        self._listeners.append(listener)

    # ---- events ----

    def play(self) -> bool:
        return self.dispatch(PlaybackEvent.PLAY)

    def pause(self) -> bool:
        return self.dispatch(PlaybackEvent.PAUSE)

    def resume(self) -> bool:
        return self.dispatch(PlaybackEvent.RESUME)

    def stop(self) -> bool:
        return self.dispatch(PlaybackEvent.STOP)

    def next_track(self) -> bool:
        return self.dispatch(PlaybackEvent.NEXT)

    def previous_track(self) -> bool:
        return self.dispatch(PlaybackEvent.PREVIOUS)

    def toggle_play_pause(self) -> bool:
        with self._lock:
            if self._state is PlaybackState.PLAYING:
                return self.pause()
            if self._state is PlaybackState.PAUSED:
                return self.resume()
            return self.play()

    def shutdown(self) -> None:
        """Stop playback so no mpv process outlives the application."""
        with self._lock:
            self.stop()
            self.watcher.cancel()
            if self.player.is_alive():
                self.player.stop()

    def dispatch(self, event: PlaybackEvent) -> bool:
        """Apply ``event``; returns False when it was ignored or aborted."""
        with self._lock:
            previous = self._state
            result = transition(previous, event)
            if result is None:
                logger.debug(f"Ignoring {event.value} while {previous.value}")
                return False

            new_state, effects = result
            for effect in effects:
                if not self._handlers[effect]():
                    self._settle_after_abort()
                    logger.info(f"{event.value} not completed ({effect.value}), state is {self._state.value}")
                    return False

            self._state = new_state
            if new_state is not previous:
                logger.info(f"{previous.value} -> {new_state.value} on {event.value}")
            return True

    # ---- watcher callbacks ----

    def handle_natural_completion(self, generation: int, final_progress: float) -> None:
        """Return to stopped after mpv exited on its own at end of file."""
        with self._lock:
            if generation != self._generation or self._state is PlaybackState.STOPPED:
                logger.debug(f"Discarding stale completion for generation {generation}")
                return

            track = self._playing_track
            self._generation += 1
            self.watcher.cancel()
            self.player.stop()
            self._playing_track = None
            self._state = PlaybackState.STOPPED

            if track is not None:
                self._finish_track(track, final_progress)
            # Next Play starts a fresh meditation rather than repeating this one
            self.selector.next_random_file()
            logger.info(f"{track.name if track else 'Track'} completed naturally at {final_progress:.0%}")

        self._notify("completed", track, final_progress)

    def _on_listened(self, generation: int, progress: float) -> None:
        with self._lock:
            if generation != self._generation:
                return
            track = self._playing_track
            if track is not None and self.history is not None:
                self._store_call("record recent play", self.history.record_recent_play, track.name, track.duration)
        self._notify("listened", track, progress)

    def _on_completion_reached(self, generation: int, progress: float) -> None:
        with self._lock:
            if generation != self._generation:
                return
            track = self._playing_track
        self._notify("threshold", track, progress)

    # ---- effect handlers ----

    def _start_playback(self) -> bool:
        track = self.selector.current
        if track is None:
            track = self.selector.initialize_session()
        if track is None:
            logger.warning("No tracks available to play")
            return False

        self._generation += 1
        self.watcher.cancel()
        if not self.player.play(track):
            self._playing_track = None
            return False

        self._playing_track = track
        self.watcher.start(self._generation)
        return True

    def _resume_playback(self) -> bool:
        if self.player.is_paused():
            self.player.resume()
            return not self.player.is_paused()
        if self.player.is_alive():
            return True
        logger.info("No paused mpv process to resume, starting the current selection")
        # A fresh process is a new listening session and needs its own start record
        return self._start_playback() and self._record_start()

    def _pause_playback(self) -> bool:
        self.player.pause()
        return self.player.is_paused()

    def _stop_playback(self) -> bool:
        self._generation += 1
        self.watcher.cancel()
        track = self._playing_track
        progress = self.player.stop()
        self._playing_track = None
        if track is not None:
            self._finish_track(track, progress)
        return True

    def _advance(self) -> bool:
        return self.selector.next_random_file() is not None

    def _retreat(self) -> bool:
        track = self.selector.previous_file()
        if track is None:
            logger.info("Already at the first track of this session")
            return False
        if self._state is PlaybackState.PAUSED and self.player.is_alive():
            # The paused process belongs to the track being left behind
            self._generation += 1
            self.watcher.cancel()
            self.player.stop()
            self._playing_track = None
        return True

    def _record_start(self) -> bool:
        track = self._playing_track or self.selector.current
        if track is not None and self.history is not None:
            self._store_call("record playback start", self.history.record_start, track.name, track.duration)
        return True

    # ---- helpers ----

    def _finish_track(self, track: Track, progress: float) -> None:
        if progress < self.completion_threshold:
            logger.info(f"Left {track.name} at {progress:.0%}, not counted as completed")
            return
        self.selector.record_played(track)
        if self.history is not None:
            self._store_call("record playback completion", self.history.record_completion, track.name)

    def _settle_after_abort(self) -> None:
        if self._state is not PlaybackState.STOPPED and not self.player.is_alive():
            self._generation += 1
            self.watcher.cancel()
            self._playing_track = None
            self._state = PlaybackState.STOPPED

    def _store_call(self, action: str, method: Callable[..., object], *args: object) -> None:
        try:
            method(*args)
        except HistoryStoreError as e:
            logger.warning(f"Failed to {action}: {e}")

    def _notify(self, event: str, track: Optional[Track], progress: float) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, track, progress)
            except Exception as e:
                logger.error(f"Playback listener failed on {event}: {e}", exc_info=True)
