from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


class PlayerProbe(Protocol):
    def is_alive(self) -> bool: ...
    def is_paused(self) -> bool: ...
    def current_progress(self) -> float: ...

    @property
    def last_progress(self) -> float: ...


@dataclass(frozen=True)
class ProgressThreshold:
    """A progress fraction whose first crossing per play fires ``callback``.

    The callback receives the watcher generation and the measured progress.
    """
    fraction: float
    callback: Callable[[int, float], None]
    name: str = ""


class CompletionWatcher:
    """Background poller for one playback session at a time.

    Each ``start`` is tagged with a generation number that is handed back in
    every callback, so the receiver can discard events from a session that
    has since been replaced. Starting again, or calling ``cancel``, stops the
    previous poller without waiting for it.
    """

    def __init__(
        self,
        player: PlayerProbe,
        on_complete: Callable[[int, float], None],
        thresholds: Sequence[ProgressThreshold] = (),
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.player = player
        self.on_complete = on_complete
        self.thresholds = sorted(thresholds, key=lambda t: t.fraction)
        self.interval = interval

        self._lock = threading.Lock()
        self._cancel_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    def start(self, generation: int) -> None:
        with self._lock:
            self._cancel_locked()
            cancel_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(generation, cancel_event),
                name=f"completion-watcher-{generation}",
                daemon=True,
            )
            self._cancel_event = cancel_event
            self._thread = thread
            thread.start()
        logger.debug(f"Completion watcher started (generation {generation})")

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def _cancel_locked(self) -> None:
        if self._cancel_event is not None:
            self._cancel_event.set()
        self._cancel_event = None
        self._thread = None

    def _run(self, generation: int, cancel_event: threading.Event) -> None:
        pending = list(self.thresholds)

        while not cancel_event.wait(self.interval):
            try:
                if not self.player.is_alive():
                    if cancel_event.is_set():
                        return
                    final_progress = self.player.last_progress
                    logger.info(
                        f"Playback ended naturally at {final_progress:.0%} (generation {generation})"
                    )
                    self.on_complete(generation, final_progress)
                    return

                if self.player.is_paused():
                    continue

                progress = self.player.current_progress()
                while pending and progress >= pending[0].fraction:
                    threshold = pending.pop(0)
                    if cancel_event.is_set():
                        return
                    logger.debug(f"Crossed {threshold.fraction:.0%} threshold (generation {generation})")
                    threshold.callback(generation, progress)
            except Exception as e:
                logger.error(f"Completion watcher error (generation {generation}): {e}", exc_info=True)
