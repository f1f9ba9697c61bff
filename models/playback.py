from __future__ import annotations

from enum import Enum


class PlaybackState(Enum):
    """Enum for playback states."""
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackEvent(Enum):
    """User or host driven events accepted by the playback controller."""
    PLAY = "play"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    NEXT = "next"
    PREVIOUS = "previous"


class Effect(Enum):
    """Side effects run by the controller, in order, for a transition."""
    START_PLAYBACK = "start_playback"
    RESUME_PLAYBACK = "resume_playback"
    PAUSE_PLAYBACK = "pause_playback"
    STOP_PLAYBACK = "stop_playback"
    ADVANCE = "advance"
    RETREAT = "retreat"
    RECORD_START = "record_start"


_STOPPED = PlaybackState.STOPPED
_PLAYING = PlaybackState.PLAYING
_PAUSED = PlaybackState.PAUSED

_RESTART = (Effect.START_PLAYBACK, Effect.RECORD_START)

TRANSITIONS: dict[tuple[PlaybackState, PlaybackEvent], tuple[PlaybackState, tuple[Effect, ...]]] = {
    (_STOPPED, PlaybackEvent.PLAY): (_PLAYING, _RESTART),
    (_PAUSED, PlaybackEvent.PLAY): (_PLAYING, (Effect.RESUME_PLAYBACK, Effect.RECORD_START)),
    (_PLAYING, PlaybackEvent.PAUSE): (_PAUSED, (Effect.PAUSE_PLAYBACK,)),
    (_PAUSED, PlaybackEvent.RESUME): (_PLAYING, (Effect.RESUME_PLAYBACK,)),
    (_PLAYING, PlaybackEvent.STOP): (_STOPPED, (Effect.STOP_PLAYBACK,)),
    (_PAUSED, PlaybackEvent.STOP): (_STOPPED, (Effect.STOP_PLAYBACK,)),
    (_PLAYING, PlaybackEvent.NEXT): (_PLAYING, (Effect.STOP_PLAYBACK, Effect.ADVANCE) + _RESTART),
    (_PAUSED, PlaybackEvent.NEXT): (_PAUSED, (Effect.STOP_PLAYBACK, Effect.ADVANCE)),
    (_STOPPED, PlaybackEvent.NEXT): (_STOPPED, (Effect.STOP_PLAYBACK, Effect.ADVANCE)),
    (_PLAYING, PlaybackEvent.PREVIOUS): (_PLAYING, (Effect.RETREAT,) + _RESTART),
    (_PAUSED, PlaybackEvent.PREVIOUS): (_PAUSED, (Effect.RETREAT,)),
    (_STOPPED, PlaybackEvent.PREVIOUS): (_STOPPED, (Effect.RETREAT,)),
}


def transition(
    state: PlaybackState, event: PlaybackEvent
) -> tuple[PlaybackState, tuple[Effect, ...]] | None:
    """Look up the target state and side effects for an event.

    Returns None when the event is not valid from ``state``; callers treat
    that as a no-op.
    """
    return TRANSITIONS.get((state, event))


def progress_fraction(position: float | None, duration: float | None) -> float:
    """Return position/duration clamped to [0, 1].

    Unknown or non-positive durations count as no progress.
    """
    try:
        position = float(position) if position is not None else 0.0
        duration = float(duration) if duration is not None else 0.0
    except (TypeError, ValueError):
        return 0.0
    if duration <= 0:
        return 0.0
    return max(0.0, min(1.0, position / duration))
