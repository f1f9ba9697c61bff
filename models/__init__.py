from .track import Track, format_time
from .playback import PlaybackState, PlaybackEvent, Effect, transition, progress_fraction
from .history import PlayHistoryRecord, CompletionStats, format_time_ago

__all__ = [
    "Track",
    "format_time",
    "PlaybackState",
    "PlaybackEvent",
    "Effect",
    "transition",
    "progress_fraction",
    "PlayHistoryRecord",
    "CompletionStats",
    "format_time_ago",
]
