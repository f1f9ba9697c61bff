from .music_library import MusicLibrary
from .mpv_player import MpvPlayer
from .completion_watcher import CompletionWatcher, ProgressThreshold
from .file_selector import RandomFileSelector, RecentlyPlayedWindow, SessionHistory
from .history_store import HistoryStore, HistoryStoreError
from .session_store import SessionStore
from .playback_controller import PlaybackController

__all__ = [
    'MusicLibrary',
    'MpvPlayer',
    'CompletionWatcher',
    'ProgressThreshold',
    'RandomFileSelector',
    'RecentlyPlayedWindow',
    'SessionHistory',
    'HistoryStore',
    'HistoryStoreError',
    'SessionStore',
    'PlaybackController',
]
