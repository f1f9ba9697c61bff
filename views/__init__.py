from .now_playing import NowPlayingView
from .history import HistoryView

__all__ = ["NowPlayingView", "HistoryView"]
