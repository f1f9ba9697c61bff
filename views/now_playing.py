from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container, Vertical
from textual.widgets import Static
from rich.text import Text

from models.playback import PlaybackState
from models.track import format_time
from services.playback_controller import PlaybackController
from styles import COLOR_BASS, COLOR_PRIMARY, COLOR_HIGHLIGHT, COLOR_MUTED, COLOR_INACTIVE

PROGRESS_UPDATE_INTERVAL = 1.0
PROGRESS_BAR_WIDTH = 40

STATE_ICONS = {
    PlaybackState.PLAYING: "▶",
    PlaybackState.PAUSED: "❚❚",
    PlaybackState.STOPPED: "■",
}


def render_progress_bar(progress: float, width: int = PROGRESS_BAR_WIDTH) -> Text:
    """Render a horizontal progress bar with a percentage label."""
    progress = max(0.0, min(1.0, progress))
    filled = int(progress * width)

    result = Text()
    result.append("│", style=COLOR_MUTED)
    for i in range(width):
        if i < filled:
            if i < width * 0.5:
                result.append("█", style=COLOR_BASS)
            elif i < width * 0.9:
                result.append("█", style=COLOR_PRIMARY)
            else:
                result.append("█", style=COLOR_HIGHLIGHT)
        else:
            result.append("─", style=COLOR_INACTIVE)
    result.append(f"│ {int(progress * 100):3d}%", style=COLOR_MUTED)
    return result


class NowPlayingView(Container):
    """Widget displaying the selected meditation and playback progress."""

    def __init__(self, controller: PlaybackController | None = None, **kwargs):
        super().__init__(**kwargs)
        self.controller = controller
        self.library_ready = False
        self._update_timer = None
        self._title_widget: Static | None = None
        self._time_widget: Static | None = None
        self._state_widget: Static | None = None
        self._progress_widget: Static | None = None

    def compose(self) -> ComposeResult:
        """Compose the now playing view with track info."""
        with Vertical():
            yield Static("☯", classes="music-icon")
            yield Static("Scanning library...", id="np-title", classes="track-title")
            yield Static("0:00 / 0:00", id="np-time", classes="time-display")
            yield Static("State: Stopped", id="np-state", classes="state-display")
            yield Static(render_progress_bar(0.0), id="np-progress")

    def on_mount(self) -> None:
        """Start update timer for real-time progress updates."""
        self._title_widget = self.query_one("#np-title", Static)
        self._time_widget = self.query_one("#np-time", Static)
        self._state_widget = self.query_one("#np-state", Static)
        self._progress_widget = self.query_one("#np-progress", Static)

        self._update_timer = self.set_interval(PROGRESS_UPDATE_INTERVAL, self.update_progress)
        self.update_progress()

    def update_progress(self) -> None:
        """Update all display widgets from the playback controller."""
        if self._title_widget is None:
            return

        controller = self.controller
        if controller is None:
            self._title_widget.update("Scanning library..." if not self.library_ready else "No meditation files found")
            self._time_widget.update("0:00 / 0:00")
            self._state_widget.update("State: Idle")
            self._progress_widget.update(render_progress_bar(0.0))
            return

        track = controller.current_track
        state = controller.state
        progress = controller.current_progress()

        if track:
            self._title_widget.update(track.title)
            elapsed = progress * track.duration if track.duration else 0.0
            self._time_widget.update(f"{format_time(elapsed)} / {track.duration_str}")
        else:
            self._title_widget.update("No meditation files found")
            self._time_widget.update("0:00 / 0:00")

        self._state_widget.update(f"{STATE_ICONS[state]}  State: {state.value.capitalize()}")
        self._progress_widget.update(render_progress_bar(progress))
