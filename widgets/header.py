from textual.widgets import Static
from textual.reactive import reactive
from textual.containers import Vertical
from textual.app import ComposeResult
from rich.text import Text
from styles import COLOR_PRIMARY, COLOR_HIGHLIGHT, COLOR_MUTED, COLOR_DIM

MINDFU_ASCII = """
 ███╗   ███╗██╗███╗   ██╗██████╗ ███████╗██╗   ██╗
 ████╗ ████║██║████╗  ██║██╔══██╗██╔════╝██║   ██║
 ██╔████╔██║██║██╔██╗ ██║██║  ██║█████╗  ██║   ██║
 ██║╚██╔╝██║██║██║╚██╗██║██║  ██║██╔══╝  ██║   ██║
 ██║ ╚═╝ ██║██║██║ ╚████║██████╔╝██║     ╚██████╔╝
 ╚═╝     ╚═╝╚═╝╚═╝  ╚═══╝╚═════╝ ╚═╝      ╚═════╝
"""


class Header(Vertical):
    track_count: reactive[int] = reactive(0)
    recent_count: reactive[int] = reactive(0)
    recent_limit: reactive[int] = reactive(10)

    def compose(self) -> ComposeResult:
        yield Static(MINDFU_ASCII, id="header-logo")
        yield Static("─" * 80, id="header-divider")
        yield Static(self._render_status(), id="header-status")

    def _render_status(self) -> Text:
        result = Text()
        result.append("Library ", style=COLOR_MUTED)
        if self.track_count:
            result.append(f"{self.track_count} meditations", style=f"{COLOR_PRIMARY} bold")
        else:
            result.append("empty", style=COLOR_DIM)

        result.append("    │    Resting ", style=COLOR_MUTED)
        result.append(f"{self.recent_count}/{self.recent_limit}", style=f"{COLOR_HIGHLIGHT} bold")
        result.append(" recently completed", style=COLOR_MUTED)
        return result

    def _refresh_status(self) -> None:
        try:
            self.query_one("#header-status", Static).update(self._render_status())
        except Exception:
            pass

    def watch_track_count(self, new_value: int) -> None:
        self._refresh_status()

    def watch_recent_count(self, new_value: int) -> None:
        self._refresh_status()

    def watch_recent_limit(self, new_value: int) -> None:
        self._refresh_status()
