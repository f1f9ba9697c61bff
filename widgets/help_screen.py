from __future__ import annotations

from textual.screen import ModalScreen
from textual.widgets import Static, Button
from textual.containers import Container, VerticalScroll
from textual.app import ComposeResult
from textual.binding import Binding

HELP_TEXT = """[bold #6fa8c9]☯ MINDFU - Terminal Meditation Player[/bold #6fa8c9]

[bold]PLAYBACK CONTROLS[/bold]
  Space       Play / Pause / Resume
  s           Stop
  n           Next meditation (random)
  p           Previous meditation (this session)

[bold]OTHER[/bold]
  h/?         Show this help
  q           Quit

[bold]HOW SELECTION WORKS[/bold]
  • Meditations are picked at random from your library
  • Sessions you finish (90% or more) rest for the next
    10 picks, unless nothing else is left to choose
  • "Previous" walks back through this session only

[bold]LIBRARY[/bold]
  • Files are loaded from ~/Music/meditations
    (set MINDFU_AUDIO_DIR to change it)
  • Supported formats: MP3, M4A/MP4, WAV, OGG, FLAC
  • Playback requires mpv on your PATH"""


class HelpScreen(ModalScreen[None]):
    """Modal screen displaying key bindings."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-container {
        width: 70;
        height: 80%;
        background: #14181c;
        border: thick #3f6e8c;
        padding: 1 2;
    }

    #help-scroll {
        width: 100%;
        height: 1fr;
        margin-bottom: 1;
    }

    #help-close-button {
        width: 100%;
        height: auto;
        background: #222a31;
        color: #6fa8c9;
        border: solid #6fa8c9;
        text-style: bold;
    }
    """

    BINDINGS = [
        Binding("escape", "dismiss_help", "Close"),
    ]

    def compose(self) -> ComposeResult:
        """Compose the help screen."""
        with Container(id="help-container"):
            with VerticalScroll(id="help-scroll"):
                yield Static(HELP_TEXT, id="help-content")
            yield Button("Close (Esc)", id="help-close-button", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "help-close-button":
            self.dismiss(None)

    def action_dismiss_help(self) -> None:
        self.dismiss(None)
