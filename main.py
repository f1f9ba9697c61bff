from textual.app import App, ComposeResult
from textual.widgets import Footer
from textual.containers import Horizontal
from textual.binding import Binding
import asyncio
import logging
import sys

from config import PlayerConfig, load_config
from models.track import Track
from widgets import Header, HelpScreen
from views import NowPlayingView, HistoryView
from services import (
    HistoryStore,
    HistoryStoreError,
    MpvPlayer,
    MusicLibrary,
    PlaybackController,
    RandomFileSelector,
    RecentlyPlayedWindow,
    SessionStore,
)

config = load_config()
config.data_dir.mkdir(parents=True, exist_ok=True)
log_file = config.log_file

logging.basicConfig(
    level=getattr(logging, config.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_file)
    ]
)

logger = logging.getLogger(__name__)


class MindfuApp(App):
    """A calm terminal meditation player built with Textual."""

    CSS_PATH = "styles/app.tcss"

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("space", "play_pause", "Play/Pause"),
        Binding("s", "stop", "Stop", priority=True),
        Binding("n", "next_track", "Next", priority=True),
        Binding("p", "previous_track", "Prev", priority=True),
        Binding("h", "show_help", "Help", priority=True),
        Binding("?", "show_help", "Help", show=False, priority=True),
    ]

    def __init__(self, player_config: PlayerConfig, *args, **kwargs):
        super().__init__(*args, **kwargs)

        logger.info("Starting MINDFU application")
        self.player_config = player_config
        self.player = MpvPlayer(
            mpv_path=player_config.mpv_path,
            ipc_timeout=player_config.ipc_timeout,
        )
        self.music_library = MusicLibrary(player_config.audio_dir)
        self.session_store = SessionStore(player_config.session_file)

        try:
            self.history: HistoryStore | None = HistoryStore(player_config.db_path)
        except HistoryStoreError as e:
            logger.error(f"Play history disabled: {e}")
            self.history = None

        self.controller: PlaybackController | None = None
        self._shut_down = False
        logger.info("Services initialized successfully")

    def compose(self) -> ComposeResult:
        """Compose the main application layout."""
        yield Header()
        with Horizontal(id="main-container"):
            yield NowPlayingView(id="now_playing")
            yield HistoryView(self.history, id="history")
        yield Footer()

    def on_mount(self) -> None:
        """Initialize the application."""
        self.run_worker(self._scan_library, exclusive=True)

    async def _scan_library(self) -> None:
        """Scan the meditation directory in a background thread.

        Displays user-friendly messages if scanning fails; the player then
        starts with an empty library and stays idle.
        """
        tracks: list[Track] = []
        audio_dir = self.player_config.audio_dir
        try:
            logger.info(f"Scanning {audio_dir}")
            tracks = await asyncio.to_thread(self.music_library.scan)

            if not tracks:
                self.notify(
                    f"No meditation files found in {audio_dir}\n\nAdd some audio files to get started.",
                    severity="warning",
                    timeout=8
                )
            else:
                self.notify(f"✓ Loaded {len(tracks)} meditations", severity="information", timeout=3)

        except FileNotFoundError as e:
            logger.error(f"Audio directory not found: {e}")
            self.notify(
                f"❌ Directory not found\n\nCreate {audio_dir} or set MINDFU_AUDIO_DIR.",
                severity="error",
                timeout=10
            )
        except PermissionError as e:
            logger.error(f"Permission denied accessing audio directory: {e}")
            self.notify(
                f"❌ Cannot read {audio_dir}\n\nPlease check directory permissions.",
                severity="error",
                timeout=10
            )
        except Exception as e:
            logger.error(f"Unexpected error during library scan: {type(e).__name__}: {e}")
            self.notify(
                f"❌ Error scanning library\n\n{type(e).__name__}: {str(e)[:50]}",
                severity="error",
                timeout=10
            )

        self._start_session(tracks)

    def _start_session(self, tracks: list[Track]) -> None:
        """Build the selection policy and state machine for the scanned library."""
        cfg = self.player_config
        recent = RecentlyPlayedWindow(cfg.recently_played_file, cfg.recent_limit)
        selector = RandomFileSelector(tracks, recent)
        selector.initialize_session(self._restored_track())

        controller = PlaybackController(
            self.player,
            selector,
            self.history,
            listened_threshold=cfg.listened_threshold,
            completion_threshold=cfg.completion_threshold,
            poll_interval=cfg.poll_interval,
        )
        controller.add_listener(self._on_playback_event)
        self.controller = controller

        now_playing = self.query_one("#now_playing", NowPlayingView)
        now_playing.controller = controller if tracks else None
        now_playing.library_ready = True
        now_playing.update_progress()

        header = self.query_one(Header)
        header.track_count = len(tracks)
        header.recent_limit = recent.limit
        header.recent_count = len(recent)

    def _restored_track(self) -> Track | None:
        if not self.player_config.restore_session:
            return None
        saved = self.session_store.load()
        if not saved:
            return None
        track = self.music_library.find_by_name(saved.get("current_file"))
        if track is None and saved.get("current_index") is not None:
            track = self.music_library.get_track_by_index(saved["current_index"])
        if track is not None:
            logger.info(f"Restored selection {track.name} (was {saved.get('state')})")
        return track

    def _on_playback_event(self, event: str, track: Track | None, progress: float) -> None:
        """Forward watcher-thread events onto the UI thread."""
        self.call_from_thread(self._handle_playback_event, event, track)

    def _handle_playback_event(self, event: str, track: Track | None) -> None:
        title = track.title if track else "Meditation"
        if event == "completed":
            self.notify(f"🙏 {title} complete", timeout=4)
        elif event == "threshold":
            self.notify(f"✓ {title} counts as completed", timeout=2)

        self._refresh_views()

    def _refresh_views(self) -> None:
        self.query_one("#now_playing", NowPlayingView).update_progress()
        self.query_one("#history", HistoryView).refresh_history()
        if self.controller is not None:
            self.query_one(Header).recent_count = len(self.controller.selector.recent)

    def _run_control(self, name: str, control) -> None:
        if self.controller is None:
            return
        try:
            control()
        except Exception as e:
            logger.error(f"Error handling {name}: {e}", exc_info=True)
            self.notify(f"❌ Cannot {name}", severity="error", timeout=3)
        self._refresh_views()

    def action_play_pause(self) -> None:
        """Play, pause or resume depending on the current state."""
        self._run_control("play/pause", lambda: self.controller.toggle_play_pause())

    def action_stop(self) -> None:
        self._run_control("stop", lambda: self.controller.stop())

    def action_next_track(self) -> None:
        self._run_control("skip to next meditation", lambda: self.controller.next_track())

    def action_previous_track(self) -> None:
        self._run_control("go back", lambda: self.controller.previous_track())

    def action_show_help(self) -> None:
        self.push_screen(HelpScreen())

    def action_quit(self) -> None:
        """Handle quit action for clean shutdown."""
        self.shutdown()
        self.exit()

    def shutdown(self) -> None:
        """Save the session and stop playback. Safe to call more than once."""
        if self._shut_down:
            return
        self._shut_down = True

        controller = self.controller
        if controller is not None:
            self.session_store.save(
                current_index=self.music_library.index_of(controller.current_track),
                state=controller.state.value,
                current_file=controller.current_track_name(),
            )
            controller.shutdown()
        elif self.player.is_alive():
            self.player.stop()

        if self.history is not None:
            self.history.close()


def main():
    """Entry point for the MINDFU application.

    Handles initialization errors and provides user-friendly error messages.
    """
    app = None
    try:
        logger.info("=" * 60)
        logger.info("MINDFU starting up")
        logger.info("=" * 60)

        app = MindfuApp(config)
        app.run()

        logger.info("MINDFU shut down cleanly")

    except KeyboardInterrupt:
        logger.info("MINDFU interrupted by user")
        print("\n\nGoodbye 🙏\n")
    except Exception as e:
        logger.critical(f"Unexpected fatal error: {type(e).__name__}: {e}", exc_info=True)
        print("\n❌ MINDFU encountered an unexpected error\n")
        print(f"{type(e).__name__}: {e}\n")
        print(f"Check {log_file} for more details.\n")
        sys.exit(1)
    finally:
        if app is not None:
            app.shutdown()

    sys.exit(0)


if __name__ == "__main__":
    main()
