from __future__ import annotations

import itertools
import json
import logging
import socket
import subprocess
import tempfile
import threading
import time
import uuid
from pathlib import Path
from typing import Any, Optional

from models.playback import progress_fraction
from models.track import Track

logger = logging.getLogger(__name__)

SOCKET_READY_TIMEOUT = 2.0
SOCKET_READY_POLL = 0.05
TERMINATE_GRACE_PERIOD = 1.0


class MpvPlayer:
    """Plays one file at a time through a headless mpv subprocess.

    The subprocess is started paused with a JSON IPC server on a private
    Unix socket. Once the socket answers, playback is unpaused. Every
    control-channel call has a bounded timeout and degrades to a neutral
    result (None, False or 0.0) instead of raising.
    """

    def __init__(
        self,
        mpv_path: str = "mpv",
        ipc_timeout: float = 0.5,
        socket_dir: Optional[Path] = None,
        ready_timeout: float = SOCKET_READY_TIMEOUT,
        grace_period: float = TERMINATE_GRACE_PERIOD,
    ):
        self.mpv_path = mpv_path
        self.ipc_timeout = ipc_timeout
        self.socket_dir = Path(socket_dir) if socket_dir else Path(tempfile.gettempdir())
        self.ready_timeout = ready_timeout
        self.grace_period = grace_period

        self._lock = threading.RLock()
        self._process: Optional[subprocess.Popen] = None
        self._socket_path: Optional[str] = None
        self._track: Optional[Track] = None
        self._paused = False
        self._last_progress = 0.0
        self._request_ids = itertools.count(1)

    # ---- lifecycle ----

    def play(self, track: Track) -> bool:
        """Start playing ``track``, replacing any active subprocess.

        Returns False (and changes nothing) when the file does not exist or
        mpv cannot be started.
        """
        with self._lock:
            if not Path(track.path).is_file():
                logger.warning(f"Track file not found, ignoring play: {track.path}")
                return False

            if self._process is not None:
                self.stop()

            socket_path = str(self.socket_dir / f"mindfu-mpv-{uuid.uuid4().hex[:12]}.sock")
            args = [
                self.mpv_path,
                "--no-video",
                "--audio-display=no",
                "--no-terminal",
                "--really-quiet",
                "--pause",
                "--keep-open=no",
                "--idle=no",
                f"--input-ipc-server={socket_path}",
                "--",
                track.path,
            ]

            try:
                process = subprocess.Popen(
                    args,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    start_new_session=True,
                )
            except OSError as e:
                logger.error(f"Failed to start mpv ({self.mpv_path}): {e}")
                return False

            self._process = process
            self._socket_path = socket_path
            self._track = track
            self._paused = False
            self._last_progress = 0.0

            if not self._wait_for_channel():
                logger.error(f"mpv control socket never became ready for {track.name}")
                self.stop()
                return False

            if not self._command("set_property", "pause", False):
                logger.warning(f"Could not unpause mpv for {track.name}")

            logger.info(f"Playing {track.name} (pid {process.pid})")
            return True

    def stop(self) -> float:
        """Terminate the subprocess and return the last known progress.

        Safe to call when nothing is playing, in which case it returns 0.0.
        """
        with self._lock:
            process = self._process
            if process is None:
                return 0.0

            self.current_progress()
            progress = self._last_progress
            track_name = self.current_track_name()

            self._terminate(process)
            self._remove_socket(self._socket_path)

            self._process = None
            self._socket_path = None
            self._track = None
            self._paused = False
            self._last_progress = 0.0

            logger.info(f"Stopped {track_name} at {progress:.0%}")
            return progress

    def pause(self) -> None:
        with self._lock:
            if not self.is_playing():
                return
            self.current_progress()
            if self._command("set_property", "pause", True):
                self._paused = True

    def resume(self) -> None:
        with self._lock:
            if not self.is_paused():
                return
            if self._command("set_property", "pause", False):
                self._paused = False

    # ---- queries ----

    def is_alive(self) -> bool:
        process = self._process
        return process is not None and process.poll() is None

    def is_playing(self) -> bool:
        return self.is_alive() and not self._paused

    def is_paused(self) -> bool:
        return self.is_alive() and self._paused

    @property
    def current_track(self) -> Optional[Track]:
        return self._track

    def current_track_name(self) -> Optional[str]:
        track = self._track
        return track.name if track else None

    @property
    def last_progress(self) -> float:
        """Progress measured by the most recent successful query."""
        return self._last_progress

    def query_times(self) -> Optional[tuple[float, float]]:
        """Return (position, duration) in seconds, or None if unavailable."""
        if not self.is_alive():
            return None
        position = self._get_property("time-pos")
        duration = self._get_property("duration")
        if position is None or duration is None:
            return None
        try:
            return float(position), float(duration)
        except (TypeError, ValueError):
            return None

    def current_progress(self) -> float:
        """Fraction of the track played so far.

        While paused this is the value measured when the pause was issued.
        """
        if self.is_paused():
            return self._last_progress
        socket_path = self._socket_path
        times = self.query_times()
        if times is None:
            return 0.0
        progress = progress_fraction(*times)
        if socket_path is not None and socket_path == self._socket_path:
            self._last_progress = progress
        return progress

    # ---- control channel ----

    def _request(self, *command: Any) -> Optional[dict[str, Any]]:
        """Send one command over a fresh IPC connection and wait for its reply."""
        socket_path = self._socket_path
        if not socket_path:
            return None

        request_id = next(self._request_ids)
        payload = (json.dumps({"command": list(command), "request_id": request_id}) + "\n").encode("utf-8")

        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(self.ipc_timeout)
                sock.connect(socket_path)
                sock.sendall(payload)

                buffer = b""
                deadline = time.monotonic() + self.ipc_timeout
                while time.monotonic() < deadline:
                    chunk = sock.recv(4096)
                    if not chunk:
                        return None
                    buffer += chunk
                    while b"\n" in buffer:
                        line, buffer = buffer.split(b"\n", 1)
                        line = line.strip()
                        if not line:
                            continue
                        try:
                            message = json.loads(line.decode("utf-8"))
                        except ValueError:
                            continue
                        # mpv interleaves event lines with replies
                        if isinstance(message, dict) and message.get("request_id") == request_id:
                            return message
        except OSError as e:
            logger.debug(f"mpv IPC {command!r} failed: {e}")
        return None

    def _command(self, *command: Any) -> bool:
        response = self._request(*command)
        return response is not None and response.get("error") == "success"

    def _get_property(self, name: str) -> Any:
        response = self._request("get_property", name)
        if response is None or response.get("error") != "success":
            return None
        return response.get("data")

    def _wait_for_channel(self) -> bool:
        deadline = time.monotonic() + self.ready_timeout
        while time.monotonic() < deadline:
            if not self.is_alive():
                return False
            if Path(self._socket_path).exists() and self._request("client_name") is not None:
                return True
            time.sleep(SOCKET_READY_POLL)
        return False

    # ---- teardown helpers ----

    def _terminate(self, process: subprocess.Popen) -> None:
        try:
            process.terminate()
            process.wait(timeout=self.grace_period)
        except ProcessLookupError:
            pass
        except subprocess.TimeoutExpired:
            logger.warning(f"mpv (pid {process.pid}) ignored SIGTERM, killing")
            try:
                process.kill()
                process.wait(timeout=self.grace_period)
            except ProcessLookupError:
                pass
            except subprocess.TimeoutExpired:
                logger.error(f"mpv (pid {process.pid}) did not exit after SIGKILL")

    @staticmethod
    def _remove_socket(socket_path: Optional[str]) -> None:
        if not socket_path:
            return
        try:
            Path(socket_path).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove mpv socket {socket_path}: {e}")
