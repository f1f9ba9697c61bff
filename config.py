"""Configuration loading from environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_AUDIO_DIR = Path.home() / "Music" / "meditations"
DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "mindfu"


@dataclass(frozen=True)
class PlayerConfig:
    audio_dir: Path = DEFAULT_AUDIO_DIR
    data_dir: Path = DEFAULT_DATA_DIR
    mpv_path: str = "mpv"
    poll_interval: float = 0.5
    ipc_timeout: float = 0.5
    recent_limit: int = 10
    listened_threshold: float = 0.5
    completion_threshold: float = 0.9
    restore_session: bool = False
    log_level: str = "INFO"

    @property
    def log_file(self) -> Path:
        return self.data_dir / "mindfu.log"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "meditations.db"

    @property
    def recently_played_file(self) -> Path:
        return self.data_dir / "recently_played.json"

    @property
    def session_file(self) -> Path:
        return self.data_dir / "player_state.json"


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float, min_value: float, max_value: float) -> float:
    try:
        value = float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default
    return max(min_value, min(max_value, value))


def _env_int(name: str, default: int, min_value: int, max_value: int) -> int:
    try:
        value = int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default
    return max(min_value, min(max_value, value))


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return Path(raw).expanduser()


def load_config() -> PlayerConfig:
    return PlayerConfig(
        audio_dir=_env_path("MINDFU_AUDIO_DIR", DEFAULT_AUDIO_DIR),
        data_dir=_env_path("MINDFU_DATA_DIR", DEFAULT_DATA_DIR),
        mpv_path=os.getenv("MINDFU_MPV_PATH", "mpv").strip() or "mpv",
        poll_interval=_env_float("MINDFU_POLL_INTERVAL", 0.5, 0.05, 5.0),
        ipc_timeout=_env_float("MINDFU_IPC_TIMEOUT", 0.5, 0.05, 5.0),
        recent_limit=_env_int("MINDFU_RECENT_LIMIT", 10, 1, 1000),
        listened_threshold=_env_float("MINDFU_LISTENED_THRESHOLD", 0.5, 0.0, 1.0),
        completion_threshold=_env_float("MINDFU_COMPLETION_THRESHOLD", 0.9, 0.0, 1.0),
        restore_session=_env_flag("MINDFU_RESTORE_SESSION"),
        log_level=os.getenv("MINDFU_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
