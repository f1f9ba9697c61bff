from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


def format_time(seconds: float | None) -> str:
    """Format a duration in seconds as M:SS (or H:MM:SS for long sessions)."""
    if not seconds or seconds < 0:
        return "0:00"
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@dataclass(frozen=True)
class Track:
    """An audio file discovered in the meditation library.

    Tracks are identified by their absolute path. The file name (without
    directory) is what the history store and the recency window use as the
    track identifier.
    """
    path: str
    duration: float | None = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return Path(self.path).name

    @property
    def title(self) -> str:
        return Path(self.path).stem

    @property
    def duration_str(self) -> str:
        return format_time(self.duration)

    @classmethod
    def from_file(cls, file_path: Path, duration: float | None = None) -> Track:
        return cls(path=str(Path(file_path).resolve()), duration=duration)
