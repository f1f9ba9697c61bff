from __future__ import annotations

import json
import logging
import random
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from models.track import Track

logger = logging.getLogger(__name__)

MAX_RECENT_FILES = 10


class RecentlyPlayedWindow:
    """Bounded FIFO of recently completed track file names, persisted as JSON.

    The file holds ``{"recently_played": [...], "timestamp": "..."}``. It is
    read once on construction and rewritten after every addition. Read and
    write failures are logged and never raised.
    """

    def __init__(self, path: Optional[Path] = None, limit: int = MAX_RECENT_FILES):
        self.path = Path(path) if path else None
        self.limit = limit
        self._names: list[str] = self._load()

    @property
    def names(self) -> list[str]:
        return list(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __len__(self) -> int:
        return len(self._names)

    def add(self, name: str) -> None:
        self._names.append(name)
        while len(self._names) > self.limit:
            self._names.pop(0)
        self.save()

    def save(self) -> None:
        if self.path is None:
            return
        data = {
            "recently_played": self._names,
            "timestamp": datetime.now().isoformat(timespec="seconds"),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2))
        except OSError as e:
            logger.error(f"Failed to save recently played files to {self.path}: {e}")

    def _load(self) -> list[str]:
        if self.path is None or not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text())
            names = data.get("recently_played") or []
            if not isinstance(names, list):
                raise ValueError("recently_played is not a list")
        except (OSError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable recently played file {self.path}: {e}")
            return []
        names = [str(name) for name in names]
        return names[-self.limit:]


class SessionHistory:
    """Tracks visited during this run, with a cursor for back navigation."""

    def __init__(self) -> None:
        self._entries: list[Track] = []
        self._cursor = -1

    @property
    def entries(self) -> list[Track]:
        return list(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Optional[Track]:
        if 0 <= self._cursor < len(self._entries):
            return self._entries[self._cursor]
        return None

    def push(self, track: Track) -> None:
        self._entries.append(track)
        self._cursor = len(self._entries) - 1

    def back(self) -> Optional[Track]:
        if self._cursor <= 0:
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def __len__(self) -> int:
        return len(self._entries)


class RandomFileSelector:
    """Chooses the next meditation at random while avoiding recent repeats.

    Owns the current selection. Random draws prefer tracks whose file name
    is not in the recently played window, and fall back to the whole library
    when every track is recent, so a non-empty library always yields a track.
    """

    def __init__(
        self,
        tracks: Sequence[Track],
        recent: Optional[RecentlyPlayedWindow] = None,
        rng: Optional[random.Random] = None,
    ):
        self.tracks = list(dict.fromkeys(tracks))
        self.recent = recent if recent is not None else RecentlyPlayedWindow()
        self.history = SessionHistory()
        self._rng = rng or random.Random()

    @property
    def current(self) -> Optional[Track]:
        return self.history.current

    def select_random(self) -> Optional[Track]:
        if not self.tracks:
            return None
        candidates = [track for track in self.tracks if track.name not in self.recent]
        if not candidates:
            logger.debug("Every track is recently played, choosing from the full library")
            candidates = self.tracks
        return self._rng.choice(candidates)

    def record_played(self, track: Track) -> None:
        if track not in self.tracks:
            logger.debug(f"Not recording unknown track as played: {track.path}")
            return
        self.recent.add(track.name)
        logger.info(f"Recorded {track.name} as recently played ({len(self.recent)}/{self.recent.limit})")

    def initialize_session(self, initial: Optional[Track] = None) -> Optional[Track]:
        """Seed session history with ``initial`` or a random pick.

        The initial selection is not recorded as played.
        """
        track = initial if initial in self.tracks else self.select_random()
        if track is not None:
            self.history.push(track)
        return track

    def next_random_file(self) -> Optional[Track]:
        track = self.select_random()
        if track is not None:
            self.history.push(track)
        return track

    def previous_file(self) -> Optional[Track]:
        return self.history.back()
