from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except (TypeError, ValueError):
        return None


@dataclass
class PlayHistoryRecord:
    """One row of the play history log.

    A ``start`` record is created when a track begins playing and stays open
    (no ``completed_at``) until playback ends past the completion threshold.
    ``recent`` records mark tracks that were meaningfully listened to.
    """
    id: int
    filename: str
    played_at: datetime | None
    completed_at: datetime | None = None
    duration: int | None = None
    entry_type: str = "start"

    @property
    def is_open(self) -> bool:
        return self.completed_at is None


@dataclass
class CompletionStats:
    """Aggregate completion figures over started sessions."""
    total: int = 0
    completed: int = 0

    @property
    def rate(self) -> float:
        """Completion rate as a percentage rounded to two decimals."""
        if self.total <= 0:
            return 0.0
        return round(self.completed / self.total * 100, 2)


def format_time_ago(when: datetime | None, now: datetime | None = None) -> str:
    """Render a timestamp as a coarse human label ("today", "2 weeks ago")."""
    if when is None:
        return ""
    now = now or datetime.now()
    days = int((now - when).total_seconds() // 86400)

    if days <= 0:
        return "today"
    if days == 1:
        return "yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 35:
        weeks = days // 7
        return "1 week ago" if weeks == 1 else f"{weeks} weeks ago"

    months = int(days / 30.44)
    return "1 month ago" if months == 1 else f"{months} months ago"
