from __future__ import annotations

import logging
from pathlib import Path

from textual.app import ComposeResult
from textual.containers import Container
from textual.widgets import Label, ListItem, ListView, Static

from models.history import format_time_ago
from services.history_store import HistoryStore, HistoryStoreError

logger = logging.getLogger(__name__)

HISTORY_REFRESH_INTERVAL = 5.0
HISTORY_LIMIT = 10


class HistoryView(Container):
    """Recently listened meditations and the overall completion rate."""

    def __init__(self, history: HistoryStore | None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.history = history
        self._last_rows: list[str] | None = None

    def compose(self) -> ComposeResult:
        yield Label("🕯 Recently Listened")
        yield ListView(id="history-list")
        yield Static("", id="history-stats")

    def on_mount(self) -> None:
        self.set_interval(HISTORY_REFRESH_INTERVAL, self.refresh_history)
        self.refresh_history()

    def refresh_history(self) -> None:
        """Reload entries from the history store.

        Store errors are logged and leave the previous contents in place.
        """
        if self.history is None:
            self._show_rows(["History unavailable"], "")
            return

        try:
            records = self.history.recent_history(HISTORY_LIMIT)
            stats = self.history.completion_stats()
        except HistoryStoreError as e:
            logger.warning(f"Could not refresh history view: {e}")
            return

        rows = [
            f"{rank:2d}. {Path(record.filename).stem}  ·  {format_time_ago(record.played_at)}"
            for rank, record in enumerate(records, start=1)
        ] or ["Nothing listened to yet"]
        summary = f"Completed {stats.completed}/{stats.total} sessions ({stats.rate:.0f}%)"
        self._show_rows(rows, summary)

    def _show_rows(self, rows: list[str], summary: str) -> None:
        self.query_one("#history-stats", Static).update(summary)
        if rows == self._last_rows:
            return
        self._last_rows = rows

        history_list = self.query_one("#history-list", ListView)
        history_list.clear()
        for row in rows:
            history_list.append(ListItem(Label(row)))
