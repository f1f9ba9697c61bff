from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class SessionStore:
    """Saves and restores the last selection and playback state as JSON."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def save(self, current_index: Optional[int], state: str, current_file: Optional[str] = None) -> None:
        data = {
            "current_index": current_index,
            "current_file": current_file,
            "state": state,
            "timestamp": datetime.now().isoformat(timespec="seconds"),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2))
            logger.info(f"Session saved to {self.path}")
        except OSError as e:
            logger.error(f"Failed to save session state: {e}")

    def load(self) -> Optional[dict[str, Any]]:
        """Return ``{"current_index", "current_file", "state"}`` or None."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed session file {self.path}")
            return None

        index = data.get("current_index")
        return {
            "current_index": index if isinstance(index, int) else None,
            "current_file": data.get("current_file"),
            "state": data.get("state") or "stopped",
        }
