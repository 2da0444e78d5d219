"""File-based local task storage adapter."""

import json
import logging
from pathlib import Path
from typing import Any

from glasstask.core.tasks import Task
from glasstask.core.transfer import to_envelope

logger = logging.getLogger(__name__)


class FileTaskStore:
    """
    JSON file task storage.

    Implements LocalStore protocol. The whole collection lives in one
    {"tasks": [...]} envelope.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def load(self) -> Any | None:
        """Read the stored envelope. Returns None if missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable task file {self.path}: {e}")
            return None

    def save(self, tasks: list[Task]) -> None:
        """Write the whole collection atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(to_envelope(tasks)))
        tmp.replace(self.path)
        logger.debug(f"Saved {len(tasks)} tasks to {self.path}")
