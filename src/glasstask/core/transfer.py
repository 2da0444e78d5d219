"""Pure conversion between task collections and the persisted envelope."""

import json
import logging
from typing import Any

from .tasks import Task, normalize, now_iso

logger = logging.getLogger(__name__)


class ImportFormatError(ValueError):
    """Raised when an import file is not a task envelope at all."""

    pass


def tasks_from_envelope(data: Any) -> list[Task]:
    """
    Read a stored {"tasks": [...]} envelope.

    Anything that is not an envelope loads as an empty collection; each
    entry goes through normalize(). Duplicate ids keep the first entry.
    """
    if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
        return []
    tasks = []
    seen = set()
    for raw in data["tasks"]:
        if not isinstance(raw, dict):
            logger.debug(f"Skipping non-object task entry: {raw!r}")
            continue
        task = normalize(raw)
        if task.id in seen:
            logger.warning(f"Skipping duplicate task id {task.id}")
            continue
        seen.add(task.id)
        tasks.append(task)
    return tasks


def to_envelope(tasks: list[Task]) -> dict:
    return {"tasks": [t.to_dict() for t in tasks]}


def to_export(tasks: list[Task], now: str | None = None) -> dict:
    return {"exportedAt": now or now_iso(), "tasks": [t.to_dict() for t in tasks]}


def parse_import(text: str, now: str | None = None) -> list[Task]:
    """
    Parse an export file into normalized tasks.

    Entries that are not objects or have no string title are skipped.
    Imported records are stamped updated now; done records without a
    completion time get one.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ImportFormatError("Invalid file") from e
    if not isinstance(data, dict):
        raise ImportFormatError("Invalid file")
    if not isinstance(data.get("tasks"), list):
        raise ImportFormatError("File missing tasks[]")

    now = now or now_iso()
    imported = []
    for raw in data["tasks"]:
        if not isinstance(raw, dict) or not isinstance(raw.get("title"), str):
            continue
        imported.append(normalize({**raw, "updatedAt": now}, now=now))
    return imported
