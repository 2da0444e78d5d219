"""Pure task record model - no I/O dependencies."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

PRIORITIES = ("low", "medium", "high")
STATUSES = ("open", "done")
MAX_TAGS = 8
DEFAULT_TITLE = "Untitled"


def now_iso() -> str:
    """Current UTC time as a sortable ISO string (millisecond precision)."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def generate_id() -> str:
    return str(uuid.uuid4())


def parse_tags(text: str | None) -> tuple[str, ...]:
    """Split comma-separated tag input, keeping the first 8 non-empty entries."""
    if not text:
        return ()
    tags = [t.strip() for t in text.split(",")]
    return tuple(t for t in tags if t)[:MAX_TAGS]


def clean_tags(value: Any) -> tuple[str, ...]:
    """Drop non-string entries and cap at 8. Anything but a sequence yields no tags."""
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(t for t in value if isinstance(t, str))[:MAX_TAGS]


@dataclass(frozen=True)
class Task:
    """A single to-do item."""

    id: str
    title: str
    description: str = ""
    due_date: str | None = None
    priority: str = "medium"
    status: str = "open"
    tags: tuple[str, ...] = ()
    created_at: str = ""
    updated_at: str = ""
    completed_at: str | None = None
    notes_by_user: dict | None = None

    @property
    def is_done(self) -> bool:
        return self.status == "done"

    def to_dict(self) -> dict:
        """Wire/storage form with camelCase keys."""
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dueDate": self.due_date,
            "priority": self.priority,
            "status": self.status,
            "tags": list(self.tags),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "completedAt": self.completed_at,
        }
        if self.notes_by_user is not None:
            data["notesByUser"] = self.notes_by_user
        return data


def normalize(raw: Any, now: str | None = None) -> Task:
    """
    Coerce arbitrary external data into a valid Task.

    Missing or invalid fields get defaults instead of raising, so corrupted
    storage, import files or remote documents never stop processing.
    Idempotent: normalize(normalize(x)) == normalize(x).
    """
    if isinstance(raw, Task):
        raw = raw.to_dict()
    if not isinstance(raw, dict):
        raw = {}
    now = now or now_iso()

    task_id = raw.get("id")
    title = raw.get("title")
    description = raw.get("description")
    due = raw.get("dueDate")
    priority = raw.get("priority")
    status = "done" if raw.get("status") == "done" else "open"
    notes = raw.get("notesByUser")

    created_at = _timestamp(raw.get("createdAt")) or now
    updated_at = _timestamp(raw.get("updatedAt")) or now
    if updated_at < created_at:
        updated_at = created_at

    completed_at = None
    if status == "done":
        completed_at = _timestamp(raw.get("completedAt")) or now

    return Task(
        id=task_id if isinstance(task_id, str) and task_id else generate_id(),
        title=title if isinstance(title, str) else DEFAULT_TITLE,
        description=description if isinstance(description, str) else "",
        due_date=str(due) if due else None,
        priority=priority if priority in PRIORITIES else "medium",
        status=status,
        tags=clean_tags(raw.get("tags")),
        created_at=created_at,
        updated_at=updated_at,
        completed_at=completed_at,
        notes_by_user=notes if isinstance(notes, dict) else None,
    )


def _timestamp(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None
