"""
Pure mutation logic - no I/O.

Every operation takes the current collection and returns a MutationResult
holding a new list. The input list and its tasks are never modified, so a
caller can keep treating earlier collections as stable snapshots.
"""

from dataclasses import dataclass, replace

from .tasks import MAX_TAGS, PRIORITIES, STATUSES, Task, generate_id, now_iso

TITLE_REQUIRED = "Title is required"
EDITABLE_FIELDS = ("title", "description", "due_date", "priority", "status", "tags")


@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of a mutation.

    changed is False for no-ops (unknown id, nothing to clear) and for
    validation failures; error holds the field-level message for the latter.
    """

    tasks: list[Task]
    changed: bool = True
    task: Task | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _unchanged(tasks: list[Task], error: str | None = None) -> MutationResult:
    return MutationResult(tasks=tasks, changed=False, error=error)


def _validate(values: dict) -> str | None:
    if "title" in values and not values["title"]:
        return TITLE_REQUIRED
    if "priority" in values and values["priority"] not in PRIORITIES:
        return f"Priority must be one of {', '.join(PRIORITIES)}"
    if "status" in values and values["status"] not in STATUSES:
        return f"Status must be one of {', '.join(STATUSES)}"
    return None


def _clean(values: dict) -> dict:
    """Keep editable fields only, trimming text and capping tags."""
    cleaned = {k: v for k, v in values.items() if k in EDITABLE_FIELDS}
    if "title" in cleaned:
        cleaned["title"] = (cleaned["title"] or "").strip()
    if "description" in cleaned:
        cleaned["description"] = (cleaned["description"] or "").strip()
    if "due_date" in cleaned:
        cleaned["due_date"] = cleaned["due_date"] or None
    if "tags" in cleaned:
        cleaned["tags"] = tuple(t for t in (cleaned["tags"] or ()) if isinstance(t, str))[:MAX_TAGS]
    return cleaned


def create_task(tasks: list[Task], payload: dict, now: str | None = None) -> MutationResult:
    """Validate a form payload and prepend a new open task."""
    values = _clean({k: v for k, v in payload.items() if k != "status"})
    values.setdefault("title", "")
    values.setdefault("priority", "medium")

    error = _validate(values)
    if error:
        return _unchanged(tasks, error)

    now = now or now_iso()
    task = Task(
        id=generate_id(),
        status="open",
        created_at=now,
        updated_at=now,
        completed_at=None,
        **values,
    )
    return MutationResult(tasks=[task, *tasks], task=task)


def update_task(
    tasks: list[Task],
    task_id: str,
    changes: dict,
    now: str | None = None,
) -> MutationResult:
    """
    Shallow-merge changes onto one task.

    Stamps updated_at; sets completed_at on open->done and clears it on
    done->open. Unknown ids are a silent no-op.
    """
    index = next((i for i, t in enumerate(tasks) if t.id == task_id), None)
    if index is None:
        return _unchanged(tasks)

    values = _clean(changes)
    error = _validate(values)
    if error:
        return _unchanged(tasks, error)

    now = now or now_iso()
    prev = tasks[index]
    task = replace(prev, **values, updated_at=now)
    if not prev.is_done and task.is_done:
        task = replace(task, completed_at=now)
    elif prev.is_done and not task.is_done:
        task = replace(task, completed_at=None)

    updated = list(tasks)
    updated[index] = task
    return MutationResult(tasks=updated, task=task)


def toggle_status(tasks: list[Task], task_id: str, done: bool, now: str | None = None) -> MutationResult:
    return update_task(tasks, task_id, {"status": "done" if done else "open"}, now)


def delete_task(tasks: list[Task], task_id: str) -> MutationResult:
    """Remove a task. Confirmation is the caller's job."""
    target = next((t for t in tasks if t.id == task_id), None)
    if target is None:
        return _unchanged(tasks)
    return MutationResult(tasks=[t for t in tasks if t.id != task_id], task=target)


def clear_completed(tasks: list[Task]) -> MutationResult:
    """Remove every done task, keeping the order of the rest."""
    if not any(t.is_done for t in tasks):
        return _unchanged(tasks)
    return MutationResult(tasks=[t for t in tasks if not t.is_done])


def import_tasks(tasks: list[Task], imported: list[Task]) -> MutationResult:
    """
    Prepend already-normalized imported tasks.

    Imported ids that clash with existing (or earlier imported) ids, or that
    contain "/" and so cannot name a remote document, are replaced with fresh
    ones.
    """
    if not imported:
        return _unchanged(tasks)

    seen = {t.id for t in tasks}
    fresh = []
    for task in imported:
        if task.id in seen or "/" in task.id:
            task = replace(task, id=generate_id())
        seen.add(task.id)
        fresh.append(task)
    return MutationResult(tasks=[*fresh, *tasks])
