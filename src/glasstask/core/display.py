"""Pure display formatting for tasks - no I/O dependencies."""

from datetime import date

from .query import TaskCounts
from .tasks import Task


def format_due_label(due_date: str | None, as_of: date | None = None) -> str:
    """
    Friendly due date label.

    "No due date", "Jun 10 (today)", "Jun 11 (tomorrow)", "Jun 14 (in 4d)",
    "Jun 3 (overdue)"; dates more than a week out get no suffix.
    """
    if not due_date:
        return "No due date"
    try:
        due = date.fromisoformat(due_date)
    except ValueError:
        return due_date

    as_of = as_of or date.today()
    diff = (due - as_of).days
    label = f"{due.strftime('%b')} {due.day}"
    if diff < 0:
        return f"{label} (overdue)"
    if diff == 0:
        return f"{label} (today)"
    if diff == 1:
        return f"{label} (tomorrow)"
    if diff <= 7:
        return f"{label} (in {diff}d)"
    return label


def format_task_line(task: Task, as_of: date | None = None, id_width: int = 8) -> str:
    """
    Format a single task as one line of text.

    Pure function - no I/O.
    """
    check = "x" if task.is_done else " "
    parts = [f"[{check}] {task.id[:id_width]}  {task.title}"]
    parts.append(f"({task.priority})")
    if task.due_date:
        parts.append(f"due {format_due_label(task.due_date, as_of)}")
    if task.tags:
        parts.append(" ".join(f"#{tag}" for tag in task.tags))
    return "  ".join(parts)


def format_counts(counts: TaskCounts) -> str:
    return f"{counts.open} open • {counts.done} done • {counts.total} total"
