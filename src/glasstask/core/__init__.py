"""Functional core - pure business logic with no I/O."""

from .tasks import Task, normalize, now_iso, parse_tags
from .query import TaskFilter, TaskSort, TaskCounts, visible_tasks, count_tasks, find_task
from .mutations import (
    MutationResult,
    create_task,
    update_task,
    delete_task,
    toggle_status,
    clear_completed,
    import_tasks,
)
from .sync import PushPlan, merge_remote, diff_for_push
from .transfer import ImportFormatError, tasks_from_envelope, to_envelope, to_export, parse_import

__all__ = [
    # Tasks
    "Task",
    "normalize",
    "now_iso",
    "parse_tags",
    # Query
    "TaskFilter",
    "TaskSort",
    "TaskCounts",
    "visible_tasks",
    "count_tasks",
    "find_task",
    # Mutations
    "MutationResult",
    "create_task",
    "update_task",
    "delete_task",
    "toggle_status",
    "clear_completed",
    "import_tasks",
    # Sync
    "PushPlan",
    "merge_remote",
    "diff_for_push",
    # Transfer
    "ImportFormatError",
    "tasks_from_envelope",
    "to_envelope",
    "to_export",
    "parse_import",
]
