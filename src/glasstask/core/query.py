"""Pure query logic: which tasks are visible, and in what order - no I/O."""

from dataclasses import dataclass
from datetime import date, timedelta

from .tasks import PRIORITIES, STATUSES, Task

STATUS_FILTERS = ("all",) + STATUSES
PRIORITY_FILTERS = ("all",) + PRIORITIES
DUE_FILTERS = ("all", "today", "week", "overdue", "none")
SORT_FIELDS = ("due_date", "priority", "created_at", "title")
SORT_DIRECTIONS = ("asc", "desc")

PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}
NO_DUE_DATE = "9999-12-31"
WEEK_DAYS = 7


@dataclass(frozen=True)
class TaskFilter:
    """Filter selection. All conditions are ANDed."""

    status: str = "all"
    priority: str = "all"
    due: str = "all"

    def __post_init__(self):
        _check("status", self.status, STATUS_FILTERS)
        _check("priority", self.priority, PRIORITY_FILTERS)
        _check("due", self.due, DUE_FILTERS)


@dataclass(frozen=True)
class TaskSort:
    """Sort field and direction."""

    field: str = "due_date"
    direction: str = "asc"

    def __post_init__(self):
        _check("sort field", self.field, SORT_FIELDS)
        _check("sort direction", self.direction, SORT_DIRECTIONS)

    def toggled(self) -> "TaskSort":
        return TaskSort(self.field, "desc" if self.direction == "asc" else "asc")


@dataclass(frozen=True)
class TaskCounts:
    total: int
    open: int
    done: int


def _check(name: str, value: str, allowed: tuple[str, ...]) -> None:
    if value not in allowed:
        raise ValueError(f"Unknown {name} {value!r}; expected one of {', '.join(allowed)}")


def matches_due(task: Task, due: str, as_of: date | None = None) -> bool:
    """
    Classify a task's due date against a due window.

    Dates compare as yyyy-mm-dd strings. Tasks without a due date only
    match "all" and "none".
    """
    if due == "all":
        return True
    if due == "none":
        return not task.due_date
    if not task.due_date:
        return False

    as_of = as_of or date.today()
    today = as_of.isoformat()
    if due == "today":
        return task.due_date == today
    if due == "week":
        week_end = (as_of + timedelta(days=WEEK_DAYS)).isoformat()
        return today <= task.due_date <= week_end
    if due == "overdue":
        return task.due_date < today
    return False


def matches_search(task: Task, query: str) -> bool:
    """Case-insensitive substring match on title, description and tags."""
    query = query.strip().lower()
    if not query:
        return True
    haystack = f"{task.title}\n{task.description}\n{','.join(task.tags)}".lower()
    return query in haystack


def filter_tasks(
    tasks: list[Task],
    filters: TaskFilter | None = None,
    search: str = "",
    as_of: date | None = None,
) -> list[Task]:
    """Filter tasks by status, priority, due window and search text."""
    filters = filters or TaskFilter()
    as_of = as_of or date.today()
    return [
        t
        for t in tasks
        if (filters.status == "all" or t.status == filters.status)
        and (filters.priority == "all" or t.priority == filters.priority)
        and matches_due(t, filters.due, as_of)
        and matches_search(t, search)
    ]


def sort_key(task: Task, field: str):
    if field == "priority":
        return PRIORITY_RANK.get(task.priority, 0)
    if field == "created_at":
        return task.created_at
    if field == "title":
        return task.title.lower()
    return task.due_date or NO_DUE_DATE


def sort_tasks(tasks: list[Task], sort: TaskSort | None = None) -> list[Task]:
    """
    Stable sort by a single field.

    Equal keys keep their input order in both directions (sorted() stays
    stable with reverse=True). Missing due dates sort as far future.
    """
    sort = sort or TaskSort()
    return sorted(
        tasks,
        key=lambda t: sort_key(t, sort.field),
        reverse=sort.direction == "desc",
    )


def visible_tasks(
    tasks: list[Task],
    filters: TaskFilter | None = None,
    search: str = "",
    sort: TaskSort | None = None,
    as_of: date | None = None,
) -> list[Task]:
    """
    Compute the visible, ordered slice of the collection.

    Pure function - the input list is never modified.
    """
    return sort_tasks(filter_tasks(tasks, filters, search, as_of), sort)


def count_tasks(tasks: list[Task]) -> TaskCounts:
    """Aggregate counts over the whole collection."""
    done = sum(1 for t in tasks if t.is_done)
    return TaskCounts(total=len(tasks), open=len(tasks) - done, done=done)


def find_task(tasks: list[Task], ref: str) -> Task | None:
    """Find a task by exact id, or by a unique id prefix."""
    if not ref:
        return None
    for t in tasks:
        if t.id == ref:
            return t
    matches = [t for t in tasks if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None
