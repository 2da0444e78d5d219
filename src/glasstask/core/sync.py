"""Pure sync reconciliation between a local and a remote collection - no I/O."""

from dataclasses import dataclass, field

from .tasks import Task, normalize


@dataclass(frozen=True)
class PushPlan:
    """Writes needed to make the remote collection match the local one."""

    upserts: list[Task] = field(default_factory=list)
    deletes: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.upserts and not self.deletes


def _remote_id(raw) -> str | None:
    """Id of a remote entry, or None when it has no usable id."""
    if isinstance(raw, Task):
        return raw.id
    if isinstance(raw, str):
        return raw or None
    if isinstance(raw, dict):
        task_id = raw.get("id")
        if isinstance(task_id, str) and task_id:
            return task_id
    return None


def merge_remote(local: list[Task], remote: list) -> list[Task]:
    """
    Merge a remote snapshot into the local collection, last write wins.

    - local only: kept (new or not yet pushed)
    - remote only: adopted, normalized, appended after local records
    - both: the record with the greater updated_at wins; ties keep local

    Remote entries without an id are skipped. A remote entry without a valid
    updatedAt never beats a local copy. Re-merging the same snapshot is a no-op.
    """
    remote_by_id: dict[str, tuple[Task, str]] = {}
    for raw in remote:
        task_id = _remote_id(raw)
        if task_id is None or isinstance(raw, str) or task_id in remote_by_id:
            continue
        stamp = raw.updated_at if isinstance(raw, Task) else raw.get("updatedAt")
        remote_by_id[task_id] = (normalize(raw), stamp if isinstance(stamp, str) else "")

    merged = []
    local_ids = set()
    for task in local:
        local_ids.add(task.id)
        other, stamp = remote_by_id.get(task.id, (None, ""))
        if other is not None and stamp > task.updated_at:
            merged.append(other)
        else:
            merged.append(task)

    merged.extend(t for task_id, (t, _) in remote_by_id.items() if task_id not in local_ids)
    return merged


def diff_for_push(local: list[Task], remote: list) -> PushPlan:
    """
    Full-collection push plan.

    Every local record is upserted whole. Any remote id missing locally is
    deleted, since a local delete is only visible as absence. Remote entries
    without an id are ignored.
    """
    local_ids = {t.id for t in local}
    deletes = []
    for raw in remote:
        remote_id = _remote_id(raw)
        if remote_id is not None and remote_id not in local_ids and remote_id not in deletes:
            deletes.append(remote_id)
    return PushPlan(upserts=list(local), deletes=deletes)
