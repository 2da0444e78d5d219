"""Imperative shell between the CLI and the functional core.

TaskList owns the current collection snapshot and hands it to storage and
sync. LiveSync drives a TaskList from an asyncio event loop: debounced
saves and searches, plus remote snapshots merged as they arrive.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable

from .adapters.file_store import FileTaskStore
from .adapters.firebase_auth import FirebaseSession
from .adapters.firestore import FirestoreRemoteStore, TransportError
from .config import Config
from .core.mutations import (
    MutationResult,
    clear_completed,
    create_task,
    delete_task,
    import_tasks,
    toggle_status,
    update_task,
)
from .core.query import TaskCounts, TaskFilter, TaskSort, count_tasks, visible_tasks
from .core.sync import merge_remote
from .core.tasks import Task
from .core.transfer import parse_import, tasks_from_envelope
from .debounce import Debouncer
from .ports import LocalStore, RemoteStore, Session, Unsubscribe

logger = logging.getLogger(__name__)


@dataclass
class TaskView:
    """What the view renders: the visible slice plus whole-collection counts."""

    tasks: list[Task]
    counts: TaskCounts


class TaskList:
    """
    Holds the current task collection.

    Every change replaces the collection with the snapshot returned by the
    core; nothing here edits a task in place.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteStore | None = None,
        session: Session | None = None,
    ):
        self.store = store
        self.remote = remote
        self.session = session
        self.tasks: list[Task] = []

    @property
    def user_key(self) -> str | None:
        if self.remote is None or self.session is None:
            return None
        return self.session.current_user_key()

    def load(self) -> list[Task]:
        self.tasks = tasks_from_envelope(self.store.load())
        logger.debug(f"Loaded {len(self.tasks)} tasks")
        return self.tasks

    def save(self) -> None:
        self.store.save(self.tasks)

    def apply(self, result: MutationResult) -> MutationResult:
        if result.changed:
            self.tasks = result.tasks
        return result

    # ============== Intents ==============

    def add(self, payload: dict) -> MutationResult:
        return self.apply(create_task(self.tasks, payload))

    def edit(self, task_id: str, changes: dict) -> MutationResult:
        return self.apply(update_task(self.tasks, task_id, changes))

    def toggle(self, task_id: str, done: bool) -> MutationResult:
        return self.apply(toggle_status(self.tasks, task_id, done))

    def delete(self, task_id: str) -> MutationResult:
        return self.apply(delete_task(self.tasks, task_id))

    def clear_completed(self) -> MutationResult:
        return self.apply(clear_completed(self.tasks))

    def import_text(self, text: str) -> MutationResult:
        """Import an export file. Raises ImportFormatError for non-envelopes."""
        return self.apply(import_tasks(self.tasks, parse_import(text)))

    def view(
        self,
        filters: TaskFilter | None = None,
        sort: TaskSort | None = None,
        search: str = "",
        as_of: date | None = None,
    ) -> TaskView:
        return TaskView(
            tasks=visible_tasks(self.tasks, filters, search, sort, as_of),
            counts=count_tasks(self.tasks),
        )

    # ============== Sync ==============

    def receive_snapshot(self, remote: list) -> bool:
        """Merge a remote snapshot. Returns True if the collection changed."""
        merged = merge_remote(self.tasks, remote)
        changed = merged != self.tasks
        self.tasks = merged
        if changed:
            logger.info(f"Merged remote snapshot ({len(remote)} remote tasks)")
        return changed

    def pull(self) -> bool:
        """Read the remote collection and merge it. Raises TransportError."""
        user_key = self.user_key
        if user_key is None:
            return False
        return self.receive_snapshot(self.remote.read_all(user_key))

    def push(self, tasks: list[Task] | None = None) -> bool:
        """
        Overwrite the remote collection with the local one.

        Raises TransportError; the local collection is left as is.
        """
        user_key = self.user_key
        if user_key is None:
            return False
        self.remote.replace_all(user_key, self.tasks if tasks is None else tasks)
        return True

    def sync(self) -> bool:
        """
        Pull and merge, then push the merged collection.

        Merged remote changes are saved before the push, so a failed push
        does not lose them.
        """
        changed = self.pull()
        if changed:
            self.save()
        self.push()
        return changed


def build_task_list(config: Config) -> TaskList:
    """Wire a TaskList to the configured stores."""
    store = FileTaskStore(config.tasks_path)
    if not config.sync_enabled:
        return TaskList(store)
    session = FirebaseSession(config)
    remote = FirestoreRemoteStore(session, config)
    return TaskList(store, remote, session)


class LiveSync:
    """
    Event-loop driven session around a TaskList.

    Local changes are saved after a quiet period and then pushed; remote
    snapshots are merged into the current collection, saved and rendered.
    At most one push is in flight at a time.
    """

    def __init__(
        self,
        task_list: TaskList,
        render: Callable[[TaskView], None],
        filters: TaskFilter | None = None,
        sort: TaskSort | None = None,
        save_delay: float = 0.15,
        search_delay: float = 0.15,
    ):
        self.task_list = task_list
        self.render = render
        self.filters = filters or TaskFilter()
        self.sort = sort or TaskSort()
        self.search = ""
        self._save = Debouncer(save_delay, self._save_now)
        self._search = Debouncer(search_delay, self.refresh)
        self._unsubscribe: Unsubscribe | None = None
        self._push_task: asyncio.Task | None = None
        self._push_pending = False

    def start(self) -> None:
        """Render, and subscribe to remote changes when signed in."""
        user_key = self.task_list.user_key
        if user_key is not None:
            self._unsubscribe = self.task_list.remote.subscribe(user_key, self.on_snapshot)
        self.refresh()

    async def stop(self) -> None:
        """Unsubscribe, write any pending save and wait for the last push."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._search.cancel()
        self._save.flush()
        if self._push_task is not None:
            await self._push_task

    def refresh(self) -> None:
        self.render(self.task_list.view(self.filters, self.sort, self.search))

    def apply(self, result: MutationResult) -> MutationResult:
        self.task_list.apply(result)
        if result.changed:
            self._save.trigger()
            self.refresh()
        return result

    def on_snapshot(self, remote: list[Task]) -> None:
        if self.task_list.receive_snapshot(remote):
            self._save.trigger()
            self.refresh()

    def set_search(self, query: str) -> None:
        self.search = query
        self._search.trigger()

    def set_filters(self, filters: TaskFilter) -> None:
        self.filters = filters
        self.refresh()

    def set_sort(self, sort: TaskSort) -> None:
        self.sort = sort
        self.refresh()

    def _save_now(self) -> None:
        self.task_list.save()
        self._schedule_push()

    def _schedule_push(self) -> None:
        if self.task_list.user_key is None:
            return
        self._push_pending = True
        if self._push_task is None or self._push_task.done():
            self._push_task = asyncio.get_running_loop().create_task(self._push())

    async def _push(self) -> None:
        while self._push_pending:
            self._push_pending = False
            tasks = self.task_list.tasks
            try:
                await asyncio.to_thread(self.task_list.push, tasks)
            except TransportError as e:
                logger.warning(f"Push failed, will retry on next change: {e}")
                return
