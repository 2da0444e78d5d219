"""Remote task storage interface."""

from typing import Callable, Protocol

from glasstask.core.tasks import Task

Unsubscribe = Callable[[], None]


class RemoteStore(Protocol):
    """Interface for a per-user remote copy of the collection."""

    def read_all(self, user_key: str) -> list[Task]:
        """Read every task stored for a user."""
        ...

    def replace_all(self, user_key: str, tasks: list[Task]) -> None:
        """Upsert every task and delete remote tasks missing from the list."""
        ...

    def subscribe(self, user_key: str, on_snapshot: Callable[[list[Task]], None]) -> Unsubscribe:
        """Deliver remote snapshots as they change. Returns an unsubscribe callable."""
        ...
