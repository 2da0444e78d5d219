"""Local task storage interface."""

from typing import Any, Protocol

from glasstask.core.tasks import Task


class LocalStore(Protocol):
    """Interface for persisting the whole collection on this device."""

    def load(self) -> Any | None:
        """Load the raw stored envelope. Returns None if nothing is stored."""
        ...

    def save(self, tasks: list[Task]) -> None:
        """Persist the whole collection, replacing what was stored."""
        ...
