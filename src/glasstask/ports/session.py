"""Signed-in user interface."""

from typing import Protocol


class Session(Protocol):
    """Interface for identifying the current user."""

    def current_user_key(self) -> str | None:
        """Stable key for the signed-in user, or None when signed out."""
        ...
