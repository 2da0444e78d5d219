"""Ports - interfaces/protocols for external dependencies."""

from .local_store import LocalStore
from .remote_store import RemoteStore, Unsubscribe
from .session import Session

__all__ = [
    "LocalStore",
    "RemoteStore",
    "Unsubscribe",
    "Session",
]
