"""Adapters - I/O implementations of ports."""

from .file_store import FileTaskStore
from .firebase_auth import FirebaseSession, AuthenticationError
from .firestore import FirestoreRemoteStore, TransportError

__all__ = [
    "FileTaskStore",
    "FirebaseSession",
    "AuthenticationError",
    "FirestoreRemoteStore",
    "TransportError",
]
