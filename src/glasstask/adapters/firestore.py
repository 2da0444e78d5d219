"""Cloud Firestore adapter - per-user task documents over the REST API."""

import asyncio
import contextlib
import logging
from datetime import datetime
from typing import Callable

import requests
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from glasstask.config import Config, load_config
from glasstask.core.sync import diff_for_push
from glasstask.core.tasks import Task, normalize

from .firebase_auth import AuthenticationError, FirebaseSession

logger = logging.getLogger(__name__)

FIRESTORE_BASE = "https://firestore.googleapis.com/v1"
PAGE_SIZE = 300
MAX_BATCH_WRITES = 500
REQUEST_TIMEOUT = 30


class TransportError(Exception):
    """Raised when a remote read or write fails."""

    pass


# ============== Value codec ==============


def encode_value(value) -> dict:
    """Encode a Python value as a Firestore typed value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    return {"stringValue": str(value)}


def encode_fields(data: dict) -> dict:
    return {str(k): encode_value(v) for k, v in data.items()}


def decode_value(value: dict):
    """Decode a Firestore typed value."""
    if "nullValue" in value:
        return None
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    for key in ("stringValue", "booleanValue", "timestampValue", "referenceValue"):
        if key in value:
            return value[key]
    return None


def decode_fields(fields: dict) -> dict:
    return {k: decode_value(v) for k, v in fields.items()}


def document_to_task(document: dict) -> Task:
    """Map a Firestore document to a Task; the id falls back to the document name."""
    data = decode_fields(document.get("fields", {}))
    if not data.get("id"):
        data["id"] = document.get("name", "").rsplit("/", 1)[-1]
    else:
        data["id"] = str(data["id"])
    return normalize(data)


# ============== Adapter ==============


class FirestoreRemoteStore:
    """
    Firestore task storage under users/{user_key}/tasks.

    Implements RemoteStore protocol. One document per task id; no
    business logic beyond the push diff.
    """

    def __init__(
        self,
        session: FirebaseSession,
        config: Config | None = None,
        scheduler: AsyncIOScheduler | None = None,
        poll_interval: float | None = None,
    ):
        self.config = config or load_config()
        self.session = session
        self.scheduler = scheduler
        self._owns_scheduler = False
        self.poll_interval = poll_interval or self.config.poll_interval_seconds
        self._http = requests.Session()

    @property
    def _database(self) -> str:
        return f"projects/{self.config.firebase_project_id}/databases/(default)/documents"

    def _collection(self, user_key: str) -> str:
        return f"{self._database}/users/{user_key}/tasks"

    def _request(self, method: str, path: str, **kwargs) -> dict:
        """Make authenticated API request."""
        try:
            token = self.session.id_token()
        except AuthenticationError as e:
            raise TransportError(str(e)) from e

        try:
            resp = self._http.request(
                method,
                f"{FIRESTORE_BASE}/{path}",
                headers={"Authorization": f"Bearer {token}"},
                timeout=REQUEST_TIMEOUT,
                **kwargs,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"Firestore {method} {path} failed: {e}") from e
        return resp.json() if resp.content else {}

    def _list_documents(self, user_key: str) -> list[dict]:
        documents = []
        page_token = None
        while True:
            params = {"pageSize": PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            data = self._request("GET", self._collection(user_key), params=params)
            documents.extend(data.get("documents", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return documents

    def read_all(self, user_key: str) -> list[Task]:
        """Fetch every task document for a user."""
        return [document_to_task(d) for d in self._list_documents(user_key)]

    def replace_all(self, user_key: str, tasks: list[Task]) -> None:
        """Upsert all tasks and delete remote documents no longer present locally."""
        existing = [d["name"].rsplit("/", 1)[-1] for d in self._list_documents(user_key)]
        plan = diff_for_push(tasks, existing)

        collection = self._collection(user_key)
        writes = [
            {"update": {"name": f"{collection}/{t.id}", "fields": encode_fields(t.to_dict())}}
            for t in plan.upserts
        ]
        writes.extend({"delete": f"{collection}/{task_id}"} for task_id in plan.deletes)

        for start in range(0, len(writes), MAX_BATCH_WRITES):
            self._request(
                "POST",
                f"{self._database}:commit",
                json={"writes": writes[start : start + MAX_BATCH_WRITES]},
            )
        logger.info(
            f"Pushed {len(plan.upserts)} tasks, deleted {len(plan.deletes)} for user {user_key}"
        )

    def subscribe(self, user_key: str, on_snapshot: Callable[[list[Task]], None]) -> Callable[[], None]:
        """
        Poll the collection and deliver snapshots that differ from the last one.

        Must be called with an asyncio event loop running; on_snapshot runs
        on that loop. The first poll always delivers.
        """
        if self.scheduler is None:
            self.scheduler = AsyncIOScheduler()
            self._owns_scheduler = True
        if not self.scheduler.running:
            self.scheduler.start()

        last: list[dict] | None = None

        async def poll() -> None:
            nonlocal last
            try:
                tasks = await asyncio.to_thread(self.read_all, user_key)
            except TransportError as e:
                logger.warning(f"Remote poll failed: {e}")
                return
            snapshot = [t.to_dict() for t in tasks]
            if snapshot == last:
                return
            last = snapshot
            on_snapshot(tasks)

        job = self.scheduler.add_job(
            poll,
            IntervalTrigger(seconds=self.poll_interval),
            id=f"remote-poll-{user_key}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(),
        )
        logger.debug(f"Subscribed to remote tasks for {user_key} every {self.poll_interval}s")

        scheduler = self.scheduler

        def unsubscribe() -> None:
            with contextlib.suppress(JobLookupError):
                scheduler.remove_job(job.id)
            # A scheduler this store started is stopped with its last job
            if self._owns_scheduler and scheduler is self.scheduler and not scheduler.get_jobs():
                scheduler.shutdown(wait=False)
                self.scheduler = None
                self._owns_scheduler = False

        return unsubscribe
