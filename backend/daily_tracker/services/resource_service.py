"""
Daily Tracker Backend — Job / Task / Note Service
===================================================

What:  Owner-scoped CRUD for the three resource kinds, publishing a change
       event after every successful mutation.
Why:   Keeps HTTP concerns out of the rules shared by all three kinds
       (ownership, not-found mapping, event naming).
Who:   routes/jobs.py, routes/tasks.py, routes/notes.py.
When:  Once per mutating or listing request.

Events (sent through the Broadcaster, camelCase JSON):
    <kind>:created  full record
    <kind>:updated  full record
    <kind>:deleted  {"id": "<record id>"}

Events are only published after the store call succeeded. A record id
owned by another user is reported as not found.
"""

import logging
from typing import List

from daily_tracker.exceptions import DuplicateError, NotFoundError
from daily_tracker.schemas.common import CamelModel
from daily_tracker.schemas.records import ResourceKind, ResourceRecord, ResourceUpdate
from daily_tracker.services.broadcaster import Broadcaster
from daily_tracker.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class ResourceService:
    def __init__(self, kind: ResourceKind, store: StorageBackend, broadcaster: Broadcaster):
        self.kind = kind
        self.store = store
        self.broadcaster = broadcaster

    def _not_found(self, record_id: str) -> NotFoundError:
        label = self.kind.value.capitalize()
        return NotFoundError(self.kind.value, record_id, message=f"{label} not found")

    async def _publish(self, action: str, data: dict) -> None:
        await self.broadcaster.broadcast(f"{self.kind.value}:{action}", data)

    async def _before_create(self, user_id: str, fields: dict) -> None:
        """Hook for kind-specific create checks."""

    async def list_for_user(self, user_id: str) -> List[ResourceRecord]:
        return await self.store.list_records(self.kind, user_id)

    async def create(self, user_id: str, payload: CamelModel) -> ResourceRecord:
        fields = payload.model_dump()
        await self._before_create(user_id, fields)
        record = await self.store.create_record(self.kind, user_id, fields)
        logger.info("%s created: %s", self.kind.value, record.id)
        await self._publish("created", record.model_dump(mode="json", by_alias=True))
        return record

    async def update(self, user_id: str, record_id: str, payload: ResourceUpdate) -> ResourceRecord:
        record = await self.store.update_record(self.kind, record_id, user_id, payload.changes())
        if record is None:
            raise self._not_found(record_id)
        await self._publish("updated", record.model_dump(mode="json", by_alias=True))
        return record

    async def delete(self, user_id: str, record_id: str) -> None:
        if not await self.store.delete_record(self.kind, record_id, user_id):
            raise self._not_found(record_id)
        logger.info("%s deleted: %s", self.kind.value, record_id)
        await self._publish("deleted", {"id": record_id})


def normalize_url(url: str) -> str:
    """Lower-case and drop a single trailing slash."""
    url = url.lower()
    if url.endswith("/"):
        url = url[:-1]
    return url


class TaskService(ResourceService):
    """
    Tasks refuse a second task with the same normalized URL per user.

    The check reads the caller's tasks and then inserts, so two concurrent
    creates with the same URL can both pass.
    """

    def __init__(self, store: StorageBackend, broadcaster: Broadcaster):
        super().__init__(ResourceKind.TASK, store, broadcaster)

    async def _before_create(self, user_id: str, fields: dict) -> None:
        url = fields.get("url")
        if not url:
            return
        candidate = normalize_url(url)
        for task in await self.store.list_records(self.kind, user_id):
            if task.url and normalize_url(task.url) == candidate:
                raise DuplicateError("Task with this URL already exists", field="url")


def build_resource_services(store: StorageBackend, broadcaster: Broadcaster) -> dict:
    return {
        ResourceKind.JOB: ResourceService(ResourceKind.JOB, store, broadcaster),
        ResourceKind.TASK: TaskService(store, broadcaster),
        ResourceKind.NOTE: ResourceService(ResourceKind.NOTE, store, broadcaster),
    }
