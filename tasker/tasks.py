"""
tasker/tasks.py -- Task list persistence over the shared record store.

Callers must already have passed the authorization gate for the owner's
TaskList; nothing here checks privileges.

Layer rule: may import from iam/ (record store, errors); never from api/.
"""

from __future__ import annotations

import logging
import uuid

from iam.errors import RecordStoreError, ServiceUnavailable
from iam.store import RecordStore, RecordTable
from tasker.models import Task

logger = logging.getLogger("nys.tasker")


def create_task(records: RecordStore, owner: str, description: str) -> Task:
    """Append a new, uncompleted task to owner's list and return it."""
    task = Task(owner=owner, id=str(uuid.uuid4()), description=description)
    try:
        records.put(RecordTable.TASKER, task.to_record())
    except RecordStoreError as exc:
        raise ServiceUnavailable() from exc
    logger.info("Created task %s for %s", task.id, owner)
    return task


def list_tasks(records: RecordStore, owner: str) -> list[Task]:
    """Return every task on owner's list (unordered)."""
    try:
        rows = records.query(RecordTable.TASKER, "owner", owner)
    except RecordStoreError as exc:
        raise ServiceUnavailable() from exc
    logger.debug("Got %d tasks for %s", len(rows), owner)
    return [Task.from_record(row) for row in rows]
