"""
api/routes/v1/tasker.py -- Task list endpoints guarded by capability checks.

Routes (mounted under /v1/private/tasker):
  POST /{entity}/task      -- add a task; requires <universe>:tasker:{entity}:TaskList:Write
  GET  /{entity}/task/all  -- list tasks; requires <universe>:tasker:{entity}:TaskList:Read

Every handler resolves the caller from the session cookie, builds the
capability it needs, and calls assert_capability() before touching storage.

{entity} only selects the capability to check. Storage is always keyed by the
caller's own id: the segment rule can grant a pattern like nys:*:alice:*:*
access to another id of the same length, and that must not expose that
entity's tasks.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Request

from api.models import ENTITY_ID_PATTERN, CreateTaskRequest, TaskListResponse, TaskResponse
from core.config import get_settings
from iam.capability import build
from iam.dependencies import get_current_entity
from iam.gate import assert_capability
from iam.models import AuthenticatableEntity
from tasker.tasks import create_task, list_tasks

router = APIRouter()

_SERVICE = "tasker"
_RESOURCE = "TaskList"


def _task_list_capability(owner: str, action: str) -> str:
    return build(get_settings().universe, _SERVICE, owner, _RESOURCE, action)


@router.post("/{entity}/task", response_model=TaskResponse, status_code=201)
def add_task(
    request: Request,
    body: CreateTaskRequest,
    entity: str = Path(pattern=ENTITY_ID_PATTERN),
    current: AuthenticatableEntity = Depends(get_current_entity),
) -> TaskResponse:
    """Append a task to the caller's own list once {entity}'s Write capability is granted."""
    assert_capability(current, _task_list_capability(entity, "Write"))
    task = create_task(request.app.state.records, current.id, body.description)
    return TaskResponse.from_task(task)


@router.get("/{entity}/task/all", response_model=TaskListResponse)
def get_all_tasks(
    request: Request,
    entity: str = Path(pattern=ENTITY_ID_PATTERN),
    current: AuthenticatableEntity = Depends(get_current_entity),
) -> TaskListResponse:
    """Return the caller's own tasks once {entity}'s Read capability is granted."""
    assert_capability(current, _task_list_capability(entity, "Read"))
    tasks = list_tasks(request.app.state.records, current.id)
    return TaskListResponse(tasks=[TaskResponse.from_task(t) for t in tasks])
