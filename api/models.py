"""
API request and response models for the NYS REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in iam/models.py and
tasker/models.py, which own the internal domain representation. Route
handlers map between the two.

Separation of concerns: iam/ and tasker/ models = domain truth; api/ models = API contract.
"""

from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

from iam.models import AuthenticatableEntity
from iam.passwords import MAX_PASSWORD_BYTES
from tasker.models import Task

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Entity ids become a capability segment and part of a cache key, so the
# separator ':' and the wildcard '*' are excluded by construction.
ENTITY_ID_PATTERN = r"^[A-Za-z0-9_.@-]{1,128}$"

_EntityId = Annotated[str, StringConstraints(strip_whitespace=True, pattern=ENTITY_ID_PATTERN)]


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password may not exceed {MAX_PASSWORD_BYTES} bytes of UTF-8")
    return value


# Passwords are hashed exactly as sent: never stripped or normalised.
_Password = Annotated[str, Field(min_length=8), AfterValidator(_check_password_bytes)]
_LoginPassword = Annotated[str, Field(min_length=1), AfterValidator(_check_password_bytes)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /v1/public/iam/authenticatable_entity."""

    id: _EntityId
    password: _Password


class SessionRequest(BaseModel):
    """Request body for POST /v1/public/iam/session.

    No pattern on id here: an id that could never have been registered simply
    fails to resolve, and the caller gets the same answer as for any unknown id.
    """

    id: str = Field(min_length=1, max_length=128)
    password: _LoginPassword


class CreateTaskRequest(BaseModel):
    """Request body for POST /v1/private/tasker/{entity}/task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(min_length=1, max_length=2000)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SessionResponse(BaseModel):
    """Response for POST /v1/public/iam/session. The same token is also set as a cookie."""

    model_config = ConfigDict(frozen=True)

    session_id: str


class EntityResponse(BaseModel):
    """Public view of an entity. The password hash never leaves the service."""

    model_config = ConfigDict(frozen=True)

    id: str
    enabled: bool
    granted_patterns: list[str]

    @classmethod
    def from_entity(cls, entity: AuthenticatableEntity) -> "EntityResponse":
        return cls(id=entity.id, enabled=entity.enabled, granted_patterns=list(entity.granted_patterns))


class TaskResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    id: str
    description: str
    completed: bool

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(owner=task.owner, id=task.id, description=task.description, completed=task.completed)


class TaskListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    tasks: list[TaskResponse]


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload.

    code is the stable error kind (e.g. "NoMatchingPrivilege"); number is its
    legacy numeric code, present only for identity/authorization errors.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    number: Optional[int] = None
    requested_path: Optional[str] = None
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
