"""
api/routes/v1/debug.py -- Session introspection.

Routes (mounted under /v1/private/debug):
  GET /whoami -- the entity behind the session cookie
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import EntityResponse
from iam.dependencies import get_current_entity
from iam.models import AuthenticatableEntity

router = APIRouter()


@router.get("/whoami", response_model=EntityResponse)
def whoami(current: AuthenticatableEntity = Depends(get_current_entity)) -> EntityResponse:
    return EntityResponse.from_entity(current)
