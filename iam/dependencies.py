"""
iam/dependencies.py -- FastAPI Depends() helpers for session authentication.

Two explicit steps, both visible in a route signature:
  1. get_session_token() pulls the session cookie off the request and raises
     MissingSessionKey if it is absent.
  2. get_current_entity() hands that token to SessionManager.resolve_from_token().

Errors are raised as AuthzError subclasses; api/main.py turns them into the
JSON error envelope.

Layer rule: no imports from api/ or tasker/.
  iam/dependencies.py may import from fastapi (for Depends/Request) because
  this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from core.config import get_settings
from iam.errors import MissingSessionKey
from iam.models import AuthenticatableEntity
from iam.sessions import SessionManager


def get_session_token(request: Request) -> str:
    """Return the session token from the request cookie.

    Use as a FastAPI dependency:
        @router.delete("/session")
        def route(token: str = Depends(get_session_token)): ...
    """
    token = request.cookies.get(get_settings().session_cookie_name)
    if not token:
        raise MissingSessionKey()
    return token


def get_current_entity(request: Request, token: str = Depends(get_session_token)) -> AuthenticatableEntity:
    """Require a live session and return its entity.

    Use as a FastAPI dependency:
        @router.get("/whoami")
        def route(entity: AuthenticatableEntity = Depends(get_current_entity)): ...
    """
    sessions: SessionManager = request.app.state.sessions
    return sessions.resolve_from_token(token)
