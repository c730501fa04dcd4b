"""
api/routes/v1/iam.py -- Registration and session REST endpoints.

Routes (mounted under /v1/public/iam):
  POST   /authenticatable_entity  -- register an entity; 201
  POST   /session                 -- password login; sets the session cookie
  DELETE /session                 -- revoke the cookie's session; clears cookie

Security:
  POST /session is rate-limited per client IP (Settings.login_rate_limit).
  Cache-Control: no-store on session responses.
  Unknown ids cost a full bcrypt check (see SessionManager.create_session).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_rate_limit
from api.models import RegisterRequest, SessionRequest, SessionResponse
from iam.dependencies import get_session_token
from iam.models import CookieDescriptor
from iam.resolver import IdentityResolver
from iam.sessions import SessionManager

# Auth policy:
# - POST   /authenticatable_entity: public -- self-registration
# - POST   /session:                public -- login endpoint must be unauthenticated
# - DELETE /session:                requires the session cookie (get_session_token)
router = APIRouter()


def _apply_cookie(response: Response, cookie: CookieDescriptor) -> None:
    response.set_cookie(
        cookie.name,
        value=cookie.value,
        path=cookie.path,
        secure=cookie.secure,
        httponly=cookie.http_only,
        max_age=cookie.max_age,
    )


@router.post("/authenticatable_entity", status_code=201)
def create_authenticatable_entity(request: Request, body: RegisterRequest) -> Response:
    """Register a new entity with full access to its own scope."""
    resolver: IdentityResolver = request.app.state.resolver
    resolver.register(body.id, body.password)
    return Response(status_code=201)


@router.post("/session", response_model=SessionResponse)
@limiter.limit(login_rate_limit)
def create_session(request: Request, body: SessionRequest) -> JSONResponse:
    """Authenticate with id and password; set the session cookie."""
    sessions: SessionManager = request.app.state.sessions
    session, cookie = sessions.create_session(body.id, body.password)

    resp = JSONResponse(status_code=200, content=SessionResponse(session_id=session.token).model_dump())
    _apply_cookie(resp, cookie)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.delete("/session", status_code=204)
def end_session(request: Request, token: str = Depends(get_session_token)) -> Response:
    """Revoke the current session and delete the cookie."""
    sessions: SessionManager = request.app.state.sessions
    sessions.end_session(token)

    resp = Response(status_code=204)
    resp.delete_cookie(sessions.cookie_name, path=sessions.cookie_path, secure=True, httponly=True)
    return resp
