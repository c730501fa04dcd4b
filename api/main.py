"""
api/main.py -- FastAPI application entry point for the NYS API.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for allowed browser origins
  2. log_requests   -- method, path, status, latency for every request

Rate limiting is per-route through the shared slowapi limiter (api.limiter).

Lifespan creates the store handles once (record store, Redis cache) and the
services built on them (IdentityResolver, SessionManager), parks them on
app.state for the request handlers, and closes the stores on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.debug import router as debug_router
from api.routes.v1.iam import router as iam_router
from api.routes.v1.tasker import router as tasker_router
from core.config import get_settings
from iam.cache import RedisCacheStore
from iam.errors import AuthzError, ErrorKind
from iam.resolver import IdentityResolver
from iam.sessions import SessionManager
from iam.store import RecordStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("nys.api")

# ---------------------------------------------------------------------------
# Error kind -> (HTTP status, legacy numeric code)
# ---------------------------------------------------------------------------

ERROR_STATUS: dict[ErrorKind, tuple[int, int]] = {
    ErrorKind.ENTITY_NOT_FOUND: (404, 0),
    ErrorKind.TOO_MANY_ENTITIES: (500, 1),
    ErrorKind.SERVICE_UNAVAILABLE: (503, 2),
    ErrorKind.CACHE_UNAVAILABLE: (503, 3),
    ErrorKind.AUTHENTICATION_FAILED: (401, 4),
    ErrorKind.MISSING_SESSION_KEY: (401, 5),
    ErrorKind.INVALID_SESSION: (401, 6),
    ErrorKind.NO_MATCHING_PRIVILEGE: (403, 7),
    ErrorKind.MALFORMED_CAPABILITY: (500, 8),
    ErrorKind.ENTITY_ALREADY_EXISTS: (409, 9),
}


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create shared store handles on startup; close them on shutdown.

    Redis connects lazily, so an unreachable cache does not block startup --
    the first request that needs it gets CacheUnavailable instead.
    """
    settings = get_settings()
    logger.info("NYS API starting up")

    app.state.records = RecordStore(settings.database_url)
    logger.info("Record store initialized")
    app.state.cache = RedisCacheStore.from_url(settings.redis_url, settings.redis_socket_timeout)
    logger.info("Cache store initialized (%s)", settings.redis_url.rsplit("@", 1)[-1])

    app.state.resolver = IdentityResolver(app.state.records, app.state.cache, universe=settings.universe)
    app.state.sessions = SessionManager(
        app.state.resolver,
        app.state.cache,
        cookie_name=settings.session_cookie_name,
        cookie_path=settings.session_cookie_path,
        ttl_seconds=settings.session_ttl_seconds,
    )

    yield

    app.state.cache.close()
    app.state.records.close()
    logger.info("NYS API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="NYS API",
    description="Task tracking with session authentication and capability-string authorization.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type"],
    max_age=3600,
)

# slowapi looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(iam_router, prefix="/v1/public/iam", tags=["IAM"])
app.include_router(tasker_router, prefix="/v1/private/tasker", tags=["Tasker"])
app.include_router(debug_router, prefix="/v1/private/debug", tags=["Debug"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthzError)
async def authz_error_handler(request: Request, exc: AuthzError) -> JSONResponse:
    """Map identity and authorization failures to their HTTP status."""
    status, number = ERROR_STATUS[exc.kind]
    if status >= 500:
        logger.error("%s on %s %s: %s", exc.kind.value, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status,
        content=ErrorResponse(
            error=ErrorDetail(
                code=exc.kind.value,
                message=exc.message,
                number=number,
                requested_path=request.url.path,
            )
        ).model_dump(exclude_none=True),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(exclude_none=True),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or path params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(exclude_none=True),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(exclude_none=True),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# No rate limit -- load balancer health checks must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, version, and per-store reachability."""
    components = {
        "app": "ok",
        "database": "ok" if request.app.state.records.ping() else "error",
        "cache": "ok" if request.app.state.cache.ping() else "error",
    }
    return HealthResponse(version=__version__, components=components)
