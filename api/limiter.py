"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to mount as middleware) and
api/routes/v1/iam.py (to apply the login limit with @limiter.limit()).

A single shared instance keeps one in-memory counter store for the process;
separate instances per module would each count on their own and never trip.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def login_rate_limit() -> str:
    """Limit string for POST /session, read from settings at request time."""
    return get_settings().login_rate_limit
