"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the NYS API happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. redis_url -> REDIS_URL). Type coercion and validation are built in.

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. The universe segment is spliced into every capability string,
      so it may not carry the separator or the wildcard marker.

Layer rule: core/ is the kernel. This module may not import from api/, iam/,
or tasker/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("nys.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'iam' / 'nys.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 5.0

    # ------------------------------------------------------------------
    # Identity and sessions
    # ------------------------------------------------------------------

    universe: str = "nys"
    session_cookie_name: str = "nys-session"
    session_cookie_path: str = "/v1"
    # 0 keeps session mappings until they are revoked via DELETE /session.
    session_ttl_seconds: int = 0
    bcrypt_rounds: int = 10

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    allowed_origins: list[str] = ["http://localhost", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_identity_settings(self) -> "Settings":
        """Reject settings that would produce unusable capabilities or hashes.

        bcrypt itself only accepts a log2 cost between 4 and 31; failing here
        turns a confusing per-request ValueError into a startup failure.
        """
        if not self.universe or ":" in self.universe or "*" in self.universe:
            raise ValueError("UNIVERSE must be non-empty and may not contain ':' or '*'.")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        if self.session_ttl_seconds < 0:
            raise ValueError("SESSION_TTL_SECONDS may not be negative.")
        if self.debug and self.session_ttl_seconds == 0:
            logger.warning("Sessions never expire (SESSION_TTL_SECONDS=0); revoke them explicitly.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
