"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for socialgraph happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. Only the
      edges of the system (api/main.py lifespan, main.py CLI) call it. The
      token codec, credential helpers and repository receive their values
      explicitly so they can be built in tests without touching the process
      environment.

  @model_validator(mode="after"): dev mode (DEBUG=true) generates a signing
      key with a warning; production mode refuses to start without one.

Security notes:
  [M6] SECRET_KEY shorter than 32 chars is rejected outright. JWT signing
       relies on key entropy -- a short key weakens every session token.

  [M7] In production mode a missing SECRET_KEY is a hard startup failure.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
graph/ or social/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("socialgraph.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'socialgraph.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `secret_key` reads from SECRET_KEY, `bcrypt_rounds` from BCRYPT_ROUNDS.
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
    # Empty string is the sentinel for "not configured".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Sessions are fixed at one hour; there is no refresh flow.
    token_expire_seconds: int = 3600
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Feed
    # ------------------------------------------------------------------

    # When true, the caller's own posts are merged into their feed.
    feed_includes_self: bool = False

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy [M7].

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters [M6].
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
