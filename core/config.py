"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Digital Library happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Dev mode fills in signing settings with a
      warning; production mode refuses to start without them.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. HS256 token signing
  relies on key entropy -- a short key weakens it.

  In production mode (DEBUG not set or false), a missing SECRET_KEY,
  JWT_ISSUER or JWT_AUDIENCE is a hard startup failure. There are no
  hard-coded fallbacks for signing settings outside dev mode.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or library/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("digitallibrary.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'digital_library.db'}"

# Development-only names. Never used when DEBUG is off.
_DEV_ISSUER = "digital-library-dev"
_DEV_AUDIENCE = "digital-library-dev-clients"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Signing fields default to "" (the "not configured" sentinel) so Settings()
    can be instantiated in test environments with DEBUG=true. The
    model_validator enforces production-safety rules at startup.
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
    database_url: str = _DEFAULT_DB_URL
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"])

    # ------------------------------------------------------------------
    # Token signing
    # ------------------------------------------------------------------

    secret_key: str = ""
    jwt_issuer: str = ""
    jwt_audience: str = ""
    # One expiry policy for every issuing path (login and registration).
    token_expire_minutes: int = Field(default=60, gt=0)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    password_min_length: int = Field(default=6, ge=1)

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_signing_settings(self) -> "Settings":
        """Enforce the signing-settings policy.

        Dev mode (DEBUG=true): auto-generate a random key and use dev
            issuer/audience names, logging a warning for each. Tokens will not
            survive a restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if any of
            SECRET_KEY, JWT_ISSUER or JWT_AUDIENCE is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        missing = [
            name
            for name, value in (
                ("SECRET_KEY", self.secret_key),
                ("JWT_ISSUER", self.jwt_issuer),
                ("JWT_AUDIENCE", self.jwt_audience),
            )
            if not value
        ]
        if missing and not self.debug:
            raise ValueError(
                f"{', '.join(missing)} required in production mode. "
                "Set them in your environment or .env file. "
                "To run in development mode, set DEBUG=true."
            )
        if not self.secret_key:
            self.secret_key = secrets.token_hex(32)
            logger.warning("Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
        if not self.jwt_issuer:
            self.jwt_issuer = _DEV_ISSUER
            logger.warning("Using development JWT_ISSUER %r. Not suitable for production.", _DEV_ISSUER)
        if not self.jwt_audience:
            self.jwt_audience = _DEV_AUDIENCE
            logger.warning("Using development JWT_AUDIENCE %r. Not suitable for production.", _DEV_AUDIENCE)
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
