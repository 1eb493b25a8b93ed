"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the portal happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. Used for the DEBUG-conditional SECRET_KEY policy.

Security notes:
  [S1] SECRET_KEY signs both the access tokens and the session cookie. A key
       shorter than 32 characters is rejected outright.

  [S2] In production mode (DEBUG not set or false), a missing SECRET_KEY is a
       hard startup failure, and so is the development fallback key. Only
       DEBUG=true may run on DEV_SECRET_KEY, and it logs a warning when it does.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or content/.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("portal.config")

# Fallback signing key for local development only. The name is the marker:
# anything signed with it must never be trusted outside DEBUG mode.
DEV_SECRET_KEY = "insecure-development-only-secret-key-do-not-deploy"

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'portal.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either substitutes DEV_SECRET_KEY or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL
    # "sql" persists users through SQLAlchemy; "memory" keeps them in-process
    # (single-worker demos and tests).
    user_store_backend: Literal["sql", "memory"] = "sql"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # "bearer": Authorization header carries the JWT (serverless deployments).
    # "session": signed session cookie + server-side session registry
    # (long-running server deployments). Never both in one instance.
    auth_mode: Literal["bearer", "session"] = "bearer"
    token_expire_seconds: int = 24 * 60 * 60
    secure_cookies: bool = False
    self_registration_enabled: bool = True

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    allowed_hosts: list[str] = ["*"]
    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    seed_sample_content: bool = False

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("token_expire_seconds")
    @classmethod
    def validate_token_expire_seconds(cls, v: int) -> int:
        if v < 60 or v > 7 * 24 * 60 * 60:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be between 60 and 604800 (1 min to 7 days)")
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy [S1][S2].

        Dev mode (DEBUG=true): fall back to DEV_SECRET_KEY with a warning.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing or is the development fallback.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = DEV_SECRET_KEY
                logger.warning(
                    "WARNING: SECRET_KEY not set; using the development fallback key. "
                    "Tokens signed with it are not safe outside DEBUG mode."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        elif self.secret_key == DEV_SECRET_KEY and not self.debug:
            raise ValueError("The development fallback SECRET_KEY cannot be used in production mode.")
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
