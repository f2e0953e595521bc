"""Settings classes selected by ``APP_ENV`` and fed from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

REFRESH_BACKENDS: Final[frozenset[str]] = frozenset({"sqlalchemy", "redis", "memory"})

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})

# No-op when there is no .env file
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """
    Read a boolean flag.

    :param name: Environment variable.
    :param default: Returned when the variable is unset.
    :returns: ``True`` for ``1/true/yes/y/on`` (any case), else ``False``.
    """
    raw = os.getenv(name)
    return default if raw is None else raw.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    """Read an integer; unset or blank falls back to ``default``."""
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


class BaseConfig:
    """
    Settings shared by every environment.

    Token settings
    --------------
    ``JWT_SECRET_KEY`` signs access tokens. ``JWT_REFRESH_SECRET_KEY`` signs
    refresh tokens; when unset the access secret is reused and a warning is
    logged at startup. Lifetimes are in seconds: 15 minutes for access,
    7 days for refresh.

    Refresh store
    -------------
    ``REFRESH_TOKEN_BACKEND`` picks ``sqlalchemy`` (default), ``redis``
    (needs ``REDIS_URL``) or ``memory`` (single process only).
    ``REFRESH_TOKEN_STORE_DIGEST`` stores SHA-256 digests instead of raw
    token strings.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT_ACCESS_SECRET_32B+")
    JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY") or None
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRES = env_int("JWT_ACCESS_TOKEN_EXPIRES", 15 * 60)
    JWT_REFRESH_TOKEN_EXPIRES = env_int("JWT_REFRESH_TOKEN_EXPIRES", 7 * 24 * 3600)

    REFRESH_TOKEN_BACKEND = os.getenv("REFRESH_TOKEN_BACKEND", "sqlalchemy").strip().lower()
    REFRESH_TOKEN_STORE_DIGEST = env_bool("REFRESH_TOKEN_STORE_DIGEST", False)

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    REDIS_URL = os.getenv("REDIS_URL") or None

    # Token-bearing bodies are small; anything larger is rejected with 413
    MAX_CONTENT_LENGTH = 16 * 1024

    PROPAGATE_EXCEPTIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local development: debug on unless ``FLASK_DEBUG`` says otherwise."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """
    Test runs.

    In-memory SQLite (override with ``TEST_DATABASE_URL``), fixed distinct
    secrets, no Redis, and exceptions propagated to pytest.
    """

    TESTING = True
    JWT_SECRET_KEY = "testing-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET_KEY = "testing-refresh-secret-0123456789abcdef"
    REFRESH_TOKEN_BACKEND = "sqlalchemy"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    REDIS_URL = None
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Production: both JWT secrets are expected to come from the environment."""

    SQLALCHEMY_ECHO = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Config class named by ``APP_ENV``; unknown or unset means development."""
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
