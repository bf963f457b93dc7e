"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Loads .env when present (no-op otherwise)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back on garbage."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret. Defaults to a development placeholder.
    JWT_SECRET_KEY: str
        Session signing key, read once into ``SessionConfig`` at startup.
    SESSION_TTL_HOURS: int
        Absolute lifetime of a session token (24 hours).
    JWT_ACCESS_COOKIE_NAME: str
        Cookie carrying the session token when no ``Authorization`` header is sent.
    CONFIRM_TOKEN_TTL_SECONDS: int
        Registration confirmation window (5 minutes).
    RESET_TOKEN_TTL_SECONDS: int
        Password reset window (30 minutes).
    AUTO_CONFIRM_REGISTRATION: bool
        Activate accounts immediately instead of emailing a confirmation link.
    ALLOWED_EMAIL_DOMAINS: str
        Comma-separated domains accepted at registration; blank accepts any.
    BCRYPT_LOG_ROUNDS: int
        bcrypt cost factor (never below 10).
    EMAIL_DISPATCH_TIMEOUT_SECONDS: float
        Deadline for a single outbound email.
    SWEEP_INTERVAL_SECONDS: int
        Cadence of the pending-registration sweep.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_ALGORITHM = "HS256"
    SESSION_TTL_HOURS = env_int("SESSION_TTL_HOURS", 24)

    # Flask-JWT-Extended cookie transport
    JWT_TOKEN_LOCATION = ["headers", "cookies"]
    JWT_ACCESS_COOKIE_NAME = os.getenv("JWT_ACCESS_COOKIE_NAME", "auth_token")
    JWT_COOKIE_SECURE = env_bool("JWT_COOKIE_SECURE", False)
    JWT_COOKIE_SAMESITE = os.getenv("JWT_COOKIE_SAMESITE", "Lax")
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_SESSION_COOKIE = False

    # Credential lifecycle
    CONFIRM_TOKEN_TTL_SECONDS = env_int("CONFIRM_TOKEN_TTL_SECONDS", 5 * 60)
    RESET_TOKEN_TTL_SECONDS = env_int("RESET_TOKEN_TTL_SECONDS", 30 * 60)
    AUTO_CONFIRM_REGISTRATION = env_bool("AUTO_CONFIRM_REGISTRATION", False)
    ALLOWED_EMAIL_DOMAINS = os.getenv("ALLOWED_EMAIL_DOMAINS", "gmail.com")
    PASSWORD_MIN_LENGTH = env_int("PASSWORD_MIN_LENGTH", 6)
    BCRYPT_LOG_ROUNDS = env_int("BCRYPT_LOG_ROUNDS", 12)
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Outbound email
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "resend")  # 'resend' | 'memory'
    RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@storefront.local")
    EMAIL_DISPATCH_TIMEOUT_SECONDS = float(os.getenv("EMAIL_DISPATCH_TIMEOUT_SECONDS", "10"))

    # Background sweep
    SWEEP_INTERVAL_SECONDS = env_int("SWEEP_INTERVAL_SECONDS", 60)
    SWEEP_ENABLED = env_bool("SWEEP_ENABLED", False)

    # Session denylist backend (in-memory when unset)
    REDIS_URL = os.getenv("REDIS_URL")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Registrations are auto-confirmed and emails are kept in memory unless the
    environment says otherwise.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    AUTO_CONFIRM_REGISTRATION = env_bool("AUTO_CONFIRM_REGISTRATION", True)
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "memory")
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps bcrypt at its floor cost and email in memory.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_SECRET_KEY = "test-signing-key-with-enough-length-for-hs256"
    AUTO_CONFIRM_REGISTRATION = False
    BCRYPT_LOG_ROUNDS = 10
    MAIL_BACKEND = "memory"
    EMAIL_DISPATCH_TIMEOUT_SECONDS = 2.0
    SWEEP_ENABLED = False
    REDIS_URL = None
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Bounds every database call so a stalled server surfaces as a retryable
    ``storage_unavailable`` error instead of hanging worker threads.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    AUTO_CONFIRM_REGISTRATION = False
    JWT_COOKIE_SECURE = env_bool("JWT_COOKIE_SECURE", True)
    SWEEP_ENABLED = env_bool("SWEEP_ENABLED", True)
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_timeout": env_int("DB_POOL_TIMEOUT_SECONDS", 5),
        "connect_args": {
            "connect_timeout": env_int("DB_CONNECT_TIMEOUT_SECONDS", 5),
            "options": f"-c statement_timeout={env_int('DB_STATEMENT_TIMEOUT_MS', 5000)}",
        },
    }


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
