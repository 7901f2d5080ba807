"""Application settings loaded from environment variables.

Configuration file discovery (in priority order):
1. OS environment variables (always highest priority)
2. STOCKPLAN_ENV_FILE environment variable (path to .env file)
3. config/.env.dev - local development
4. config/.env - production/Docker

Uses pydantic-settings for automatic type coercion and validation.
"""

from __future__ import annotations

import os
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field, SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_project_root() -> Path:
    """Find the project root directory."""
    current = Path(__file__).resolve().parent

    for parent in [current, *current.parents]:
        if (parent / "config").is_dir():
            return parent
        if (parent / "pyproject.toml").is_file():
            return parent

    return Path(__file__).resolve().parents[2]


def _resolve_env_file_path() -> Path | None:
    """Resolve the .env file path.

    Priority:
    1. STOCKPLAN_ENV_FILE env var
    2. config/.env.dev (local development)
    3. config/.env (production)
    """
    env_file_path = os.environ.get("STOCKPLAN_ENV_FILE")
    if env_file_path:
        path = Path(env_file_path)
        if not path.is_absolute():
            path = _find_project_root() / path
        if path.exists():
            return path

    config_dir = _find_project_root() / "config"

    dev_env = config_dir / ".env.dev"
    if dev_env.exists():
        return dev_env

    prod_env = config_dir / ".env"
    if prod_env.exists():
        return prod_env

    return None


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Values are loaded from:
    1. OS environment variables (highest priority)
    2. .env file (config/.env.dev or config/.env)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file_path(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Security (MUST be set - app fails without it)
    jwt_secret_key: SecretStr

    # Application
    app_name: str = "StockPlan"

    # Database - DATABASE_URL wins over the POSTGRES_* components
    database_url_override: str | None = Field(
        default=None,
        validation_alias=AliasChoices("database_url", "database_url_override"),
    )
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: SecretStr = SecretStr("")
    postgres_db: str = "stockplan"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_cors_origins: str = ""  # Empty = no CORS allowed

    @field_validator("api_cors_origins", mode="before")
    @classmethod
    def _validate_cors_origins(cls, v: Any) -> str:
        """Ensure cors_origins is stored as comma-separated string."""
        if isinstance(v, list):
            return ",".join(v)
        return str(v) if v else ""

    # Session lifetimes (seconds). A 7 day stateless access token cannot be
    # revoked before it expires; shorten it when refresh rotation is in use.
    jwt_expires_in_seconds: int = 60 * 60 * 24 * 7
    jwt_refresh_expires_in_seconds: int = 60 * 60 * 24 * 30

    # Password reset
    auth_reset_return_code: bool = False  # Debug only: echo code in response
    auth_reset_code_ttl_minutes: int = 15

    # Background token cleanup
    auth_token_cleanup_enabled: bool = True
    auth_token_cleanup_interval_minutes: int = 60
    auth_token_cleanup_initial_delay_seconds: float = 10.0

    # Password hashing
    password_hash_rounds: int = 12

    # SMTP (console mailer is used while disabled)
    smtp_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: SecretStr | None = None
    smtp_from_email: str = ""
    smtp_from_name: str = "StockPlan"
    smtp_use_tls: bool = True
    smtp_starttls: bool = True
    smtp_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"

    @field_validator(
        "jwt_expires_in_seconds",
        "jwt_refresh_expires_in_seconds",
        "auth_reset_code_ttl_minutes",
        "auth_token_cleanup_interval_minutes",
    )
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            msg = "must be greater than zero"
            raise ValueError(msg)
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Database URL, either explicit or built from components."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:"
            f"{self.postgres_password.get_secret_value()}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [o.strip() for o in self.api_cors_origins.split(",") if o.strip()]

    @property
    def auth_token_cleanup_interval_seconds(self) -> float:
        return float(self.auth_token_cleanup_interval_minutes * 60)

    @property
    def auth_reset_code_ttl(self) -> timedelta:
        return timedelta(minutes=self.auth_reset_code_ttl_minutes)


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    JWT_SECRET_KEY must be provided via environment variables or .env file.
    """
    return Settings()  # type: ignore[call-arg]  # pydantic-settings loads from env


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
