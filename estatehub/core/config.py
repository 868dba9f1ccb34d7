"""
Application settings.

Values are read once from the environment (``ESTATEHUB_`` prefix) or an
optional ``.env`` file, then passed explicitly to the services that need them.
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """EstateHub configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ESTATEHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "EstateHub API"
    environment: Literal["development", "test", "production"] = "development"
    debug: bool = False
    enable_docs: bool = True

    # Database
    database_url: str = "sqlite+aiosqlite:///./estatehub.db"
    sql_echo: bool = False

    # JWT - access and refresh tokens are signed with different secrets
    jwt_secret_key: SecretStr
    jwt_refresh_secret_key: SecretStr
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "estatehub-api"
    access_token_expire_days: int = 7
    refresh_token_expire_days: int = 30

    # Password reset
    password_reset_expire_minutes: int = 10
    password_reset_reveal_unknown_email: bool = False

    # HTTP
    cors_origins: str = "http://localhost:5173"
    frontend_base_url: str = "http://localhost:5173"

    # SMTP
    smtp_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: SecretStr | None = None
    smtp_from_email: str = "no-reply@estatehub.local"
    smtp_use_tls: bool = True

    # Logging
    log_level: str = "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _join_cors_origins(cls, v: Any) -> str:
        if isinstance(v, list):
            return ",".join(v)
        return str(v) if v else ""

    @model_validator(mode="after")
    def _check_secrets(self) -> "Settings":
        access = self.jwt_secret_key.get_secret_value()
        refresh = self.jwt_refresh_secret_key.get_secret_value()
        if not access or not refresh:
            raise ValueError("JWT secrets cannot be empty")
        if access == refresh:
            raise ValueError("jwt_secret_key and jwt_refresh_secret_key must differ")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins from the comma-separated string."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()  # type: ignore[call-arg]
