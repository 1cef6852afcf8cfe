"""
Application Configuration
Pydantic Settings for environment-based configuration
Source: https://docs.pydantic.dev/latest/concepts/pydantic_settings/
Verified: 2026-10-16
"""

import json
from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    EDI and TMHP gateway settings live in ``buckeye_edi.core.config``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================================
    # Application Settings
    # ============================================================================
    ENVIRONMENT: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment: development, staging, production, testing"
    )
    DEBUG: bool = Field(default=False, description="Debug mode (NEVER enable in production)")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FILE: str | None = Field(default=None, description="Optional log file path")

    # ============================================================================
    # Database Configuration
    # ============================================================================
    POSTGRES_HOST: str = Field(default="db", description="PostgreSQL host")
    POSTGRES_PORT: int = Field(default=5432, description="PostgreSQL port")
    POSTGRES_DB: str = Field(default="buckeye", description="Database name")
    POSTGRES_USER: str = Field(default="buckeye", description="Database user")
    POSTGRES_PASSWORD: str = Field(default="", description="Database password")

    DATABASE_URL: str | None = Field(default=None, description="Full database URL")

    DB_POOL_SIZE: int = Field(default=10, description="Database connection pool size")
    DB_MAX_OVERFLOW: int = Field(default=10, description="Max overflow connections")
    DB_POOL_TIMEOUT: int = Field(default=30, description="Connection timeout (seconds)")

    @property
    def database_url(self) -> str:
        """Construct DATABASE_URL if not explicitly provided"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # ============================================================================
    # FastAPI Configuration
    # ============================================================================
    API_HOST: str = Field(default="0.0.0.0", description="API host")  # nosec B104
    API_PORT: int = Field(default=8000, description="API port")

    CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000"],
        description="CORS allowed origins",
    )
    CORS_CREDENTIALS: bool = Field(default=True, description="Allow credentials")
    CORS_METHODS: list[str] = Field(default=["*"], description="Allowed methods")
    CORS_HEADERS: list[str] = Field(default=["*"], description="Allowed headers")

    @staticmethod
    def _parse_list_field(value: Any) -> Any:
        """Allow JSON arrays or comma-separated strings for list settings."""
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return []
            if stripped.startswith("[") and stripped.endswith("]"):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return parsed
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in stripped.split(",") if item.strip()]
        return value

    @field_validator("CORS_ORIGINS", "CORS_METHODS", "CORS_HEADERS", mode="before")
    @classmethod
    def parse_cors_fields(cls, v: Any) -> Any:
        """Normalize CORS list fields from env strings."""
        return cls._parse_list_field(v)

    # ============================================================================
    # Helper Properties
    # ============================================================================
    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_testing(self) -> bool:
        return self.ENVIRONMENT.lower() == "testing"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Source: https://fastapi.tiangolo.com/advanced/settings/
    """
    return Settings()


settings = get_settings()
