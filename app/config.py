"""
Application Configuration Module

Every tunable of the review service lives on one Settings object, read from
environment variables or a local .env file and validated when first loaded.

Groups:
=======
- Application: name, version, debug flag, API prefix, bind address
- Document store: database URL, collections bootstrapped at startup,
  request timeout
- Review rules: minimum content length, anonymous authorId
- Security: identity token verification, CORS origins
- Rate limiting and logging

Settings are loaded once and cached (@lru_cache), so every module sees the
same values. Tests set environment variables before the first import.

Usage:
    from app.config import get_settings

    settings = get_settings()
    print(settings.database_url)
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Service settings.

    Environment variable names are the field names, case-insensitive
    (DATABASE_URL, IDENTITY_TOKEN_SECRET, ...). Invalid values fail at
    startup rather than on first use.
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = Field(
        default="KoboWave API",
        description="Application name displayed in docs and logs"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Version reported by the health and root endpoints"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode (detailed errors, auto-reload)"
    )
    api_prefix: str = Field(
        default="/api",
        description="Prefix for every REST route"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server to"
    )
    port: int = Field(
        default=5000,
        description="Port to bind the server to"
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )

    # -------------------------------------------------------------------------
    # Document Store Settings
    # -------------------------------------------------------------------------
    database_url: str = Field(
        default="sqlite+aiosqlite:///./kobowave.db",
        description="SQLAlchemy async URL of the database backing the document store"
    )
    bootstrap_collections: str = Field(
        default="reviews,movies,restaurants,users",
        description="Comma-separated collections ensured at startup"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Maximum time a request may spend waiting on the store (504 after)"
    )

    # -------------------------------------------------------------------------
    # Review Rules
    # -------------------------------------------------------------------------
    review_min_content_length: int = Field(
        default=10,
        ge=1,
        description="Minimum review content length after trimming"
    )
    anonymous_author_id: str = Field(
        default="anonymous",
        min_length=1,
        description="authorId stored when a review has no owning principal"
    )

    # -------------------------------------------------------------------------
    # Security Settings
    # -------------------------------------------------------------------------
    identity_token_secret: Optional[str] = Field(
        default=None,
        description="Shared secret for identity provider tokens (unset = tokens ignored)"
    )
    identity_token_algorithm: str = Field(
        default="HS256",
        description="JWT algorithm used by the identity provider"
    )
    require_auth_for_writes: bool = Field(
        default=False,
        description="Reject anonymous create/update/delete requests"
    )
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:8080",
        description="Comma-separated list of allowed CORS origins"
    )

    # -------------------------------------------------------------------------
    # Rate Limiting Settings
    # -------------------------------------------------------------------------
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable request rate limiting"
    )
    rate_limit_default: str = Field(
        default="100/minute",
        description="Limit applied to read endpoints"
    )
    rate_limit_write: str = Field(
        default="30/minute",
        description="Limit applied to create/update/delete endpoints"
    )
    rate_limit_storage_uri: str = Field(
        default="memory://",
        description="slowapi storage backend (memory:// or redis://...)"
    )

    # -------------------------------------------------------------------------
    # Logging Settings
    # -------------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------
    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def bootstrap_collections_set(self) -> set[str]:
        """Parse comma-separated collection names into a set."""
        return {name.strip() for name in self.bootstrap_collections.split(",") if name.strip()}

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate that log_level is a valid Python logging level.

        Returns:
            The validated value (uppercase)

        Raises:
            ValueError: If log level is invalid
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        valid_envs = {"development", "staging", "production", "test"}
        if v.lower() not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v.lower()

    @field_validator("identity_token_secret")
    @classmethod
    def validate_identity_token_secret(cls, v: Optional[str]) -> Optional[str]:
        """
        Reject short or placeholder identity secrets.

        An empty value means token verification is switched off.
        """
        if v is None or not v.strip():
            return None

        placeholder_indicators = ["REPLACE_WITH", "change-me", "your-secret"]
        for indicator in placeholder_indicators:
            if indicator.lower() in v.lower():
                raise ValueError(
                    "IDENTITY_TOKEN_SECRET contains a placeholder value. "
                    "Use the secret shared with the identity provider."
                )

        if len(v) < 32:
            raise ValueError("IDENTITY_TOKEN_SECRET must be at least 32 characters long")

        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    The first call creates the Settings instance and validates it; later calls
    return the cached instance. Tests call get_settings.cache_clear() after
    changing the environment.
    """
    return Settings()
