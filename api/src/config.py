"""
FastAPI application configuration using Pydantic Settings.

Provides centralized configuration for:
- Server settings (host, port, environment)
- MongoDB connection (URI, database, collection, timeouts)
- Logging (level, format, request/response body logging, masking)
- Response headers and request id propagation
- Search pagination limits

All settings support environment variable overrides and .env file loading.
"""

from functools import lru_cache
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MaskRule(BaseModel):
    """
    Masking rule for one field name in logged payloads.

    Keeps ``start`` leading and ``end`` trailing characters and replaces
    everything in between with ``char``.
    """
    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)
    char: str = Field(default="*", min_length=1, max_length=1)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables with the
    prefix "USER_API_" (e.g., USER_API_MONGO_URI).

    Environment variables are loaded from:
    1. System environment
    2. .env file in the current directory
    3. Default values defined below
    """

    # =========================================================================
    # API Settings
    # =========================================================================

    app_name: str = Field(
        default="User Service",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="API version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode - enables verbose logging and error traces"
    )
    environment: str = Field(
        default="production",
        description="Environment: development|staging|production"
    )

    host: str = Field(
        default="0.0.0.0",
        description="API bind host"
    )
    port: int = Field(
        default=8080,
        description="API bind port",
        gt=0,
        lt=65536
    )

    # =========================================================================
    # MongoDB Settings
    # =========================================================================

    mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    mongo_database: str = Field(
        default="masterdata",
        description="MongoDB database name"
    )
    mongo_collection: str = Field(
        default="users",
        description="Collection holding user documents"
    )
    mongo_timeout_ms: int = Field(
        default=10000,
        description="Client side timeout applied to every operation (milliseconds)",
        gt=0
    )
    mongo_server_selection_timeout_ms: int = Field(
        default=5000,
        description="How long to wait for a reachable server (milliseconds)",
        gt=0
    )
    mongo_create_indexes: bool = Field(
        default=True,
        description="Create the unique username index on startup"
    )

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG|INFO|WARNING|ERROR|CRITICAL"
    )
    log_format: str = Field(
        default="json",
        description="Log format: json|text"
    )
    log_request_body: bool = Field(
        default=True,
        description="Log masked JSON request bodies"
    )
    log_response_body: bool = Field(
        default=False,
        description="Log masked JSON response bodies"
    )
    log_max_body_size: int = Field(
        default=10 * 1024,
        description="Bodies larger than this (bytes) are not logged",
        gt=0
    )
    log_skip_paths: List[str] = Field(
        default=["/health", "/metrics"],
        description="Paths excluded from request logging"
    )
    log_mask_rules: Dict[str, MaskRule] = Field(
        default={
            "phone": MaskRule(start=0, end=3, char="*"),
            "password": MaskRule(start=0, end=0, char="*"),
        },
        description="Per-field masking rules for logged payloads"
    )

    # =========================================================================
    # Header Settings
    # =========================================================================

    request_id_header: str = Field(
        default="X-Request-ID",
        description="Header carrying the request id (read and echoed)"
    )
    response_headers: Dict[str, str] = Field(
        default={"X-Content-Type-Options": "nosniff"},
        description="Static headers added to every response"
    )

    # =========================================================================
    # Search Settings
    # =========================================================================

    pagination_default_limit: int = Field(
        default=20,
        description="Page size used when the request does not set one",
        gt=0,
        le=1000
    )
    pagination_max_limit: int = Field(
        default=1000,
        description="Maximum page size",
        gt=0,
        le=10000
    )
    search_strict: bool = Field(
        default=True,
        description="Fail at startup when a filter field has no mapped column"
    )

    # =========================================================================
    # Monitoring
    # =========================================================================

    metrics_enabled: bool = Field(
        default=True,
        description="Enable Prometheus metrics"
    )
    metrics_endpoint: str = Field(
        default="/metrics",
        description="Metrics endpoint path"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got: {v}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "staging", "production", "test"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of {allowed}, got: {v}")
        return v_lower

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        allowed = ["json", "text"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got: {v}")
        return v_lower

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def json_logs(self) -> bool:
        return self.log_format == "json"

    # =========================================================================
    # Model Config
    # =========================================================================

    model_config = SettingsConfigDict(
        env_prefix="USER_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once and shared across the application from:
    1. Environment variables with USER_API_ prefix
    2. .env file in the current directory
    3. Default values

    Returns:
        Settings: Cached settings instance

    Example:
        >>> from api.src.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.mongo_uri)
        mongodb://localhost:27017
    """
    return Settings()


def clear_settings_cache():
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
