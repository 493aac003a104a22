"""
Configuration Management Module

This module handles all application configuration using Pydantic Settings.
Configuration is loaded from environment variables with strong typing and validation.

Design Decisions:
- Use Pydantic Settings for automatic environment variable loading
- Provide sensible defaults for everything except the API key
- Keep list-valued settings as comma-separated strings (env friendly)
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All sensitive values are loaded from environment variables only,
    never hardcoded or logged.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # =========================================================================
    # OpenAI Configuration
    # =========================================================================
    openai_api_key: str = Field(
        description="OpenAI API key"
    )

    openai_model: str = Field(
        default="gpt-4o",
        description="OpenAI model to use for code review"
    )

    openai_max_tokens: int = Field(
        default=4000,
        ge=100,
        le=128000,
        description="Maximum tokens for AI response"
    )

    openai_temperature: float = Field(
        default=0.5,
        ge=0.0,
        le=2.0,
        description="Temperature for AI responses"
    )

    openai_rate_limit_rpm: int = Field(
        default=60,
        ge=1,
        description="OpenAI API rate limit per minute"
    )

    # =========================================================================
    # Retry Configuration
    # =========================================================================
    review_max_attempts: int = Field(
        default=1,
        ge=1,
        le=10,
        description="Attempts per analysis call (1 disables retries)"
    )

    retry_base_delay: float = Field(
        default=1.0,
        ge=0.1,
        description="Base delay between retries in seconds"
    )

    retry_max_delay: float = Field(
        default=30.0,
        ge=1.0,
        description="Maximum delay between retries in seconds"
    )

    # =========================================================================
    # Database Configuration
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./code_reviews.db",
        description="SQLAlchemy database URL for saved reviews"
    )

    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements to the log"
    )

    # =========================================================================
    # File Ingestion Limits
    # =========================================================================
    max_file_size_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Maximum size of a single ingested file"
    )

    max_total_size_bytes: int = Field(
        default=50 * 1024 * 1024,
        ge=1,
        description="Maximum total size of one ingestion batch"
    )

    accepted_extensions: str = Field(
        default=(
            "js,ts,jsx,tsx,py,java,cpp,c,h,cs,php,rb,swift,go,rs,"
            "html,css,scss,json,yml,yaml,md,txt"
        ),
        description="Comma-separated file extensions accepted for review"
    )

    excluded_dirs: str = Field(
        default="node_modules,dist,build,.git",
        description="Comma-separated directory names skipped during ingestion"
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port to bind the server"
    )

    cors_allow_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    log_json_format: bool = Field(
        default=True,
        description="Enable JSON logging format"
    )

    log_requests: bool = Field(
        default=False,
        description="Enable request/response logging"
    )

    # =========================================================================
    # Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("openai_api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Reject blank API keys at load time."""
        if not v.strip():
            raise ValueError("OPENAI_API_KEY must not be empty")
        return v.strip()

    # =========================================================================
    # Computed Properties
    # =========================================================================
    @property
    def accepted_extensions_list(self) -> List[str]:
        """Get lowercase extensions (without the dot) accepted for review."""
        return [
            ext.strip().lstrip(".").lower()
            for ext in self.accepted_extensions.split(",")
            if ext.strip()
        ]

    @property
    def excluded_dirs_list(self) -> List[str]:
        """Get directory names skipped during ingestion."""
        return [d.strip().strip("/") for d in self.excluded_dirs.split(",") if d.strip()]

    @property
    def cors_origins_list(self) -> List[str]:
        """Get allowed CORS origins."""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings instance
    """
    return Settings()
