"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="ticketdesk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/tickets",
        description="Async SQLAlchemy connection URL"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== LLM Provider ==========
    llm_provider: str = Field(
        default="openai",
        description="Chat completion provider: openai | groq | zai"
    )
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    groq_api_key: Optional[str] = Field(default=None, description="Groq API key")
    zai_api_key: Optional[str] = Field(default=None, description="Z.AI API key")
    mock_llm: bool = Field(
        default=False,
        description="Use mock LLM responses for testing (no API calls)"
    )

    # ========== LLM Settings ==========
    llm_model: str = Field(
        default="gpt-3.5-turbo",
        description="Model used for ticket classification"
    )
    llm_temperature: float = Field(
        default=0.3,
        description="Sampling temperature for classification",
        ge=0.0,
        le=2.0
    )
    llm_max_tokens: int = Field(
        default=200,
        description="Max tokens for the classification answer",
        ge=1,
        le=8000
    )
    llm_timeout_seconds: float = Field(
        default=20.0,
        description="Upper bound for a single classification call",
        gt=0,
        le=300
    )

    # ========== Classification ==========
    classify_enabled: bool = Field(
        default=False,
        description="Call the LLM for classification; fallback only when disabled"
    )
    rate_limit_max_calls: int = Field(
        default=10,
        description="Max LLM classification calls per window",
        ge=0
    )
    rate_limit_window_seconds: int = Field(
        default=60,
        description="Rate limit window length in seconds",
        ge=1
    )
    rate_limit_key: str = Field(
        default="openai_classify_rate_limit",
        description="Key the classification calls are counted under"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketStatus(str):
    """Ticket lifecycle statuses."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


VALID_STATUSES = [
    TicketStatus.OPEN, TicketStatus.IN_PROGRESS,
    TicketStatus.RESOLVED, TicketStatus.CLOSED
]

# Used by the fallback classifier when no categories exist yet
DEFAULT_FALLBACK_CATEGORIES = ["General Inquiry", "Technical Support", "Bug Reports"]

DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100
