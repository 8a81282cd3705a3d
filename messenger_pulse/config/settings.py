"""
Application configuration settings using Pydantic Settings.

This module provides centralized configuration management with
environment variable support, validation, and type safety.
"""

from typing import List, Optional
from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from messenger_pulse.config.constants import (
    GRAPH_API_BASE_URL,
    GRAPH_API_VERSION,
    DEFAULT_MAX_PAGES,
    DEFAULT_THREADS_PER_PAGE,
    DEFAULT_MESSAGES_PER_THREAD,
    DEFAULT_RETRY_BUDGET,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_BACKOFF_MULTIPLIER,
    MOCK_TOKEN_PREFIX,
    MOCK_LOGIN_DELAY_MS,
    MOCK_CONVERSATIONS_DELAY_MS,
    MOCK_SEND_DELAY_MS,
    OVERDUE_THRESHOLD_HOURS,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_CREDENTIAL_STORE_PATH,
)


class Environment(str, Enum):
    """Application environment options."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        validate_assignment=True,
        extra="ignore",
    )

    # Environment Configuration
    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Server Configuration
    HOST: str = Field(
        default="127.0.0.1",
        description="Server host address"
    )
    PORT: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # Logging Configuration
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level"
    )
    LOG_FORMAT: str = Field(
        default="console",
        pattern=r"^(json|console)$",
        description="Log output format"
    )

    # Graph API Configuration
    GRAPH_API_BASE_URL: str = Field(
        default=GRAPH_API_BASE_URL,
        description="Facebook Graph API host"
    )
    GRAPH_API_VERSION: str = Field(
        default=GRAPH_API_VERSION,
        pattern=r"^v\d+\.\d+$",
        description="Facebook Graph API version segment"
    )
    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Per-request timeout for Graph API calls"
    )

    # Retry Configuration
    RETRY_BUDGET: int = Field(
        default=DEFAULT_RETRY_BUDGET,
        ge=0,
        le=20,
        description="Retries allowed after the first failed attempt"
    )
    RETRY_INITIAL_DELAY_MS: int = Field(
        default=DEFAULT_RETRY_DELAY_MS,
        ge=0,
        le=60000,
        description="Delay before the first retry in milliseconds"
    )
    RETRY_BACKOFF_MULTIPLIER: float = Field(
        default=DEFAULT_BACKOFF_MULTIPLIER,
        ge=1.0,
        le=10.0,
        description="Delay multiplier applied after each retry"
    )

    # Pagination Configuration
    MAX_CONVERSATION_PAGES: int = Field(
        default=DEFAULT_MAX_PAGES,
        ge=1,
        le=50,
        description="Maximum number of conversation pages to follow"
    )
    THREADS_PER_PAGE: int = Field(
        default=DEFAULT_THREADS_PER_PAGE,
        ge=1,
        le=100,
        description="Threads requested per conversation page"
    )
    MESSAGES_PER_THREAD: int = Field(
        default=DEFAULT_MESSAGES_PER_THREAD,
        ge=1,
        le=100,
        description="Messages embedded per thread"
    )

    # Mock Mode Configuration
    MOCK_TOKEN_PREFIX: str = Field(
        default=MOCK_TOKEN_PREFIX,
        min_length=1,
        description="Access token prefix that selects simulated mode"
    )
    MOCK_LOGIN_DELAY_MS: int = Field(
        default=MOCK_LOGIN_DELAY_MS,
        ge=0,
        description="Simulated login latency"
    )
    MOCK_CONVERSATIONS_DELAY_MS: int = Field(
        default=MOCK_CONVERSATIONS_DELAY_MS,
        ge=0,
        description="Simulated conversation listing latency"
    )
    MOCK_SEND_DELAY_MS: int = Field(
        default=MOCK_SEND_DELAY_MS,
        ge=0,
        description="Simulated send latency"
    )

    # Inbox Configuration
    OVERDUE_THRESHOLD_HOURS: float = Field(
        default=OVERDUE_THRESHOLD_HOURS,
        gt=0,
        le=24 * 30,
        description="Hours after which an unanswered page message is overdue"
    )
    CREDENTIAL_STORE_PATH: str = Field(
        default=DEFAULT_CREDENTIAL_STORE_PATH,
        min_length=1,
        description="JSON file that keeps the page credential between restarts"
    )

    # Generative AI Configuration
    GEMINI_API_KEY: Optional[str] = Field(
        default=None,
        description="Gemini API key; follow-up drafting is disabled when unset"
    )
    GEMINI_MODEL: str = Field(
        default=DEFAULT_GEMINI_MODEL,
        min_length=1,
        description="Gemini model used for follow-up drafts"
    )

    # CORS Configuration
    ALLOWED_ORIGINS: List[str] = Field(
        default=["*"],
        description="CORS allowed origins"
    )

    # Monitoring Configuration
    METRICS_ENABLED: bool = Field(
        default=True,
        description="Expose Prometheus metrics"
    )

    @field_validator("GRAPH_API_BASE_URL")
    @classmethod
    def validate_graph_base_url(cls, v):
        """Require an http(s) URL and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid Graph API base URL: {v}")
        return v.rstrip("/")

    @field_validator("GEMINI_API_KEY")
    @classmethod
    def blank_key_is_unset(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @model_validator(mode='after')
    def validate_environment_consistency(self):
        """Validate environment-specific consistency."""
        if self.ENVIRONMENT == Environment.PRODUCTION:
            if self.DEBUG:
                raise ValueError("Debug mode should not be enabled in production")

            if "*" in self.ALLOWED_ORIGINS:
                raise ValueError("Wildcard CORS origins not allowed in production")

        return self

    @property
    def graph_api_url(self) -> str:
        """Versioned Graph API root, e.g. https://graph.facebook.com/v19.0"""
        return f"{self.GRAPH_API_BASE_URL}/{self.GRAPH_API_VERSION}"

    def is_mock_token(self, access_token: str) -> bool:
        """Check whether a credential selects simulated mode."""
        return access_token.startswith(self.MOCK_TOKEN_PREFIX)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == Environment.PRODUCTION

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.ENVIRONMENT == Environment.TESTING


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached singleton).

    Returns:
        Settings: Configured application settings instance

    Note:
        Settings are cached using functools.lru_cache to avoid
        re-parsing environment variables on every call.
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Force reload of application settings.

    Returns:
        Settings: New settings instance
    """
    get_settings.cache_clear()
    return get_settings()
