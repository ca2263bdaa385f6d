"""
Configuration management using pydantic-settings and python-dotenv
"""
from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///errorcue.db",
        description="SQLAlchemy async database connection URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL queries for debugging"
    )
    database_busy_timeout: float = Field(
        default=30.0,
        description="Seconds a SQLite connection waits for the write lock before failing"
    )

    # Storage
    storage_backend: str = Field(
        default="sql",
        description="Record store backend: 'sql' or 'memory'"
    )
    demo_fallback: bool = Field(
        default=True,
        description="Serve a non-durable demo store when the database is unreachable"
    )
    seed_sample_data: bool = Field(
        default=True,
        description="Seed example records into an empty store on startup"
    )
    default_owner: str = Field(
        default="local-dev-user",
        description="Owner used when a request does not name one"
    )

    # Slack
    slack_webhook_url: Optional[str] = Field(
        default=None,
        description="Slack incoming webhook URL for new error alerts"
    )
    notifier_timeout: float = Field(
        default=5.0,
        description="Slack webhook request timeout in seconds"
    )
    notify_in_background: bool = Field(
        default=False,
        description="Send notifications after the ingestion response is returned"
    )

    # Retry simulation
    retry_success_rates: Dict[str, float] = Field(
        default={
            "AUTH_EXPIRED": 0.7,
            "RATE_LIMIT": 0.2,
            "CONNECTION_FAILED": 0.6,
        },
        description="Simulated retry success probability per error type"
    )
    retry_default_success_rate: float = Field(
        default=0.5,
        description="Simulated retry success probability for other error types"
    )

    # Queries
    list_limit: int = Field(
        default=100,
        description="Maximum number of records returned by a listing"
    )
    stats_window_days: int = Field(
        default=7,
        description="Trailing window for dashboard statistics"
    )

    # Application
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    cors_origins: List[str] = Field(
        default=[
            "http://localhost:5173",
            "http://localhost:5174",
            "http://localhost:5175",
        ],
        description="Origins allowed to call the API from a browser"
    )
    enable_debug_routes: bool = Field(
        default=True,
        description="Mount the /debug helper endpoints"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
