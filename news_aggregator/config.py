"""Configuration management for the News Aggregator."""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from news_aggregator.models.schemas import NewsSource


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Provider credentials (optional - an unconfigured provider yields empty results)
    newsapi_key: Optional[str] = None
    nytimes_api_key: Optional[str] = None

    # Provider endpoints
    newsapi_base_url: str = "https://newsapi.org/v2"
    nytimes_base_url: str = "https://api.nytimes.com/svc"

    # Provider behaviour
    default_country: str = "us"
    most_popular_period: int = Field(default=7, description="Trailing window in days: 1, 7 or 30")
    enabled_providers: List[NewsSource] = Field(
        default_factory=lambda: [NewsSource.NEWS_API, NewsSource.NY_TIMES]
    )

    # Timeouts and fault tolerance
    request_timeout: float = 10.0
    circuit_failure_threshold: int = 3
    circuit_reset_timeout: float = 60.0

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Application Settings
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def has_newsapi(self) -> bool:
        """Check if NewsAPI is configured."""
        return bool(self.newsapi_key)

    @property
    def has_nytimes(self) -> bool:
        """Check if the New York Times APIs are configured."""
        return bool(self.nytimes_api_key)


def get_settings() -> Settings:
    """Get application settings.

    Loads settings from environment variables and the .env file. A fresh
    instance is returned on every call so tests can adjust the environment.
    """
    return Settings()
