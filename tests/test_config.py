"""Tests for settings defaults and environment loading."""

import pytest

from news_aggregator.config import Settings
from news_aggregator.models.schemas import NewsSource

ENV_KEYS = (
    "NEWSAPI_KEY",
    "NYTIMES_API_KEY",
    "ENABLED_PROVIDERS",
    "DEFAULT_COUNTRY",
    "MOST_POPULAR_PERIOD",
    "REQUEST_TIMEOUT",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run without API keys in the environment or a local .env file."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_all_settings_have_defaults(clean_env):
    """Settings initialise without any environment configuration."""
    settings = Settings()

    assert settings.newsapi_key is None
    assert settings.nytimes_api_key is None
    assert settings.has_newsapi is False
    assert settings.has_nytimes is False
    assert settings.default_country == "us"
    assert settings.most_popular_period == 7
    assert settings.enabled_providers == [NewsSource.NEWS_API, NewsSource.NY_TIMES]
    assert settings.log_level == "INFO"


def test_settings_read_environment(clean_env):
    """Keys and provider toggles are read from the environment."""
    clean_env.setenv("NEWSAPI_KEY", "news-key")
    clean_env.setenv("NYTIMES_API_KEY", "nyt-key")
    clean_env.setenv("ENABLED_PROVIDERS", '["nytimes"]')

    settings = Settings()

    assert settings.newsapi_key == "news-key"
    assert settings.has_nytimes is True
    assert settings.enabled_providers == [NewsSource.NY_TIMES]


def test_settings_read_dotenv_file(clean_env, tmp_path):
    """A .env file in the working directory is honoured."""
    (tmp_path / ".env").write_text("NYTIMES_API_KEY=from-file\nUNRELATED=1\n")

    settings = Settings()

    assert settings.nytimes_api_key == "from-file"
