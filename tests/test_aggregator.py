"""Tests for the cross-provider aggregator."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from news_aggregator.aggregator import NewsAggregator, ProviderValidationError
from news_aggregator.config import Settings
from news_aggregator.models.schemas import (
    Article,
    FetchParams,
    NewsCategory,
    NewsSource,
    PaginatedResult,
)
from news_aggregator.utils.circuit_breaker import CircuitState


def make_article(article_id: str, url: str, published_at: str, source: str = "Test") -> Article:
    return Article(
        id=article_id,
        title=f"Article {article_id}",
        url=url,
        published_at=published_at,
        source=source,
    )


def fake_client(result=None, error=None) -> MagicMock:
    client = MagicMock()
    client.fetch = AsyncMock(return_value=result, side_effect=error)
    client.close = AsyncMock()
    return client


@pytest.fixture
def settings():
    return Settings(_env_file=None, newsapi_key="news_key", nytimes_api_key="nyt_key")


NEWSAPI_PAGE = PaginatedResult(
    articles=[
        make_article("newsapi-1", "https://shared.com/story", "2024-05-01T09:00:00Z", "Reuters"),
        make_article("newsapi-2", "https://reuters.com/b", "2024-05-01T12:00:00Z", "Reuters"),
    ],
    total_results=30,
    page=1,
    page_size=2,
    has_more=True,
)

NYTIMES_PAGE = PaginatedResult(
    articles=[
        make_article("nytimes-1", "https://shared.com/story", "2024-05-01T10:00:00Z", "New York Times"),
        make_article("nytimes-2", "https://nyt.com/c", "2024-05-01T08:00:00Z", "New York Times"),
    ],
    total_results=3,
    page=1,
    page_size=2,
    has_more=False,
)


class TestFetchAll:
    """Tests for NewsAggregator.fetch_all."""

    @pytest.mark.asyncio
    async def test_combines_sorts_and_sums(self, settings):
        """Articles are concatenated and sorted; totals are summed and has_more OR-ed."""
        aggregator = NewsAggregator(
            settings,
            clients={
                NewsSource.NEWS_API: fake_client(NEWSAPI_PAGE),
                NewsSource.NY_TIMES: fake_client(NYTIMES_PAGE),
            },
        )

        result = await aggregator.fetch_all(FetchParams(page=1, page_size=2))

        assert [a.id for a in result.articles] == ["newsapi-2", "nytimes-1", "newsapi-1", "nytimes-2"]
        assert result.total_results == 33
        assert result.has_more is True
        assert result.page == 1
        assert result.page_size == 2

    @pytest.mark.asyncio
    async def test_no_cross_provider_dedup(self, settings):
        """The same url from two providers appears twice, under distinct ids."""
        aggregator = NewsAggregator(
            settings,
            clients={
                NewsSource.NEWS_API: fake_client(NEWSAPI_PAGE),
                NewsSource.NY_TIMES: fake_client(NYTIMES_PAGE),
            },
        )

        result = await aggregator.fetch_all(FetchParams(page=1, page_size=2))

        shared = [a for a in result.articles if a.url == "https://shared.com/story"]
        assert {a.id for a in shared} == {"newsapi-1", "nytimes-1"}

    @pytest.mark.asyncio
    async def test_one_provider_raises(self, settings):
        """An exception from one provider never aborts the other."""
        aggregator = NewsAggregator(
            settings,
            clients={
                NewsSource.NEWS_API: fake_client(error=RuntimeError("boom")),
                NewsSource.NY_TIMES: fake_client(NYTIMES_PAGE),
            },
        )

        result = await aggregator.fetch_all(FetchParams(page=1, page_size=2))

        assert [a.id for a in result.articles] == ["nytimes-1", "nytimes-2"]
        assert result.total_results == 3
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_all_empty_returns_empty(self, settings):
        """One raising and one empty provider yield an empty page."""
        aggregator = NewsAggregator(
            settings,
            clients={
                NewsSource.NEWS_API: fake_client(error=RuntimeError("boom")),
                NewsSource.NY_TIMES: fake_client(PaginatedResult.empty(2, 5)),
            },
        )

        result = await aggregator.fetch_all(FetchParams(page=2, page_size=5))

        assert result == PaginatedResult.empty(2, 5)

    @pytest.mark.asyncio
    async def test_both_upstreams_failing_end_to_end(self, settings):
        """With every real adapter failing at the transport, fetch_all still returns."""
        aggregator = NewsAggregator(settings)
        adapters = [
            aggregator.clients[NewsSource.NEWS_API].headlines,
            aggregator.clients[NewsSource.NY_TIMES].top_stories,
            aggregator.clients[NewsSource.NY_TIMES].most_popular,
            aggregator.clients[NewsSource.NY_TIMES].search,
        ]

        failing_client = AsyncMock()
        failing_client.get = AsyncMock(side_effect=httpx.ConnectError("unreachable"))

        patchers = [patch.object(adapter, "get_client", AsyncMock(return_value=failing_client)) for adapter in adapters]
        for patcher in patchers:
            patcher.start()
        try:
            for params in (
                FetchParams(),
                FetchParams(query="election", category=NewsCategory.GENERAL),
                FetchParams(category=NewsCategory.SPORTS, page=3, page_size=7),
            ):
                result = await aggregator.fetch_all(params)
                assert result == PaginatedResult.empty(params.page, params.page_size)
        finally:
            for patcher in patchers:
                patcher.stop()

    @pytest.mark.asyncio
    async def test_rejected_requests_do_not_trip_shared_breaker(self):
        """The default breaker ignores 4xx rejections but counts server errors."""
        settings = Settings(
            _env_file=None,
            newsapi_key="news_key",
            enabled_providers=[NewsSource.NEWS_API],
            circuit_failure_threshold=1,
        )
        aggregator = NewsAggregator(settings)
        adapter = aggregator.clients[NewsSource.NEWS_API].headlines

        rejected = MagicMock()
        rejected.status_code = 400
        rejected.json.return_value = {"status": "error", "message": "q is too long"}
        unavailable = MagicMock()
        unavailable.status_code = 503
        unavailable.json.return_value = {"status": "error", "message": "unavailable"}

        mock_client = AsyncMock()
        mock_client.get = AsyncMock(side_effect=[rejected, rejected, unavailable])

        with patch.object(adapter, "get_client", AsyncMock(return_value=mock_client)):
            for _ in range(4):
                await aggregator.fetch_all(FetchParams(query="mars"))

        assert mock_client.get.await_count == 3
        assert adapter.breaker.get_state("newsapi.headlines") == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_only_enabled_providers_are_called(self):
        """Disabled providers are never asked."""
        settings = Settings(_env_file=None, enabled_providers=[NewsSource.NY_TIMES])
        newsapi = fake_client(NEWSAPI_PAGE)
        nytimes = fake_client(NYTIMES_PAGE)
        aggregator = NewsAggregator(
            settings,
            clients={NewsSource.NEWS_API: newsapi, NewsSource.NY_TIMES: nytimes},
        )

        result = await aggregator.fetch_all(FetchParams(page=1, page_size=2))

        newsapi.fetch.assert_not_awaited()
        assert result.total_results == 3
        assert aggregator.enabled_sources == [NewsSource.NY_TIMES]


class TestFetchOne:
    """Tests for NewsAggregator.fetch_one."""

    @pytest.fixture
    def aggregator(self, settings):
        return NewsAggregator(
            settings,
            clients={
                NewsSource.NEWS_API: fake_client(NEWSAPI_PAGE),
                NewsSource.NY_TIMES: fake_client(NYTIMES_PAGE),
            },
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("provider_id", ["nytimes", NewsSource.NY_TIMES])
    async def test_delegates_to_provider(self, aggregator, provider_id):
        """A known provider's result is returned as-is."""
        result = await aggregator.fetch_one(provider_id, FetchParams(page=1, page_size=2))

        assert result is NYTIMES_PAGE
        aggregator.clients[NewsSource.NEWS_API].fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_provider_raises_validation_error(self, aggregator):
        """An unknown id is a caller error, raised before any fetch."""
        with pytest.raises(ProviderValidationError) as exc_info:
            await aggregator.fetch_one("unknown-provider", FetchParams())

        assert exc_info.value.provider_id == "unknown-provider"
        assert set(exc_info.value.valid) == {"newsapi", "nytimes"}
        assert "Must be one of" in str(exc_info.value)
        for client in aggregator.clients.values():
            client.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validation_error_is_not_an_upstream_failure(self, aggregator):
        """The validation error is distinguishable from upstream errors."""
        from news_aggregator.providers.base import UpstreamError

        with pytest.raises(ProviderValidationError) as exc_info:
            await aggregator.fetch_one("bbc", FetchParams())

        assert not isinstance(exc_info.value, UpstreamError)

    @pytest.mark.asyncio
    async def test_disabled_provider_raises(self):
        """A known but disabled provider is rejected too."""
        settings = Settings(_env_file=None, enabled_providers=[NewsSource.NEWS_API])
        aggregator = NewsAggregator(
            settings,
            clients={
                NewsSource.NEWS_API: fake_client(NEWSAPI_PAGE),
                NewsSource.NY_TIMES: fake_client(NYTIMES_PAGE),
            },
        )

        with pytest.raises(ProviderValidationError):
            await aggregator.fetch_one("nytimes", FetchParams())


class TestSearch:
    """Tests for NewsAggregator.search."""

    @pytest.mark.asyncio
    async def test_search_all_providers(self, settings):
        """Search asks every provider for page 1 of 20."""
        newsapi = fake_client(PaginatedResult.empty(1, 20))
        nytimes = fake_client(NYTIMES_PAGE)
        aggregator = NewsAggregator(
            settings,
            clients={NewsSource.NEWS_API: newsapi, NewsSource.NY_TIMES: nytimes},
        )

        await aggregator.search("mars", category=NewsCategory.SCIENCE)

        params = nytimes.fetch.call_args.args[0]
        assert params.query == "mars"
        assert params.category == NewsCategory.SCIENCE
        assert params.page == 1
        assert params.page_size == 20
        newsapi.fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_search_single_source(self, settings):
        """A source restricts the search to that provider."""
        newsapi = fake_client(NEWSAPI_PAGE)
        nytimes = fake_client(NYTIMES_PAGE)
        aggregator = NewsAggregator(
            settings,
            clients={NewsSource.NEWS_API: newsapi, NewsSource.NY_TIMES: nytimes},
        )

        result = await aggregator.search("mars", source="newsapi")

        assert result is NEWSAPI_PAGE
        nytimes.fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_close_closes_all_clients(settings):
    """close() reaches every enabled client."""
    newsapi = fake_client()
    nytimes = fake_client()
    aggregator = NewsAggregator(
        settings,
        clients={NewsSource.NEWS_API: newsapi, NewsSource.NY_TIMES: nytimes},
    )

    await aggregator.close()

    newsapi.close.assert_awaited_once()
    nytimes.close.assert_awaited_once()
