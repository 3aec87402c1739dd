"""NewsAPI provider client."""

from typing import Optional

from news_aggregator.config import Settings
from news_aggregator.clients.base import ProviderClient
from news_aggregator.models.schemas import FetchParams, NewsSource, PaginatedResult
from news_aggregator.providers.newsapi import NewsAPIAdapter
from news_aggregator.utils.circuit_breaker import CircuitBreaker


class NewsAPIClient(ProviderClient):
    """Pass-through to the single NewsAPI headlines adapter."""

    source = NewsSource.NEWS_API

    def __init__(
        self,
        settings: Settings,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.headlines = NewsAPIAdapter(
            api_key=settings.newsapi_key,
            base_url=settings.newsapi_base_url,
            timeout=settings.request_timeout,
            breaker=breaker,
            default_country=settings.default_country,
        )

    async def fetch(self, params: FetchParams) -> PaginatedResult:
        return await self.headlines.fetch(params)

    async def close(self) -> None:
        await self.headlines.close()
