"""Cross-provider aggregation.

Fans out to every enabled provider concurrently and combines whatever comes
back. A provider that fails contributes an empty result; only a caller
asking for an unknown provider gets an error.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Union

from news_aggregator.clients import NewsAPIClient, NYTimesClient, ProviderClient
from news_aggregator.config import Settings, get_settings
from news_aggregator.models.schemas import (
    FetchParams,
    NewsCategory,
    NewsSource,
    PaginatedResult,
)
from news_aggregator.providers import is_outage
from news_aggregator.utils.articles import sort_by_recency_desc
from news_aggregator.utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 20


class ProviderValidationError(Exception):
    """Raised when a caller requests a provider that is unknown or disabled."""

    def __init__(self, provider_id: str, valid: Sequence[str]):
        self.provider_id = provider_id
        self.valid = list(valid)
        super().__init__(
            f"Invalid source '{provider_id}'. Must be one of: {', '.join(self.valid)}"
        )


class NewsAggregator:
    """
    Combines the NewsAPI and New York Times providers.

    Usage:
        aggregator = NewsAggregator()
        result = await aggregator.fetch_all(FetchParams(category="science"))
        await aggregator.close()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clients: Optional[Dict[NewsSource, ProviderClient]] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            settings: Configuration; read from the environment if omitted.
            clients: Provider clients keyed by source, replacing the defaults.
        """
        self.settings = settings or get_settings()

        if clients is None:
            breaker = CircuitBreaker(
                failure_threshold=self.settings.circuit_failure_threshold,
                reset_timeout=self.settings.circuit_reset_timeout,
                is_failure=is_outage,
            )
            clients = {
                NewsSource.NEWS_API: NewsAPIClient(self.settings, breaker=breaker),
                NewsSource.NY_TIMES: NYTimesClient(self.settings, breaker=breaker),
            }

        enabled = set(self.settings.enabled_providers)
        # Dict order fixes the concatenation order: NewsAPI before NYT
        self.clients: Dict[NewsSource, ProviderClient] = {
            source: client
            for source, client in clients.items()
            if source in enabled
        }

    @property
    def enabled_sources(self) -> List[NewsSource]:
        return list(self.clients)

    async def close(self) -> None:
        """Close every provider's HTTP clients."""
        await asyncio.gather(*(client.close() for client in self.clients.values()))

    async def fetch_all(self, params: FetchParams) -> PaginatedResult:
        """
        Fetch from every enabled provider and combine the results.

        Articles are concatenated and sorted newest first without
        cross-provider de-duplication. ``total_results`` is the sum of the
        providers' totals and ``has_more`` is true if any provider has more,
        so the article count of a page need not reconcile with the total.

        Args:
            params: Category, query and pagination for the request.

        Returns:
            The combined PaginatedResult; empty if every provider failed.
        """
        sources = list(self.clients)
        outcomes = await asyncio.gather(
            *(self.clients[source].fetch(params) for source in sources),
            return_exceptions=True,
        )

        results: List[PaginatedResult] = []
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"{source.value} fetch failed: {outcome!r}")
                continue
            results.append(outcome)

        if all(result.is_empty for result in results):
            logger.info("No provider returned articles")
            return PaginatedResult.empty(params.page, params.page_size)

        articles = sort_by_recency_desc(
            article for result in results for article in result.articles
        )
        return PaginatedResult(
            articles=articles,
            total_results=sum(result.total_results for result in results),
            page=params.page,
            page_size=params.page_size,
            has_more=any(result.has_more for result in results),
        )

    async def fetch_one(
        self,
        provider_id: Union[NewsSource, str],
        params: FetchParams,
    ) -> PaginatedResult:
        """
        Fetch from a single provider.

        Args:
            provider_id: A NewsSource or its string value.
            params: Category, query and pagination for the request.

        Returns:
            The provider's PaginatedResult, unchanged.

        Raises:
            ProviderValidationError: If the provider is unknown or disabled.
        """
        client = self._resolve(provider_id)
        return await client.fetch(params)

    async def search(
        self,
        query: str,
        category: Optional[NewsCategory] = None,
        source: Optional[Union[NewsSource, str]] = None,
    ) -> PaginatedResult:
        """
        Search the first page of articles matching ``query``.

        Raises:
            ProviderValidationError: If ``source`` is given and not enabled.
        """
        params = FetchParams(
            query=query,
            category=category,
            page=1,
            page_size=SEARCH_PAGE_SIZE,
        )
        if source:
            return await self.fetch_one(source, params)
        return await self.fetch_all(params)

    def _resolve(self, provider_id: Union[NewsSource, str]) -> ProviderClient:
        valid = [source.value for source in self.clients]
        try:
            source = NewsSource(provider_id)
        except ValueError:
            raise ProviderValidationError(str(provider_id), valid) from None

        client = self.clients.get(source)
        if client is None:
            raise ProviderValidationError(source.value, valid)
        return client
