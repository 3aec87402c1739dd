"""New York Times provider client combining three sub-APIs."""

import asyncio
import logging
from typing import Optional

from news_aggregator.clients.base import ProviderClient
from news_aggregator.config import Settings
from news_aggregator.models.schemas import FetchParams, NewsSource, PaginatedResult
from news_aggregator.providers.nytimes import (
    ArticleSearchAdapter,
    MostPopularAdapter,
    TopStoriesAdapter,
)
from news_aggregator.utils.articles import dedupe_by_url, sort_by_recency_desc, to_page
from news_aggregator.utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class NYTimesClient(ProviderClient):
    """
    Aggregate client over Top Stories, Most Popular and Article Search.

    Requests with a query go to Article Search alone, the only sub-API with
    native search. Otherwise Top Stories and Most Popular are fetched
    concurrently as full filtered lists, merged with Top Stories first,
    de-duplicated by url, sorted newest first and paginated from scratch.
    """

    source = NewsSource.NY_TIMES

    def __init__(
        self,
        settings: Settings,
        breaker: Optional[CircuitBreaker] = None,
    ):
        """
        Initialize the client and its adapters.

        Args:
            settings: Credentials, endpoint and timeouts for the adapters.
            breaker: Circuit breaker shared by the three sub-APIs.
        """
        adapter_options = dict(
            api_key=settings.nytimes_api_key,
            base_url=settings.nytimes_base_url,
            timeout=settings.request_timeout,
            breaker=breaker,
        )
        self.top_stories = TopStoriesAdapter(**adapter_options)
        self.most_popular = MostPopularAdapter(
            period=settings.most_popular_period,
            **adapter_options,
        )
        self.search = ArticleSearchAdapter(**adapter_options)

    async def fetch(self, params: FetchParams) -> PaginatedResult:
        """
        Fetch one page of NYT articles.

        Args:
            params: Category, query and pagination for the request.

        Returns:
            PaginatedResult whose total is the size of the merged set, or the
            search hit count when a query is present.
        """
        if params.query:
            return await self.search.fetch(params)

        top_stories, most_popular = await asyncio.gather(
            self.top_stories.fetch_unpaginated(params),
            self.most_popular.fetch_unpaginated(params),
        )

        if not top_stories and not most_popular:
            logger.info("NYT Top Stories and Most Popular both returned nothing")
            return PaginatedResult.empty(params.page, params.page_size)

        merged = sort_by_recency_desc(dedupe_by_url([*top_stories, *most_popular]))
        logger.debug(
            f"NYT merged {len(top_stories)} top stories and {len(most_popular)} "
            f"popular articles into {len(merged)} unique"
        )
        return to_page(merged, params)

    async def close(self) -> None:
        await asyncio.gather(
            self.top_stories.close(),
            self.most_popular.close(),
            self.search.close(),
        )
