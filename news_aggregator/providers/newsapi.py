"""NewsAPI.org top-headlines adapter."""

import logging
from typing import Any, Dict, Optional

from news_aggregator.models.schemas import (
    Article,
    FetchParams,
    NewsCategory,
    PaginatedResult,
)
from news_aggregator.providers.base import BaseAdapter, UpstreamError
from news_aggregator.utils.articles import dedupe_by_url, url_digest
from news_aggregator.utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

NEWSAPI_BASE_URL = "https://newsapi.org/v2"
TOP_HEADLINES_PATH = "/top-headlines"

# Placeholder NewsAPI returns for articles pulled by the publisher
REMOVED_MARKER = "[Removed]"


class NewsAPIAdapter(BaseAdapter):
    """
    Fetch top headlines from NewsAPI.org.

    NewsAPI paginates natively, so the upstream ``totalResults`` is trusted.
    Only summaries are available; ``content`` is truncated by the upstream
    with a ``[+N chars]`` marker that is stripped here.
    """

    provider = "newsapi"
    sub_api = "headlines"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = NEWSAPI_BASE_URL,
        timeout: float = 10.0,
        breaker: Optional[CircuitBreaker] = None,
        default_country: str = "us",
    ):
        """
        Initialize the NewsAPI adapter.

        Args:
            api_key: NewsAPI key sent in the X-Api-Key header.
            base_url: NewsAPI root URL.
            timeout: Request timeout in seconds.
            breaker: Circuit breaker for the upstream.
            default_country: Country used when neither category nor query is given.
        """
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, breaker=breaker)
        self.default_country = default_country

    def build_query(self, params: FetchParams) -> Dict[str, Any]:
        """Build the upstream query string for a request."""
        query: Dict[str, Any] = {
            "page": params.page,
            "pageSize": params.page_size,
        }
        if params.category:
            query["category"] = params.category.value
        if params.query:
            query["q"] = params.query
        if not params.category and not params.query:
            query["country"] = self.default_country
        return query

    async def _fetch(self, params: FetchParams) -> PaginatedResult:
        payload = await self._get_json(
            TOP_HEADLINES_PATH,
            params=self.build_query(params),
            headers={"X-Api-Key": self._api_key},
        )

        category = params.category or NewsCategory.GENERAL
        articles = dedupe_by_url(
            article
            for article in (
                self._transform_article(item, category)
                for item in payload.get("articles") or []
            )
            if article is not None
        )
        total = int(payload.get("totalResults") or 0)

        logger.info(f"NewsAPI returned {len(articles)} articles ({total} total)")

        return PaginatedResult(
            articles=articles,
            total_results=total,
            page=params.page,
            page_size=params.page_size,
            has_more=params.page * params.page_size < total,
        )

    def _check_response(self, status_code: int, payload: Dict[str, Any]) -> None:
        if status_code != 200 or payload.get("status") != "ok":
            message = (
                payload.get("message")
                or payload.get("code")
                or f"NewsAPI responded with status: {status_code}"
            )
            raise UpstreamError(self.service_name, message, status_code)

    def _transform_article(
        self,
        item: Dict[str, Any],
        category: NewsCategory,
    ) -> Optional[Article]:
        """Map one NewsAPI article onto the canonical Article, or None if unusable."""
        title = item.get("title") or ""
        url = item.get("url") or ""
        if not title or not url or title == REMOVED_MARKER:
            return None

        description = item.get("description") or ""
        content = item.get("content") or ""

        # NewsAPI truncates content with "[+N chars]", remove that
        if "[+" in content:
            content = content.split("[+")[0].rstrip()

        source = item.get("source") or {}

        return Article(
            id=f"newsapi-headlines-{url_digest(url)}",
            title=title,
            description=description,
            content=content or description,
            url=url,
            image_url=item.get("urlToImage") or None,
            published_at=item.get("publishedAt") or "",
            source=source.get("name") or "NewsAPI",
            category=category,
            author=item.get("author") or None,
        )

