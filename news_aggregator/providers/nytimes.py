"""New York Times adapters: Top Stories, Most Popular and Article Search."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from news_aggregator.models.schemas import Article, FetchParams, PaginatedResult
from news_aggregator.providers.base import (
    BaseAdapter,
    LocallyPaginatedAdapter,
    UpstreamError,
)
from news_aggregator.providers.sections import (
    SEARCH_SECTION_CATEGORIES,
    SECTION_CATEGORIES,
    map_section_to_category,
    search_section,
    top_stories_section,
)
from news_aggregator.utils.articles import filter_by_category, filter_by_query, url_digest
from news_aggregator.utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

NYTIMES_BASE_URL = "https://api.nytimes.com/svc"
NYTIMES_WEB_URL = "https://www.nytimes.com/"
NYTIMES_SOURCE_NAME = "New York Times"

MOST_POPULAR_PERIODS = (1, 7, 30)

# Article Search always returns pages of this many docs
SEARCH_UPSTREAM_PAGE_SIZE = 10


def _uri_suffix(uri: Optional[str]) -> str:
    """Last path segment of an ``nyt://article/<id>`` style URI."""
    if not uri:
        return ""
    return uri.rstrip("/").split("/")[-1]


class NYTimesMixin:
    """Authentication and fault detection shared by the NYT sub-APIs."""

    provider = "nytimes"

    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        query = dict(params or {})
        query["api-key"] = self._api_key
        return await self._get_json(path, params=query)

    def _check_response(self, status_code: int, payload: Dict[str, Any]) -> None:
        fault = payload.get("fault")
        if not 200 <= status_code < 300 or fault or payload.get("status") != "OK":
            message = None
            if isinstance(fault, dict):
                message = fault.get("faultstring")
            raise UpstreamError(
                self.service_name,
                message or f"NY Times API responded with status: {status_code}",
                status_code,
            )


class TopStoriesAdapter(NYTimesMixin, LocallyPaginatedAdapter):
    """
    Top Stories for one section.

    The upstream has no pagination or search: the whole section is fetched,
    filtered by query locally and then sliced.
    """

    sub_api = "top_stories"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = NYTIMES_BASE_URL,
        timeout: float = 10.0,
        breaker: Optional[CircuitBreaker] = None,
    ):
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, breaker=breaker)

    async def _collect(self, params: FetchParams) -> List[Article]:
        section = top_stories_section(params.category)
        payload = await self._request(f"/topstories/v2/{section}.json")

        articles = [
            article
            for article in (self._transform_article(item) for item in payload.get("results") or [])
            if article is not None
        ]
        filtered = filter_by_query(articles, params.query)

        logger.info(
            f"NYT Top Stories [{section}]: {len(filtered)} of {len(articles)} articles match"
        )
        return filtered

    def _transform_article(self, item: Dict[str, Any]) -> Optional[Article]:
        title = item.get("title") or ""
        url = item.get("url") or ""
        if not title or not url:
            return None

        multimedia = item.get("multimedia") or []
        image_url = multimedia[0].get("url") if multimedia else None
        abstract = item.get("abstract") or ""

        return Article(
            id=f"nytimes-topstory-{_uri_suffix(item.get('uri')) or url_digest(url)}",
            title=title,
            description=abstract,
            content=abstract,
            url=url,
            image_url=image_url or None,
            published_at=item.get("published_date") or "",
            source=NYTIMES_SOURCE_NAME,
            category=map_section_to_category(item.get("section"), SECTION_CATEGORIES),
            author=item.get("byline") or None,
        )


class MostPopularAdapter(NYTimesMixin, LocallyPaginatedAdapter):
    """
    Most viewed articles over a trailing window.

    The feed is not parametrised by category or query, so both filters are
    applied locally, category first, before slicing.
    """

    sub_api = "most_popular"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = NYTIMES_BASE_URL,
        timeout: float = 10.0,
        breaker: Optional[CircuitBreaker] = None,
        period: int = 7,
    ):
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, breaker=breaker)
        if period not in MOST_POPULAR_PERIODS:
            raise ValueError(f"Most Popular period must be one of {MOST_POPULAR_PERIODS}, got {period}")
        self.period = period

    async def _collect(self, params: FetchParams) -> List[Article]:
        payload = await self._request(f"/mostpopular/v2/viewed/{self.period}.json")

        articles = [
            article
            for article in (self._transform_article(item) for item in payload.get("results") or [])
            if article is not None
        ]
        filtered = filter_by_query(
            filter_by_category(articles, params.category),
            params.query,
        )

        logger.info(f"NYT Most Popular: {len(filtered)} of {len(articles)} articles match")
        return filtered

    def _transform_article(self, item: Dict[str, Any]) -> Optional[Article]:
        title = item.get("title") or ""
        url = item.get("url") or ""
        if not title or not url:
            return None

        image_url = None
        media = item.get("media") or []
        if media:
            renditions = media[0].get("media-metadata") or []
            if renditions:
                # Renditions are ordered smallest to largest
                image_url = renditions[-1].get("url")

        abstract = item.get("abstract") or ""
        upstream_id = item.get("id") or url_digest(url)

        return Article(
            id=f"nytimes-popular-{upstream_id}",
            title=title,
            description=abstract,
            content=abstract,
            url=url,
            image_url=image_url or None,
            published_at=item.get("published_date") or "",
            source=NYTIMES_SOURCE_NAME,
            category=map_section_to_category(item.get("section"), SECTION_CATEGORIES),
            author=item.get("byline") or None,
        )


class ArticleSearchAdapter(NYTimesMixin, BaseAdapter):
    """
    Full-text Article Search.

    The query and the section filter are sent upstream, and its hit count is
    trusted as the total. The upstream serves fixed zero-indexed pages of 10
    docs, so a requested window of ``page_size`` docs is assembled from every
    upstream page it overlaps.
    """

    sub_api = "search"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = NYTIMES_BASE_URL,
        timeout: float = 10.0,
        breaker: Optional[CircuitBreaker] = None,
    ):
        super().__init__(api_key=api_key, base_url=base_url, timeout=timeout, breaker=breaker)

    @staticmethod
    def upstream_pages(page: int, page_size: int) -> range:
        """Zero-indexed upstream pages overlapping the requested window."""
        start = (page - 1) * page_size
        end = start + page_size
        return range(
            start // SEARCH_UPSTREAM_PAGE_SIZE,
            (end - 1) // SEARCH_UPSTREAM_PAGE_SIZE + 1,
        )

    def build_query(
        self,
        params: FetchParams,
        upstream_page: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Build the upstream query string for one upstream page.

        Args:
            params: Query, category and pagination for the request.
            upstream_page: Zero-indexed upstream page; defaults to the first
                page of the requested window.
        """
        if upstream_page is None:
            upstream_page = self.upstream_pages(params.page, params.page_size)[0]
        query: Dict[str, Any] = {
            "q": params.query,
            "page": upstream_page,
            "sort": "newest",
        }
        section = search_section(params.category)
        if section:
            query["fq"] = f'section_name:("{section}")'
        return query

    async def _fetch(self, params: FetchParams) -> PaginatedResult:
        pages = self.upstream_pages(params.page, params.page_size)
        payloads = await asyncio.gather(
            *(
                self._request(
                    "/search/v2/articlesearch.json",
                    params=self.build_query(params, upstream_page),
                )
                for upstream_page in pages
            )
        )

        responses = [payload.get("response") or {} for payload in payloads]
        hits = int((responses[0].get("meta") or {}).get("hits") or 0)
        docs = [doc for response in responses for doc in response.get("docs") or []]

        skip = (params.page - 1) * params.page_size - pages[0] * SEARCH_UPSTREAM_PAGE_SIZE
        articles = [
            article
            for article in (
                self._transform_doc(doc) for doc in docs[skip : skip + params.page_size]
            )
            if article is not None
        ]

        logger.info(
            f"NYT Article Search '{params.query}': {len(articles)} articles "
            f"from {len(pages)} upstream pages ({hits} hits)"
        )

        return PaginatedResult(
            articles=articles,
            total_results=hits,
            page=params.page,
            page_size=params.page_size,
            has_more=params.page * params.page_size < hits,
        )

    def _transform_doc(self, doc: Dict[str, Any]) -> Optional[Article]:
        headline = doc.get("headline") or {}
        title = headline.get("main") or ""
        url = doc.get("web_url") or ""
        if not title or not url:
            return None

        description = doc.get("abstract") or doc.get("snippet") or ""
        byline = doc.get("byline") or {}

        return Article(
            id=f"nytimes-search-{_uri_suffix(doc.get('_id')) or url_digest(url)}",
            title=title,
            description=description,
            content=doc.get("lead_paragraph") or description,
            url=url,
            image_url=self._image_url(doc.get("multimedia")),
            published_at=doc.get("pub_date") or "",
            source=NYTIMES_SOURCE_NAME,
            category=map_section_to_category(
                doc.get("section_name"),
                SEARCH_SECTION_CATEGORIES,
                case_sensitive=True,
            ),
            author=byline.get("original") or None,
        )

    @staticmethod
    def _image_url(multimedia: Any) -> Optional[str]:
        """First image of a search doc; handles both list and keyed layouts."""
        url = None
        if isinstance(multimedia, list) and multimedia:
            url = multimedia[0].get("url")
        elif isinstance(multimedia, dict):
            url = (multimedia.get("default") or {}).get("url")

        if not url:
            return None
        if url.startswith("http"):
            return url
        return f"{NYTIMES_WEB_URL}{url.lstrip('/')}"
