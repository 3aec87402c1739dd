"""Base provider adapter interface and common utilities."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx

from news_aggregator.models.schemas import Article, FetchParams, PaginatedResult
from news_aggregator.utils.articles import to_page
from news_aggregator.utils.circuit_breaker import CircuitBreaker, CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UpstreamError(Exception):
    """Raised when an upstream API fails or reports a fault."""

    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        self.service = service
        self.status_code = status_code
        detail = f"{service}: {message}"
        if status_code is not None:
            detail = f"{detail} (status {status_code})"
        super().__init__(detail)

    @property
    def is_client_error(self) -> bool:
        """Whether the upstream rejected the request itself (4xx other than 429)."""
        return (
            self.status_code is not None
            and 400 <= self.status_code < 500
            and self.status_code != 429
        )


def is_outage(exc: Exception) -> bool:
    """
    Whether an exception means the upstream is unavailable.

    Transport errors, 5xx, 429 and unusable payloads count; a request the
    upstream rejected as invalid does not.
    """
    if isinstance(exc, UpstreamError):
        return not exc.is_client_error
    return True


class BaseAdapter(ABC):
    """
    Abstract base class for one upstream sub-API.

    Subclasses implement ``_fetch``; callers use ``fetch``, which never raises.
    Every failure is logged and converted into an empty PaginatedResult so a
    provider that errored looks the same as one that had nothing.
    """

    provider: str = "base"
    sub_api: str = "base"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "",
        timeout: float = 10.0,
        breaker: Optional[CircuitBreaker] = None,
    ):
        """
        Initialize the adapter.

        Args:
            api_key: Credential for the upstream; None disables network calls.
            base_url: Root URL of the upstream API, without trailing slash.
            timeout: Request timeout in seconds.
            breaker: Circuit breaker shared with sibling adapters; it should
                classify failures with ``is_outage``.
        """
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.breaker = breaker or CircuitBreaker(is_failure=is_outage)
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def service_name(self) -> str:
        """Name used in logs and as the circuit breaker key."""
        return f"{self.provider}.{self.sub_api}"

    @property
    def is_configured(self) -> bool:
        """Check if the adapter has an API key."""
        return bool(self._api_key)

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers={
                    "User-Agent": "news-aggregator/0.1",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def fetch(self, params: FetchParams) -> PaginatedResult:
        """
        Fetch one page of canonical articles.

        Args:
            params: Category, query and pagination for the request.

        Returns:
            PaginatedResult, empty if the upstream failed.
        """
        empty = PaginatedResult.empty(params.page, params.page_size)
        return await self._fail_soft(self._fetch, params, empty)

    @abstractmethod
    async def _fetch(self, params: FetchParams) -> PaginatedResult:
        """
        Call the upstream and transform its payload.

        Raises:
            UpstreamError: If the upstream fails or reports a fault.
        """
        pass

    async def _fail_soft(
        self,
        func: Callable[[FetchParams], Awaitable[T]],
        params: FetchParams,
        fallback: T,
    ) -> T:
        """Run ``func`` behind the circuit breaker, returning ``fallback`` on any failure."""
        if not self.is_configured:
            logger.warning(f"{self.service_name} not configured (missing API key), skipping")
            return fallback

        try:
            return await self.breaker.call(self.service_name, func, params)
        except CircuitOpenError as e:
            logger.warning(str(e))
        except UpstreamError as e:
            logger.error(f"Upstream error: {e}")
        except httpx.HTTPError as e:
            logger.error(f"{self.service_name} request failed: {e!r}")
        except Exception as e:
            logger.exception(f"{self.service_name} returned an unusable payload: {e}")
        return fallback

    async def _get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        GET ``path`` and return the decoded JSON body after fault checks.

        Raises:
            UpstreamError: On a non-JSON body or an upstream-reported fault.
        """
        client = await self.get_client()
        url = f"{self.base_url}{path}"
        logger.debug(f"{self.service_name} GET {url}")

        response = await client.get(url, params=params, headers=headers)

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(
                self.service_name,
                "response body is not JSON",
                response.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise UpstreamError(
                self.service_name,
                "unexpected payload shape",
                response.status_code,
            )

        self._check_response(response.status_code, payload)
        return payload

    @abstractmethod
    def _check_response(self, status_code: int, payload: Dict[str, Any]) -> None:
        """
        Inspect status and body for the upstream's own fault signalling.

        Raises:
            UpstreamError: If the response represents a failure.
        """
        pass


class LocallyPaginatedAdapter(BaseAdapter):
    """
    Adapter for upstreams without native pagination.

    The full filtered article set is built by ``_collect`` and sliced locally,
    so ``total_results`` is always the size of the filtered set. The unsliced
    set is also exposed for callers that merge several sub-APIs and paginate
    the merged list themselves.
    """

    async def fetch_unpaginated(self, params: FetchParams) -> List[Article]:
        """Full filtered article list, empty if the upstream failed."""
        return await self._fail_soft(self._collect, params, [])

    async def _fetch(self, params: FetchParams) -> PaginatedResult:
        articles = await self._collect(params)
        return to_page(articles, params)

    @abstractmethod
    async def _collect(self, params: FetchParams) -> List[Article]:
        """Fetch, transform and filter every article the upstream offers."""
        pass
