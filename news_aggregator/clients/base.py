"""Provider client interface."""

from abc import ABC, abstractmethod

from news_aggregator.models.schemas import FetchParams, NewsSource, PaginatedResult


class ProviderClient(ABC):
    """One news provider, backed by one or more sub-API adapters."""

    source: NewsSource

    @abstractmethod
    async def fetch(self, params: FetchParams) -> PaginatedResult:
        """Fetch one page of articles. Never raises for upstream failures."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the HTTP clients of every adapter."""
        pass
