"""Pydantic models shared by every provider, client and the aggregator."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NewsCategory(str, Enum):
    """Canonical article categories."""

    GENERAL = "general"
    BUSINESS = "business"
    HEALTH = "health"
    SCIENCE = "science"
    SPORTS = "sports"
    TECHNOLOGY = "technology"
    ENTERTAINMENT = "entertainment"


class NewsSource(str, Enum):
    """Identifiers of the upstream news providers."""

    NEWS_API = "newsapi"
    NY_TIMES = "nytimes"


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys, populated by either form."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Article(CamelModel):
    """Unified article produced by every provider adapter."""

    id: str = Field(description="Provider-prefixed identifier, unique within a response")
    title: str = Field(description="Article headline")
    description: str = Field(default="", description="Abstract or summary")
    content: str = Field(default="", description="Best-effort excerpt of the body")
    url: str = Field(description="Canonical link, used as the dedup key")
    image_url: Optional[str] = Field(default=None, description="First or best image")
    published_at: str = Field(default="", description="ISO-8601 publication timestamp")
    source: str = Field(default="", description="Human-readable outlet name")
    category: NewsCategory = Field(default=NewsCategory.GENERAL)
    author: Optional[str] = None


class FetchParams(CamelModel):
    """Request parameters shared by all providers."""

    category: Optional[NewsCategory] = None
    query: str = ""
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=100)


class PaginatedResult(CamelModel):
    """One page of articles plus the bookkeeping needed for infinite scroll."""

    articles: List[Article] = Field(default_factory=list)
    total_results: int = Field(default=0, ge=0)
    page: int = 1
    page_size: int = 10
    has_more: bool = False

    @classmethod
    def empty(cls, page: int = 1, page_size: int = 10) -> "PaginatedResult":
        """Result returned when a provider errored or had nothing."""
        return cls(
            articles=[],
            total_results=0,
            page=page,
            page_size=page_size,
            has_more=False,
        )

    @property
    def is_empty(self) -> bool:
        return not self.articles
