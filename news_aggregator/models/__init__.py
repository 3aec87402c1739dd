"""Pydantic models for structured data."""

from .schemas import (
    Article,
    FetchParams,
    NewsCategory,
    NewsSource,
    PaginatedResult,
)

__all__ = [
    "Article",
    "FetchParams",
    "NewsCategory",
    "NewsSource",
    "PaginatedResult",
]
