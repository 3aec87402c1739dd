"""Adapters for the upstream news APIs."""

from .base import BaseAdapter, LocallyPaginatedAdapter, UpstreamError, is_outage
from .newsapi import NewsAPIAdapter
from .nytimes import ArticleSearchAdapter, MostPopularAdapter, TopStoriesAdapter

__all__ = [
    "ArticleSearchAdapter",
    "BaseAdapter",
    "LocallyPaginatedAdapter",
    "MostPopularAdapter",
    "NewsAPIAdapter",
    "TopStoriesAdapter",
    "UpstreamError",
    "is_outage",
]
