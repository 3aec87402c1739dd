"""Provider clients: one per upstream news provider."""

from .base import ProviderClient
from .newsapi import NewsAPIClient
from .nytimes import NYTimesClient

__all__ = ["NewsAPIClient", "NYTimesClient", "ProviderClient"]
