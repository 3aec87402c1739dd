"""Cross-provider news aggregation.

This module fans out to every enabled provider and merges their pages into
a single result.
"""

from news_aggregator.aggregator.service import NewsAggregator, ProviderValidationError

__all__ = ["NewsAggregator", "ProviderValidationError"]
