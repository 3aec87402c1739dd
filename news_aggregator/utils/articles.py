"""Pure helpers for merging, ordering and slicing article lists.

Nothing in this module performs I/O or mutates its inputs; every function
returns a new list so providers can share intermediate results safely.
"""

import hashlib
import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from news_aggregator.models.schemas import (
    Article,
    FetchParams,
    NewsCategory,
    PaginatedResult,
)

# Sort key used for timestamps that cannot be parsed: they sort last.
MIN_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)

# "+0000" style offsets as emitted by the NYT Article Search API
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_published_at(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 publication timestamp.

    Accepts a trailing ``Z``, compact ``+HHMM`` offsets and date-only
    strings. Naive values are interpreted as UTC.

    Args:
        value: Raw timestamp string from an upstream payload.

    Returns:
        An aware datetime, or None if the value is missing or unparsable.
    """
    if not value:
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _COMPACT_OFFSET.sub(r"\1:\2", text)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def url_digest(url: str) -> str:
    """Short stable digest of a URL for use in article ids."""
    return hashlib.sha1(url.encode("utf-8")).hexdigest()[:16]


def dedupe_by_url(articles: Iterable[Article]) -> List[Article]:
    """Drop repeated urls, keeping the first occurrence of each."""
    seen = set()
    unique: List[Article] = []
    for article in articles:
        if article.url in seen:
            continue
        seen.add(article.url)
        unique.append(article)
    return unique


def sort_by_recency_desc(articles: Iterable[Article]) -> List[Article]:
    """
    Order articles newest first.

    The sort is stable, so articles with equal timestamps keep their input
    order. Unparsable timestamps are treated as the minimal timestamp.
    """
    return sorted(
        articles,
        key=lambda article: parse_published_at(article.published_at) or MIN_TIMESTAMP,
        reverse=True,
    )


def paginate(
    articles: List[Article],
    page: int,
    page_size: int,
) -> Tuple[List[Article], bool]:
    """
    Slice one page out of a fully materialised list.

    Returns:
        Tuple of (page slice, whether more articles follow the slice).
    """
    start = (page - 1) * page_size
    end = start + page_size
    return articles[start:end], end < len(articles)


def filter_by_query(articles: Iterable[Article], query: Optional[str]) -> List[Article]:
    """Case-insensitive substring match over title and description."""
    if not query:
        return list(articles)
    needle = query.lower()
    return [
        article
        for article in articles
        if needle in article.title.lower() or needle in article.description.lower()
    ]


def filter_by_category(
    articles: Iterable[Article],
    category: Optional[NewsCategory],
) -> List[Article]:
    """Keep articles of the given category; ``general`` matches everything."""
    if category is None or category == NewsCategory.GENERAL:
        return list(articles)
    return [article for article in articles if article.category == category]


def to_page(articles: List[Article], params: FetchParams) -> PaginatedResult:
    """Build a PaginatedResult whose total is the size of the full list."""
    page_articles, has_more = paginate(articles, params.page, params.page_size)
    return PaginatedResult(
        articles=page_articles,
        total_results=len(articles),
        page=params.page,
        page_size=params.page_size,
        has_more=has_more,
    )
