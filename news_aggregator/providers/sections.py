"""Section <-> category lookup tables for the upstream taxonomies.

The Top Stories and Most Popular APIs use lower-case section slugs, while
Article Search reports title-case section names. The two taxonomies are kept
in separate tables with their own matching rules.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from news_aggregator.models.schemas import NewsCategory

DEFAULT_CATEGORY = NewsCategory.GENERAL
DEFAULT_TOP_STORIES_SECTION = "home"

# Top Stories / Most Popular section slug -> category (matched case-insensitively)
SECTION_CATEGORIES: Mapping[str, NewsCategory] = MappingProxyType({
    "business": NewsCategory.BUSINESS,
    "technology": NewsCategory.TECHNOLOGY,
    "health": NewsCategory.HEALTH,
    "science": NewsCategory.SCIENCE,
    "sports": NewsCategory.SPORTS,
    "world": NewsCategory.GENERAL,
    "us": NewsCategory.GENERAL,
    "u.s.": NewsCategory.GENERAL,
    "politics": NewsCategory.GENERAL,
    "opinion": NewsCategory.GENERAL,
    "arts": NewsCategory.ENTERTAINMENT,
})

# Article Search section_name -> category (matched exactly)
SEARCH_SECTION_CATEGORIES: Mapping[str, NewsCategory] = MappingProxyType({
    "Business": NewsCategory.BUSINESS,
    "Business Day": NewsCategory.BUSINESS,
    "Technology": NewsCategory.TECHNOLOGY,
    "Health": NewsCategory.HEALTH,
    "Science": NewsCategory.SCIENCE,
    "Sports": NewsCategory.SPORTS,
    "Arts": NewsCategory.ENTERTAINMENT,
    "World": NewsCategory.GENERAL,
    "U.S.": NewsCategory.GENERAL,
    "Opinion": NewsCategory.GENERAL,
    "New York": NewsCategory.GENERAL,
})

# category -> Top Stories section slug
TOP_STORIES_SECTIONS: Mapping[NewsCategory, str] = MappingProxyType({
    NewsCategory.BUSINESS: "business",
    NewsCategory.HEALTH: "health",
    NewsCategory.SCIENCE: "science",
    NewsCategory.SPORTS: "sports",
    NewsCategory.TECHNOLOGY: "technology",
    NewsCategory.ENTERTAINMENT: "arts",
})

# category -> Article Search section_name used in the fq filter
SEARCH_SECTIONS: Mapping[NewsCategory, str] = MappingProxyType({
    NewsCategory.BUSINESS: "Business",
    NewsCategory.HEALTH: "Health",
    NewsCategory.SCIENCE: "Science",
    NewsCategory.SPORTS: "Sports",
    NewsCategory.TECHNOLOGY: "Technology",
    NewsCategory.ENTERTAINMENT: "Arts",
})


def map_section_to_category(
    section: Optional[str],
    mapping: Mapping[str, NewsCategory],
    default: NewsCategory = DEFAULT_CATEGORY,
    case_sensitive: bool = False,
) -> NewsCategory:
    """
    Translate an upstream section name into a canonical category.

    Args:
        section: Raw section string from the payload, possibly empty.
        mapping: One of the section tables above.
        default: Category for unmapped or missing sections.
        case_sensitive: Match the key exactly instead of lower-casing it.

    Returns:
        The mapped category, or ``default``.
    """
    if not section:
        return default
    key = section if case_sensitive else section.lower()
    return mapping.get(key, default)


def top_stories_section(category: Optional[NewsCategory]) -> str:
    """Top Stories section to request for a category."""
    if category is None:
        return DEFAULT_TOP_STORIES_SECTION
    return TOP_STORIES_SECTIONS.get(category, DEFAULT_TOP_STORIES_SECTION)


def search_section(category: Optional[NewsCategory]) -> Optional[str]:
    """Article Search section filter for a category, or None for no filter."""
    if category is None:
        return None
    return SEARCH_SECTIONS.get(category)
