"""
Site search over published articles and the static pages.

The query is matched by substring against title, content and category,
widened with the fixed keyword vocabulary: every keyword that contains
the query, or is contained in it, adds a content and a title condition.
"""

import logging
from dataclasses import dataclass, field
from typing import Literal, NamedTuple

from btaml_db import Q
from sqlalchemy.ext.asyncio import AsyncSession

from .models import PUBLISHED, Article
from .taxonomy import (
    BUSINESS_CATEGORIES,
    REGIONS,
    SCHOLARSHIP_CATEGORY,
    SEARCH_KEYWORDS,
    SECURITY_CATEGORIES,
    category_url,
)

logger = logging.getLogger(__name__)

MAX_CONDITIONS = 20
RESULT_LIMIT = 100

SearchState = Literal["no_query", "no_results", "results"]


class SearchTerm(NamedTuple):
    field: Literal["title", "content", "category"]
    value: str


class StaticPage(NamedTuple):
    title: str
    url: str
    type: str
    description: str


LEGAL_PAGES = (
    StaticPage(
        "Terms of Use",
        "/legal/terms-of-use",
        "Legal",
        "Rules and responsibilities for using BTAML Universe services",
    ),
    StaticPage(
        "Privacy Policy",
        "/legal/privacy-policy",
        "Legal",
        "How we collect, use, and protect your personal data",
    ),
    StaticPage(
        "Investment Disclaimers",
        "/legal/investment-disclaimers",
        "Legal",
        "Risks and disclaimers for financial investments",
    ),
    StaticPage(
        "Regulatory Compliance",
        "/legal/regulatory-compliance",
        "Legal",
        "Anti-corruption, AML, and ethical business guidelines",
    ),
)
LEGAL_KEYWORDS = (
    "legal",
    "terms",
    "privacy",
    "policy",
    "investment",
    "compliance",
    "regulation",
)

SERVICES_PAGE = StaticPage(
    "Our Services",
    "/services",
    "Services",
    "Strategic Business Analysis, Research & Data Collection, Regional Intelligence",
)
SERVICE_KEYWORDS = (
    "strategic",
    "business",
    "analysis",
    "creative",
    "operational",
    "research",
    "data",
    "regional",
    "intelligence",
    "monitoring",
    "consulting",
    "service",
)

GENERAL_PAGES = (
    StaticPage(
        "About Us",
        "/about",
        "General",
        "Learn about BTAML Universe mission and team",
    ),
    StaticPage("Contact", "/contact", "General", "Get in touch with our team"),
)


@dataclass
class SearchHit:
    article: Article
    bucket: str

    @property
    def category_url(self) -> str:
        return category_url(self.article.category, self.bucket)


@dataclass
class SearchResults:
    query: str
    state: SearchState = "no_query"
    regional_articles: list[SearchHit] = field(default_factory=list)
    business_articles: list[SearchHit] = field(default_factory=list)
    scholarships: list[SearchHit] = field(default_factory=list)
    security: list[SearchHit] = field(default_factory=list)
    static_pages: list[StaticPage] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.regional_articles)
            + len(self.business_articles)
            + len(self.scholarships)
            + len(self.security)
            + len(self.static_pages)
        )

    def sections(self) -> list[tuple[str, str, list[SearchHit]]]:
        """Non-empty article buckets as (key, heading, hits)."""
        sections = [
            ("regional", "Regional News", self.regional_articles),
            ("business", "Business", self.business_articles),
            ("scholarships", "Scholarships", self.scholarships),
            ("security", "Security", self.security),
        ]
        return [section for section in sections if section[2]]


def build_search_terms(query: str) -> list[SearchTerm]:
    """
    Every substring condition for `query`, uncapped.

    Example:
        >>> build_search_terms("phd")[:4]
        [SearchTerm(field='title', value='phd'),
         SearchTerm(field='content', value='phd'),
         SearchTerm(field='category', value='phd'),
         SearchTerm(field='content', value='PhD')]
    """
    query = query.strip()
    lowered = query.lower()
    terms = [
        SearchTerm("title", query),
        SearchTerm("content", query),
        SearchTerm("category", query),
    ]
    for keywords in SEARCH_KEYWORDS.values():
        for keyword in keywords:
            keyword_lower = keyword.lower()
            if keyword_lower in lowered or lowered in keyword_lower:
                terms.append(SearchTerm("content", keyword))
                terms.append(SearchTerm("title", keyword))
    return terms


def bucket_for(category: str) -> str | None:
    """The search bucket of a category, or None when it belongs to none."""
    if category in REGIONS:
        return "regional"
    if category in BUSINESS_CATEGORIES:
        return "business"
    if category == SCHOLARSHIP_CATEGORY:
        return "scholarships"
    if category in SECURITY_CATEGORIES:
        return "security"
    return None


def _is_relevant(article: Article, terms: list[SearchTerm]) -> bool:
    haystack = f"{article.title} {article.content} {article.category}".lower()
    return any(term.value.lower() in haystack for term in terms)


def match_static_pages(query: str) -> list[StaticPage]:
    lowered = query.strip().lower()
    if not lowered:
        return []

    pages: list[StaticPage] = []
    for page in LEGAL_PAGES:
        title = page.title.lower()
        description = page.description.lower()
        if (
            lowered in title
            or lowered in description
            or any(
                keyword in lowered and (keyword in title or keyword in description)
                for keyword in LEGAL_KEYWORDS
            )
        ):
            pages.append(page)

    if any(keyword in lowered for keyword in SERVICE_KEYWORDS):
        pages.append(SERVICES_PAGE)

    pages.extend(
        page
        for page in GENERAL_PAGES
        if lowered in page.title.lower() or lowered in page.description.lower()
    )
    return pages


async def search_articles(
    db: AsyncSession,
    query: str,
    *,
    max_conditions: int = MAX_CONDITIONS,
    limit: int = RESULT_LIMIT,
) -> SearchResults:
    """
    Run one search.

    A blank query returns the ``no_query`` state without touching the
    database. Rows whose category falls in no bucket are dropped.
    """
    query = query.strip()
    results = SearchResults(query=query)
    if not query:
        return results

    terms = build_search_terms(query)
    conditions = [
        Q(**{f"{term.field}__icontains": term.value})
        for term in terms[:max_conditions]
    ]
    articles = (
        await Article.objects.filter(status=PUBLISHED)
        .filter(Q.any(conditions))
        .order_by("-created_at", "-id")
        .limit(limit)
        .fetch(db)
    )

    buckets = {
        "regional": results.regional_articles,
        "business": results.business_articles,
        "scholarships": results.scholarships,
        "security": results.security,
    }
    for article in articles:
        if not _is_relevant(article, terms):
            continue
        bucket = bucket_for(article.category)
        if bucket is not None:
            buckets[bucket].append(SearchHit(article, bucket))

    results.static_pages = match_static_pages(query)
    results.state = "results" if results.total else "no_results"
    logger.debug(
        "Search %r: %s conditions, %s rows, %s results",
        query,
        len(conditions),
        len(articles),
        results.total,
    )
    return results
