"""
Public pages: the home page, listings and detail pages per content
variant, search and the static pages.
"""

import logging
from typing import Any, TypeVar

from btaml_db.queryset import QuerySet
from btaml_html.views import DatabaseMixin, DetailView, ListView, TemplateView
from fastapi import HTTPException, Response
from sqlalchemy.exc import SQLAlchemyError

from ..content import published_listing, record_view
from ..models import (
    Article,
    BusinessArticle,
    RegionalArticle,
    ScholarshipArticle,
    SecurityArticle,
)
from ..search import search_articles
from ..taxonomy import (
    BUSINESS_REGIONS,
    CONTINENTS,
    SECURITY_CATEGORIES,
    Region,
    business_category_for_slug,
    region_for_slug,
)

logger = logging.getLogger(__name__)

A = TypeVar("A", bound=Article)

LEGAL_PAGES = {
    "terms-of-use": "Terms of Use",
    "privacy-policy": "Privacy Policy",
    "investment-disclaimers": "Investment Disclaimers",
    "regulatory-compliance": "Regulatory Compliance",
}


def _region_or_404(slug: str | None) -> Region:
    region = region_for_slug(slug or "")
    if region is None:
        raise HTTPException(status_code=404, detail="Region not found.")
    return region


def _business_category_or_404(slug: str | None) -> str:
    category = business_category_for_slug(slug or "")
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found.")
    return category


class HomeView(DatabaseMixin, TemplateView):
    """Latest published items of every variant."""

    template_name = "portal/home.html"
    latest_count = 6

    async def get(self, *args: Any, **kwargs: Any) -> Response:  # noqa: ARG002
        assert self.db
        try:
            latest = {
                "regional": await published_listing(RegionalArticle)
                .limit(self.latest_count)
                .fetch(self.db),
                "business": await published_listing(BusinessArticle)
                .limit(self.latest_count)
                .fetch(self.db),
                "scholarships": await published_listing(ScholarshipArticle)
                .limit(self.latest_count)
                .fetch(self.db),
                "security": await published_listing(SecurityArticle)
                .limit(self.latest_count)
                .fetch(self.db),
            }
        except SQLAlchemyError:
            logger.exception("Could not load the home page articles")
            context = self.get_context_data(latest={}, load_error=True)
            return self.render_to_response(context, status_code=503)

        context = self.get_context_data(latest=latest, load_error=False)
        return self.render_to_response(context)


class ListingView(ListView[A]):
    """
    A page of published items.

    Database failures render the error panel with a "Try Again" link; an
    empty page renders the "coming soon" panel.
    """

    template_name = "portal/listing.html"
    paginate_by = 12
    heading = ""
    section = ""

    def get_heading(self) -> str:
        return self.heading

    async def get(self, *args: Any, **kwargs: Any) -> Response:  # noqa: ARG002
        offset = (self.get_page_number() - 1) * (self.paginate_by or 0)
        try:
            page = await self.get_objects(offset=offset)
        except HTTPException as e:
            if e.status_code < 500:
                raise
            context = self.get_context_data(
                object_list=[], page_obj=None, load_error=True
            )
            return self.render_to_response(context, status_code=e.status_code)
        return await self.render_list(page, load_error=False)

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context.setdefault("heading", self.get_heading())
        context.setdefault("section", self.section)
        context.setdefault("page_number", self.get_page_number())
        return context


class CountedDetailView(DetailView[A]):
    """A published item; each display counts one view."""

    template_name = "portal/detail.html"
    context_object_name = "article"
    view_count = 0

    async def get_object(
        self,
        queryset: QuerySet[A] | None = None,
        auto_error: bool = True,
    ) -> A | None:
        obj = await super().get_object(queryset, auto_error)
        if obj is not None:
            self.view_count = await record_view(self.require_db(), obj)
        return obj

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context["view_count"] = self.view_count
        return context


class RegionListView(ListingView[RegionalArticle]):
    model = RegionalArticle
    section = "africa"

    def get_queryset(self) -> QuerySet[RegionalArticle]:
        region = _region_or_404(self.kwargs.get("region"))
        return published_listing(
            RegionalArticle, category=region.name, countries=region.countries
        )

    def get_heading(self) -> str:
        return _region_or_404(self.kwargs.get("region")).name

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context["region"] = _region_or_404(self.kwargs.get("region"))
        return context


class RegionDetailView(CountedDetailView[RegionalArticle]):
    model = RegionalArticle

    def get_queryset(self) -> QuerySet[RegionalArticle]:
        region = _region_or_404(self.kwargs.get("region"))
        return published_listing(RegionalArticle, category=region.name)


class BusinessListView(ListingView[BusinessArticle]):
    model = BusinessArticle
    section = "business"

    def get_queryset(self) -> QuerySet[BusinessArticle]:
        category = _business_category_or_404(self.kwargs.get("category"))
        return published_listing(
            BusinessArticle, category=category, regions=BUSINESS_REGIONS
        )

    def get_heading(self) -> str:
        return _business_category_or_404(self.kwargs.get("category"))


class BusinessDetailView(CountedDetailView[BusinessArticle]):
    model = BusinessArticle

    def get_queryset(self) -> QuerySet[BusinessArticle]:
        category = _business_category_or_404(self.kwargs.get("category"))
        return published_listing(
            BusinessArticle, category=category, regions=BUSINESS_REGIONS
        )


class ScholarshipListView(ListingView[ScholarshipArticle]):
    model = ScholarshipArticle
    section = "scholarship"
    heading = "Scholarships"

    def get_continent(self) -> str | None:
        continent = self.request.query_params.get("continent")
        return continent if continent in CONTINENTS else None

    def get_queryset(self) -> QuerySet[ScholarshipArticle]:
        qs = published_listing(ScholarshipArticle)
        continent = self.get_continent()
        if continent:
            qs = qs.filter(continent=continent)
        return qs

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context["filter_name"] = "continent"
        context["filter_choices"] = CONTINENTS
        context["active_filter"] = self.get_continent()
        return context


class ScholarshipDetailView(CountedDetailView[ScholarshipArticle]):
    model = ScholarshipArticle

    def get_queryset(self) -> QuerySet[ScholarshipArticle]:
        return published_listing(ScholarshipArticle)


class SecurityListView(ListingView[SecurityArticle]):
    model = SecurityArticle
    section = "security"
    heading = "Security & Intelligence"

    def get_category(self) -> str | None:
        category = self.request.query_params.get("category")
        return category if category in SECURITY_CATEGORIES else None

    def get_queryset(self) -> QuerySet[SecurityArticle]:
        category = self.get_category()
        if category is None:
            return published_listing(SecurityArticle, categories=SECURITY_CATEGORIES)
        return published_listing(SecurityArticle, category=category)

    def get_context_data(self, **kwargs: Any) -> dict[str, Any]:
        context = super().get_context_data(**kwargs)
        context["filter_name"] = "category"
        context["filter_choices"] = SECURITY_CATEGORIES
        context["active_filter"] = self.get_category()
        return context


class SecurityDetailView(CountedDetailView[SecurityArticle]):
    model = SecurityArticle

    def get_queryset(self) -> QuerySet[SecurityArticle]:
        return published_listing(SecurityArticle, categories=SECURITY_CATEGORIES)


class SearchView(DatabaseMixin, TemplateView):
    template_name = "portal/search.html"

    async def get(self, *args: Any, **kwargs: Any) -> Response:  # noqa: ARG002
        assert self.db
        settings = self.request.app.state.settings
        query = self.request.query_params.get("q", "")
        try:
            results = await search_articles(
                self.db,
                query,
                max_conditions=settings.SEARCH_MAX_CONDITIONS,
                limit=settings.SEARCH_RESULT_LIMIT,
            )
        except SQLAlchemyError:
            logger.exception("Search failed for %r", query)
            context = self.get_context_data(query=query.strip(), search_error=True)
            return self.render_to_response(context, status_code=503)

        context = self.get_context_data(
            query=results.query, results=results, search_error=False
        )
        return self.render_to_response(context)


class LegalPageView(TemplateView):
    async def get(self, *args: Any, **kwargs: Any) -> Response:  # noqa: ARG002
        slug = self.kwargs.get("page", "")
        if slug not in LEGAL_PAGES:
            raise HTTPException(status_code=404, detail="Page not found.")
        context = self.get_context_data(page_title=LEGAL_PAGES[slug], slug=slug)
        return self.render_to_response(context)

    def get_template_names(self) -> list[str]:
        return [f"portal/legal/{self.kwargs['page']}.html"]
