"""
Content services shared by the public pages and the admin CMS.
"""

import logging
import re
from collections.abc import Iterable
from typing import Any, TypeVar

from btaml_db import DoesNotExistError, F
from btaml_db.queryset import QuerySet
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import PUBLISHED, Article, join_multi, split_multi

logger = logging.getLogger(__name__)

A = TypeVar("A", bound=Article)

EXCERPT_LENGTH = 150

_TAG_RE = re.compile(r"<[^>]*>")

__all__ = [
    "delete_article",
    "generate_excerpt",
    "join_multi",
    "published_listing",
    "record_view",
    "save_article",
    "split_multi",
    "success_message",
]


def generate_excerpt(html: str) -> str:
    """
    Plain-text preview of an HTML body.

    Tags are removed and the text is cut to 150 characters, with "..."
    appended only when something was cut.
    """
    text = _TAG_RE.sub("", html or "").strip()
    if len(text) > EXCERPT_LENGTH:
        return text[:EXCERPT_LENGTH] + "..."
    return text


def published_listing(
    variant: type[A],
    *,
    category: str | None = None,
    categories: Iterable[str] | None = None,
    countries: Iterable[str] | None = None,
    regions: Iterable[str] | None = None,
) -> QuerySet[A]:
    """Published rows of one variant, newest first."""
    qs = variant.objects.filter(status=PUBLISHED)
    if category is not None:
        qs = qs.filter(category=category)
    if categories is not None:
        qs = qs.filter(category__in=list(categories))
    if countries is not None:
        qs = qs.filter(country__in=list(countries))
    if regions is not None:
        qs = qs.filter(region__in=list(regions))
    return qs.order_by("-created_at", "-id")


async def record_view(db: AsyncSession, article: Article) -> int:
    """
    Count one view of `article` and return the number to display.

    The counter is bumped in the database; the returned value is always
    the loaded count plus one, even when the update fails. On failure the
    article is detached before the rollback, so its loaded values stay
    readable.
    """
    displayed = (article.views or 0) + 1
    article_id = article.id
    try:
        await Article.objects.filter(id=article_id).update(db, views=F("views") + 1)
        await db.commit()
    except SQLAlchemyError:
        if article in db:
            db.expunge(article)
        await db.rollback()
        logger.warning("Could not record a view of article %s", article_id, exc_info=True)
    return displayed


def success_message(status: str) -> str:
    if status == PUBLISHED:
        return "Article published successfully!"
    return "Article saved as draft!"


async def save_article(
    db: AsyncSession,
    variant: type[A],
    payload: dict[str, Any],
    *,
    pk: int | None = None,
) -> A:
    """
    Create a row of `variant`, or update row `pk` of it.

    An empty excerpt is generated from the content.

    Raises:
        DoesNotExistError: `pk` is not a row of this variant.
        RuntimeError: The database rejected the write.
    """
    values = dict(payload)
    if not values.get("excerpt"):
        values["excerpt"] = generate_excerpt(values.get("content", ""))

    if pk is None:
        article = await variant.objects.create(db, **values)
        logger.info(
            "Created %s %s (%s)", variant.__name__, article.id, article.status
        )
        return article

    existing = await variant.objects.filter(id=pk).first(db)
    if existing is None:
        msg = f"{variant.__name__} with id {pk} not found"
        raise DoesNotExistError(msg)
    article = await variant.objects.update(db, pk, **values)
    logger.info("Updated %s %s (%s)", variant.__name__, article.id, article.status)
    return article


async def delete_article(db: AsyncSession, variant: type[Article], pk: int) -> None:
    """
    Delete row `pk` of `variant`.

    Raises:
        DoesNotExistError: `pk` is not a row of this variant.
    """
    article = await variant.objects.filter(id=pk).first(db)
    if article is None:
        msg = f"{variant.__name__} with id {pk} not found"
        raise DoesNotExistError(msg)
    try:
        await db.delete(article)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        msg = f"Database error while deleting {variant.__name__}: {e}"
        raise RuntimeError(msg) from e
    logger.info("Deleted %s %s", variant.__name__, pk)
