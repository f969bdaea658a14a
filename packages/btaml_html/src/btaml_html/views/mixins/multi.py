import logging
from typing import Any, Generic, TypeVar

from btaml_db.models import Model
from btaml_db.queryset import QuerySet
from fastapi import HTTPException, status

from .database import DatabaseMixin, database_errors

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Model)


class MultipleObjectMixin(DatabaseMixin, Generic[T]):
    """
    Load a page of `model` rows for list views.

    Examples:
        >>> class SecurityList(MultipleObjectMixin[SecurityArticle]):
        ...     model = SecurityArticle
        ...     paginate_by = 12
        ...     ordering = ["-created_at", "-id"]
        ...
        >>> page = await view.get_objects(offset=12)
        >>> page["total_count"], len(page["object_list"])
        (30, 12)
    """

    model: type[T]
    queryset: QuerySet[T] | None = None
    paginate_by: int | None = None
    ordering: str | list[str] | None = None
    allow_empty: bool = True

    def get_queryset(self) -> QuerySet[T]:
        if self.queryset is not None:
            return self.queryset
        return self.model.objects.all()

    def get_ordering(self) -> list[str]:
        if isinstance(self.ordering, str):
            return [self.ordering]
        return list(self.ordering or [])

    async def get_objects(
        self, limit: int | None = None, offset: int = 0
    ) -> dict[str, Any]:
        """
        One page of rows with its pagination metadata.

        The result holds ``object_list``, ``total_count``, ``limit``,
        ``offset``, ``has_next`` and ``has_previous``.

        Raises:
            HTTPException: 404 for an empty result when `allow_empty` is off,
                503 or 500 when the database fails.
        """
        db = self.require_db()
        name = self.model.__name__
        page_size = limit or self.paginate_by

        qs = self.get_queryset()
        ordering = self.get_ordering()
        if ordering:
            qs = qs.order_by(*ordering)

        with database_errors(f"{name} list"):
            total_count = await qs.count(db)
            if page_size:
                qs = qs.limit(page_size).offset(offset)
            object_list = list(await qs.fetch(db))
        logger.debug("Fetched %s of %s %s rows", len(object_list), total_count, name)

        if not object_list and not self.allow_empty:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No {name} objects found.",
            )

        return {
            "object_list": object_list,
            "total_count": total_count,
            "limit": page_size,
            "offset": offset,
            "has_next": bool(page_size) and total_count > offset + len(object_list),
            "has_previous": offset > 0,
        }
