import logging
from typing import Any, Generic, TypeVar

from btaml_db.models import Model
from btaml_db.queryset import QuerySet
from fastapi import HTTPException, status

from .database import DatabaseMixin, database_errors

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Model)


class SingleObjectMixin(DatabaseMixin, Generic[T]):
    """
    Look up one row of `model` by the ``pk`` path parameter.

    A missing row or a non-numeric pk is a 404; database failures become
    503 or 500 responses.
    """

    model: type[T]
    queryset: QuerySet[T] | None = None
    context_object_name: str | None = None
    pk_url_kwarg: str = "pk"
    kwargs: dict[str, Any]

    def get_queryset(self) -> QuerySet[T]:
        """Rows the lookup may return; override to narrow it."""
        if self.queryset is not None:
            return self.queryset
        return self.model.objects.all()

    def get_pk(self) -> int | None:
        raw = self.kwargs.get(self.pk_url_kwarg)
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            return None

    async def get_object(
        self, queryset: QuerySet[T] | None = None, auto_error: bool = True
    ) -> T | None:
        """
        The row for this request, or None when `auto_error` is off.

        Raises:
            HTTPException: 404 when nothing matches and `auto_error` is set.
        """
        db = self.require_db()
        name = self.model.__name__
        qs = self.get_queryset() if queryset is None else queryset

        obj = None
        pk = self.get_pk()
        if pk is not None:
            with database_errors(name):
                obj = await qs.filter(id=pk).first(db)

        if obj is None and auto_error:
            logger.info("%s not found with pk=%s", name, pk)
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=f"{name} not found."
            )
        return obj
