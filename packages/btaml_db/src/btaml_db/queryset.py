from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Sequence, TypeVar

from sqlalchemy import func, select, update

from .expressions import Resolvable, lookup_condition
from .models import Model

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import ColumnElement, Select


T = TypeVar("T", bound=Model)


class QuerySet(Generic[T]):
    """
    A lazy, chainable query over one model.

    Chaining builds a new SQLAlchemy ``Select``; nothing is sent to the
    database until an execution method (``fetch``, ``first``, ``count``,
    ``aggregate``...) is awaited with a session.

    Examples:
        >>> qs = Article.objects.filter(status="published").order_by("-created_at")
        >>> latest = await qs.limit(6).fetch(db)
    """

    def __init__(self, model: type[T], stmt: Select):
        self.model: type[T] = model
        self._stmt: Select = stmt

    def _chain(self, stmt: Select) -> QuerySet[T]:
        return QuerySet(self.model, stmt)

    def _conditions(
        self,
        conditions: tuple[ColumnElement[bool] | Resolvable, ...],
        lookups: dict[str, Any],
    ) -> list[ColumnElement[bool]]:
        resolved: list[ColumnElement[bool]] = []
        for cond in conditions:
            expr = cond.resolve(self.model) if isinstance(cond, Resolvable) else cond
            if expr is not None:
                resolved.append(expr)
        resolved.extend(
            lookup_condition(self.model, key, value) for key, value in lookups.items()
        )
        return resolved

    def _scoped(self, stmt: Select) -> Select:
        where = self._stmt.whereclause
        return stmt if where is None else stmt.where(where)

    # Chaining

    def filter(
        self, *conditions: ColumnElement[bool] | Resolvable, **lookups: Any
    ) -> QuerySet[T]:
        """
        Narrow the query. Keyword lookups and ``Q`` objects are ANDed.

        Example:
            >>> Article.objects.filter(status="published", category__in=[...])
            # ... WHERE status = 'published' AND category IN (...)
            >>> Article.objects.filter(Q(title__icontains="gold") | Q(views__gt=9))
            # ... WHERE lower(title) LIKE lower('%gold%') OR views > 9
        """
        exprs = self._conditions(conditions, lookups)
        if not exprs:
            return self
        return self._chain(self._stmt.where(*exprs))

    def order_by(self, *criterion: Any) -> QuerySet[T]:
        """Sort by column names, a leading "-" meaning descending."""
        clauses = []
        for item in criterion:
            if isinstance(item, str):
                col = getattr(self.model, item.removeprefix("-"))
                item = col.desc() if item.startswith("-") else col.asc()
            clauses.append(item)
        return self._chain(self._stmt.order_by(*clauses))

    def limit(self, count: int) -> QuerySet[T]:
        return self._chain(self._stmt.limit(count))

    def offset(self, count: int) -> QuerySet[T]:
        return self._chain(self._stmt.offset(count))

    # Execution

    async def fetch(self, db: AsyncSession) -> Sequence[T]:
        result = await db.execute(self._stmt)
        return result.scalars().unique().all()

    async def first(self, db: AsyncSession) -> T | None:
        result = await db.execute(self._stmt.limit(1))
        return result.scalars().unique().one_or_none()

    async def count(self, db: AsyncSession) -> int:
        """Number of matching rows, ignoring any ordering."""
        inner = self._stmt.order_by(None).subquery()
        return await db.scalar(select(func.count()).select_from(inner)) or 0

    async def exists(self, db: AsyncSession) -> bool:
        return await self.count(db) > 0

    async def count_by(self, db: AsyncSession, field: str) -> dict[Any, int]:
        """
        Row counts grouped by the value of one column.

        Example:
            >>> await Article.objects.all().count_by(db, "category")
            {'Scholarship': 4, 'Western Africa': 2}
        """
        col = getattr(self.model, field)
        stmt = self._scoped(select(col, func.count()).select_from(self.model))
        result = await db.execute(stmt.group_by(col))
        return dict(result.tuples().all())

    async def aggregate(
        self, db: AsyncSession, **exprs: ColumnElement[Any] | Resolvable
    ) -> dict[str, Any]:
        """
        Summary values over the matching rows, keyed like the arguments.

        Example:
            >>> await Article.objects.all().aggregate(db, total=Sum("views"))
            {'total': 1234}
        """
        if not exprs:
            return {}
        columns = [
            (e.resolve(self.model) if isinstance(e, Resolvable) else e).label(name)
            for name, e in exprs.items()
        ]
        stmt = self._scoped(select(*columns).select_from(self.model))
        row = (await db.execute(stmt)).mappings().first()
        return dict(row) if row else dict.fromkeys(exprs)

    async def update(self, db: AsyncSession, **values: Any) -> int:
        """
        Bulk UPDATE of the matching rows; the caller commits.

        Example:
            >>> await Article.objects.filter(id=1).update(db, views=F("views") + 1)
            # UPDATE articles SET views = views + 1 WHERE id = 1
        """
        where = self._stmt.whereclause
        if where is None:
            msg = "Refusing to update without filters"
            raise ValueError(msg)

        stmt = (
            update(self.model)
            .where(where)
            .values(
                {
                    key: v.resolve(self.model) if isinstance(v, Resolvable) else v
                    for key, v in values.items()
                }
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount
