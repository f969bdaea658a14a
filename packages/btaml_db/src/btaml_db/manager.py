from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import DoesNotExistError, MultipleObjectsReturnedError
from .models import Model
from .queryset import QuerySet

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import ColumnElement

    from .expressions import Resolvable

T = TypeVar("T", bound=Model)


class ModelManager(Generic[T]):
    """
    The ``objects`` attribute of every model.

    Starts QuerySets and performs the single-row writes, which commit
    immediately and roll back on failure.
    """

    def __init__(self, model: type[T]):
        self._model = model

    def all(self) -> QuerySet[T]:
        return QuerySet(self._model, select(self._model))

    def filter(
        self, *conditions: ColumnElement[bool] | Resolvable, **lookups: Any
    ) -> QuerySet[T]:
        return self.all().filter(*conditions, **lookups)

    async def get(
        self,
        db: AsyncSession,
        *conditions: ColumnElement[bool] | Resolvable,
        **lookups: Any,
    ) -> T:
        """
        The single row matching the conditions.

        Raises:
            DoesNotExistError: Nothing matches.
            MultipleObjectsReturnedError: More than one row matches.
        """
        rows = await self.filter(*conditions, **lookups).limit(2).fetch(db)
        name = self._model.__name__
        if not rows:
            msg = f"{name} matching query does not exist"
            raise DoesNotExistError(msg)
        if len(rows) > 1:
            msg = f"get() returned more than one {name}"
            raise MultipleObjectsReturnedError(msg)
        return rows[0]

    async def get_by_pk(self, db: AsyncSession, pk: Any) -> T:
        return await self.get(db, id=pk)

    async def _commit(self, db: AsyncSession, instance: T, action: str) -> None:
        try:
            await db.commit()
            await db.refresh(instance)
        except SQLAlchemyError as e:
            await db.rollback()
            msg = f"Database error while {action} {self._model.__name__}: {e}"
            raise RuntimeError(msg) from e

    async def create(self, db: AsyncSession, **fields: Any) -> T:
        """
        Insert a row and return it refreshed.

        Raises:
            RuntimeError: The database rejected the insert.
        """
        instance = self._model(**fields)
        db.add(instance)
        await self._commit(db, instance, "creating")
        return instance

    async def update(self, db: AsyncSession, pk: Any, **fields: Any) -> T:
        """
        Set ``fields`` on row ``pk`` and return it refreshed.

        Raises:
            DoesNotExistError: No row has that primary key.
            RuntimeError: The database rejected the update.
        """
        instance = await db.get(self._model, pk)
        if instance is None:
            msg = f"{self._model.__name__} with id {pk} not found"
            raise DoesNotExistError(msg)
        for key, value in fields.items():
            setattr(instance, key, value)
        await self._commit(db, instance, "updating")
        return instance
