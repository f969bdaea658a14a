import inspect
import logging
from contextlib import contextmanager
from typing import Any, ClassVar, Iterator

from btaml_db.db import get_db
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..base import add_dependency

logger = logging.getLogger(__name__)


@contextmanager
def database_errors(what: str) -> Iterator[None]:
    """Turn a failed read of `what` into a 503 (connection) or 500 response."""
    try:
        yield
    except OperationalError as e:
        logger.exception("Database connection error while fetching %s", what)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service temporarily unavailable. Please try again later.",
        ) from e
    except DatabaseError as e:
        logger.exception("Database error while fetching %s", what)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database error. Please try again later.",
        ) from e


class DatabaseMixin:
    """Give the view a request-scoped ``AsyncSession`` as ``self.db``."""

    db: AsyncSession | None = None
    view_attributes: ClassVar[frozenset[str]] = frozenset({"db"})

    @classmethod
    def resolve_dependencies(
        cls, params: list[inspect.Parameter], **kwargs: Any
    ) -> None:
        add_dependency(params, "db", get_db)
        super().resolve_dependencies(params, **kwargs)  # type: ignore[misc]

    def require_db(self) -> AsyncSession:
        if self.db is None:
            msg = f"{type(self).__name__} was called without a database session."
            raise RuntimeError(msg)
        return self.db
