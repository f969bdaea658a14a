"""
Query building blocks: field lookups, ``Q`` conditions, ``F`` column
references and the ``Sum`` aggregate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from sqlalchemy import and_, func, not_, or_

if TYPE_CHECKING:
    from sqlalchemy.orm import InstrumentedAttribute
    from sqlalchemy.sql import ColumnElement

    from .models import Model


@runtime_checkable
class Resolvable(Protocol):
    """Anything that turns into a SQLAlchemy expression for a given model."""

    def resolve(self, model: type[Model]) -> ColumnElement[Any] | None: ...


def _escape_like(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


LOOKUPS: dict[str, Callable[[Any, Any], ColumnElement[bool]]] = {
    "exact": lambda c, v: c == v,
    "iexact": lambda c, v: func.lower(c) == func.lower(v),
    "contains": lambda c, v: c.like(f"%{_escape_like(v)}%", escape="\\"),
    "icontains": lambda c, v: c.ilike(f"%{_escape_like(v)}%", escape="\\"),
    "gt": lambda c, v: c > v,
    "gte": lambda c, v: c >= v,
    "lt": lambda c, v: c < v,
    "lte": lambda c, v: c <= v,
    "in": lambda c, v: c.in_(v),
    "startswith": lambda c, v: c.startswith(v, autoescape=True),
    "istartswith": lambda c, v: c.istartswith(v, autoescape=True),
    "isnull": lambda c, v: c.is_(None) if v else c.is_not(None),
}


def column_for(model: type[Model], name: str) -> InstrumentedAttribute[Any]:
    """The mapped column `name` of `model`, or AttributeError."""
    col = getattr(model, name, None)
    if col is None:
        msg = f"Field '{name}' not found on model {model.__name__}"
        raise AttributeError(msg)
    return col


def lookup_condition(model: type[Model], key: str, value: Any) -> ColumnElement[bool]:
    """
    Turn one keyword filter into a condition.

    ``key`` is ``field`` or ``field__lookup`` (``views__gt``). Lookups that
    span relationships are rejected.
    """
    field, _, lookup = key.partition("__")
    lookup = lookup or "exact"
    if "__" in lookup:
        msg = f"Unsupported lookup '{key}': lookups across relationships"
        raise ValueError(msg)
    if lookup not in LOOKUPS:
        msg = f"Unsupported lookup '{lookup}'. Supported: {', '.join(LOOKUPS)}"
        raise ValueError(msg)
    if isinstance(value, Resolvable):
        value = value.resolve(model)
    return LOOKUPS[lookup](column_for(model, field), value)


class Q:
    """A query condition combinable with & (AND), | (OR) and ~ (NOT).

    Example:
        >>> Article.objects.filter(Q(title__icontains="kenya") | Q(country="Kenya"))
    """

    AND = "AND"
    OR = "OR"

    def __init__(
        self,
        *args: Q | ColumnElement[bool],
        _connector: str = AND,
        _negated: bool = False,
        **kwargs: Any,
    ):
        self.children: list[Any] = [*args, *kwargs.items()]
        self.connector = _connector
        self.negated = _negated

    def _combine(self, other: Q, connector: str) -> Q:
        if not isinstance(other, Q):
            msg = f"Cannot combine Q object with {type(other).__name__}"
            raise TypeError(msg)
        return Q(self, other, _connector=connector)

    def __and__(self, other: Q) -> Q:
        return self._combine(other, self.AND)

    def __or__(self, other: Q) -> Q:
        return self._combine(other, self.OR)

    def __invert__(self) -> Q:
        inverted = Q(_connector=self.connector, _negated=not self.negated)
        inverted.children = list(self.children)
        return inverted

    @classmethod
    def any(cls, conditions: list[Q]) -> Q:
        """OR together a list of Q objects; an empty list adds no condition."""
        return cls(*conditions, _connector=cls.OR)

    def resolve(self, model: type[Model]) -> ColumnElement[bool] | None:
        parts: list[ColumnElement[bool]] = []
        for child in self.children:
            if isinstance(child, Q):
                nested = child.resolve(model)
                if nested is not None:
                    parts.append(nested)
            elif isinstance(child, tuple):
                parts.append(lookup_condition(model, *child))
            else:
                parts.append(child)
        if not parts:
            return None
        clause = or_(*parts) if self.connector == self.OR else and_(*parts)
        return not_(clause) if self.negated else clause


class Sum:
    """SQL SUM over one column."""

    def __init__(self, field: str):
        self.field = field

    def resolve(self, model: type[Model]) -> ColumnElement[Any]:
        return func.sum(column_for(model, self.field))


class F:
    """A reference to a model column, with + and - arithmetic.

    Used for updates computed by the database itself:
        >>> await Article.objects.filter(id=1).update(db, views=F("views") + 1)
        # UPDATE articles SET views = views + 1 WHERE id = 1;
    """

    def __init__(self, name: str | InstrumentedAttribute[Any]):
        self.name = name if isinstance(name, str) else name.key
        self._terms: list[tuple[int, Any]] = []

    def _extend(self, sign: int, other: Any) -> F:
        expr = F(self.name)
        expr._terms = [*self._terms, (sign, other)]
        return expr

    def __add__(self, other: Any) -> F:
        return self._extend(1, other)

    def __sub__(self, other: Any) -> F:
        return self._extend(-1, other)

    def resolve(self, model: type[Model]) -> ColumnElement[Any]:
        expr = column_for(model, self.name)
        for sign, other in self._terms:
            if isinstance(other, Resolvable):
                other = other.resolve(model)
            expr = expr + other if sign > 0 else expr - other
        return expr
