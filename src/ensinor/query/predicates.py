"""Predicate building for filtered listings.

Each entity declares a ``ListingSpec``: which columns a free-text search fans
out over, which filter names map to which columns, and which columns may be
sorted on. Filter keys outside the declaration never reach the store.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from sqlalchemy import and_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from ..errors import BadRequestError
from ..utils.logging import get_logger
from .pagination import DEFAULT_SORT_BY, SEARCH_KEY

logger = get_logger(__name__)

_TRUE_STRINGS = ("true", "1", "yes")
_FALSE_STRINGS = ("false", "0", "no")


@dataclass(frozen=True)
class ListingSpec:
    """Static listing declaration for one entity."""

    model: Any
    searchable: Tuple[str, ...] = ()
    filters: Mapping[str, str] = field(default_factory=dict)  # filter name -> column name
    sortable: Tuple[str, ...] = (DEFAULT_SORT_BY,)
    soft_delete: bool = True
    default_sort: str = DEFAULT_SORT_BY
    choices: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)  # column name -> allowed values

    @property
    def filter_names(self) -> Tuple[str, ...]:
        return tuple(self.filters)

    def column(self, name: str):
        return getattr(self.model, name)

    def python_type(self, column_name: str) -> Optional[type]:
        try:
            return self.model.__table__.c[column_name].type.python_type
        except (KeyError, NotImplementedError):
            return None


def coerce_filter_value(spec: ListingSpec, column_name: str, value: Any) -> Any:
    """
    Convert a raw filter value to the column's Python type.

    Raises:
        BadRequestError: If the value can't be read as that type
    """
    target = spec.python_type(column_name)
    if target is None or isinstance(value, target):
        return value

    text = str(value).strip()
    if target is bool:
        lowered = text.lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise BadRequestError(f"Filter '{column_name}' expects true/false, got {value!r}")
    if target in (int, float):
        try:
            return target(text)
        except ValueError:
            raise BadRequestError(f"Filter '{column_name}' expects a number, got {value!r}") from None
    if target is str:
        return text
    return value


def search_condition(spec: ListingSpec, term: str) -> Optional[ColumnElement]:
    """OR group: any searchable column contains ``term``, case-insensitively."""
    if not term or not spec.searchable:
        return None
    return or_(*[spec.column(name).icontains(term, autoescape=True) for name in spec.searchable])


def equality_conditions(spec: ListingSpec, filters: Mapping[str, Any]) -> Optional[ColumnElement]:
    """AND group of exact-match conditions for the declared filter keys."""
    clauses = []
    for key, value in filters.items():
        if key == SEARCH_KEY:
            continue
        column_name = spec.filters.get(key)
        if column_name is None:
            logger.debug(f"Dropping undeclared filter '{key}' for {spec.model.__name__}")
            continue
        value = coerce_filter_value(spec, column_name, value)
        allowed = spec.choices.get(column_name)
        if allowed is not None and value not in allowed:
            raise BadRequestError(f"Filter '{key}' must be one of: {', '.join(allowed)}")
        clauses.append(spec.column(column_name) == value)
    if not clauses:
        return None
    return and_(*clauses)


def build_predicate(
    spec: ListingSpec,
    filters: Optional[Mapping[str, Any]] = None,
    scope: Iterable[ColumnElement] = (),
) -> ColumnElement:
    """
    Compose the listing predicate.

    Groups, all ANDed together:
    1. ``is_deleted = false`` for soft-deleting entities, plus scope conditions
    2. search OR group when ``searchTerm`` is present
    3. exact-match AND group for the remaining declared filters

    Args:
        spec: Listing declaration for the entity
        filters: Filter map (searchTerm plus filter names)
        scope: Caller-supplied base conditions, e.g. ``Course.author_id == x``

    Returns:
        A single SQLAlchemy boolean expression
    """
    filters = filters or {}
    conditions = []

    if spec.soft_delete:
        conditions.append(spec.column("is_deleted").is_(False))
    conditions.extend(scope)

    search = search_condition(spec, filters.get(SEARCH_KEY) or "")
    if search is not None:
        conditions.append(search)

    equality = equality_conditions(spec, filters)
    if equality is not None:
        conditions.append(equality)

    if not conditions:
        return true()
    return and_(*conditions)


def describe_filters(filters: Mapping[str, Any]) -> Dict[str, Any]:
    """Filter map as logged: search term first, then filters sorted by name."""
    described = {}
    if filters.get(SEARCH_KEY):
        described[SEARCH_KEY] = filters[SEARCH_KEY]
    for key in sorted(k for k in filters if k != SEARCH_KEY):
        described[key] = filters[key]
    return described
