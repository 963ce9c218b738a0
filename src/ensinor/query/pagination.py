"""Query-parameter normalization for collection listings.

Turns a raw query map (strings from a query string, or already-typed values)
into a ``PaginationOptions`` record and a residual filter map restricted to
the keys a listing declares.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..constants import ALLOWED_SORT_ORDERS, SORT_DESC
from ..utils.logging import get_logger

logger = get_logger(__name__)

PAGINATION_KEYS = ("page", "limit", "sortBy", "sortOrder")
SEARCH_KEY = "searchTerm"

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_MAX_LIMIT = 100
DEFAULT_SORT_BY = "created_at"

# OFFSET is bound as a signed 64-bit integer by the store.
MAX_SKIP = 2**63 - 1

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


@dataclass(frozen=True)
class PaginationOptions:
    page: int
    limit: int
    skip: int
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = SORT_DESC


def to_snake(name: str) -> str:
    """``sortBy`` -> ``sort_by``; snake_case input is returned unchanged."""
    return _CAMEL_BOUNDARY.sub(r"_\1", name).lower()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _positive_int(value: Any, default: int) -> int:
    """Parse a positive integer, falling back to ``default`` for anything else."""
    if _is_blank(value) or isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def normalize_sort_order(value: Any) -> str:
    """
    Constrain a sort direction to ``asc``/``desc``.

    Unknown directions are coerced to ``desc`` rather than reaching the store.
    """
    if _is_blank(value):
        return SORT_DESC
    order = str(value).strip().lower()
    if order not in ALLOWED_SORT_ORDERS:
        logger.warning(f"Invalid sort order {value!r}, using '{SORT_DESC}'")
        return SORT_DESC
    return order


def _lookup(options: Mapping[str, Any], key: str) -> Any:
    """Read ``key`` accepting both camelCase and snake_case spellings."""
    if key in options:
        return options[key]
    return options.get(to_snake(key))


def calculate_pagination(
    options: Mapping[str, Any],
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = DEFAULT_MAX_LIMIT,
) -> PaginationOptions:
    """
    Normalize pagination options.

    Args:
        options: Map possibly holding page, limit, sortBy, sortOrder
        default_limit: Page size used when limit is absent or invalid
        max_limit: Upper bound on page size

    Returns:
        PaginationOptions with skip = (page - 1) * limit
    """
    page = _positive_int(_lookup(options, "page"), DEFAULT_PAGE)
    limit = min(_positive_int(_lookup(options, "limit"), default_limit), max_limit)
    page = min(page, MAX_SKIP // limit + 1)

    sort_by = _lookup(options, "sortBy")
    sort_by = to_snake(str(sort_by).strip()) if not _is_blank(sort_by) else DEFAULT_SORT_BY

    return PaginationOptions(
        page=page,
        limit=limit,
        skip=(page - 1) * limit,
        sort_by=sort_by,
        sort_order=normalize_sort_order(_lookup(options, "sortOrder")),
    )


def split_query(
    raw: Optional[Mapping[str, Any]],
    filterable_fields: Iterable[str],
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Pick the recognized keys out of a raw query map.

    Args:
        raw: Raw query parameters
        filterable_fields: snake_case filter names the listing declares

    Returns:
        (filters, options): filters holds searchTerm plus declared filters,
        options holds the pagination keys. Everything else is dropped.
    """
    allowed = set(filterable_fields)
    filters: Dict[str, Any] = {}
    options: Dict[str, Any] = {}

    for key, value in (raw or {}).items():
        if _is_blank(value):
            continue
        if key in PAGINATION_KEYS or key in ("sort_by", "sort_order"):
            options[key] = value
            continue
        if key in (SEARCH_KEY, "search_term", "search"):
            filters[SEARCH_KEY] = str(value).strip()
            continue
        name = to_snake(key)
        if name in allowed:
            filters[name] = value
        else:
            logger.debug(f"Ignoring unrecognized query key: {key}")

    return filters, options
