"""Paginated fetch: one page read plus one count read over the same predicate."""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..constants import SORT_ASC
from ..utils.logging import get_logger
from .pagination import PaginationOptions
from .predicates import ListingSpec, build_predicate, describe_filters

logger = get_logger(__name__)


@dataclass
class PageMeta:
    page: int
    limit: int
    total: int


@dataclass
class Page:
    meta: PageMeta
    data: List[Any] = field(default_factory=list)


def order_clause(spec: ListingSpec, options: PaginationOptions):
    """
    Resolve the sort column and direction.

    Sort keys outside ``spec.sortable`` fall back to the default sort column.
    """
    sort_name = options.sort_by
    if sort_name not in spec.sortable:
        logger.warning(
            f"Unsortable field {sort_name!r} for {spec.model.__name__}, using '{spec.default_sort}'"
        )
        sort_name = spec.default_sort
    column = spec.column(sort_name)
    return column.asc() if options.sort_order == SORT_ASC else column.desc()


def paginate(
    session: Session,
    spec: ListingSpec,
    filters: Optional[Mapping[str, Any]],
    options: PaginationOptions,
    scope: Iterable = (),
    load_options: Iterable = (),
) -> Page:
    """
    Fetch one page of rows plus the total match count.

    The page and count reads are separate statements and are not
    transactionally consistent with each other.

    Args:
        session: SQLAlchemy session
        spec: Listing declaration
        filters: searchTerm plus declared filters
        options: Normalized pagination options
        scope: Extra base conditions (e.g. owner restriction)
        load_options: Loader options for related rows (e.g. selectinload)

    Returns:
        Page with meta {page, limit, total} and the rows
    """
    predicate = build_predicate(spec, filters, scope=list(scope))

    query = session.query(spec.model).filter(predicate)
    load_options = list(load_options)
    if load_options:
        query = query.options(*load_options)

    rows = (
        query.order_by(order_clause(spec, options), spec.model.id.asc())
        .offset(options.skip)
        .limit(options.limit)
        .all()
    )
    total = session.query(func.count(spec.model.id)).filter(predicate).scalar() or 0

    logger.debug(
        f"Listed {spec.model.__name__}: page={options.page} limit={options.limit} "
        f"total={total} filters={describe_filters(filters or {})}"
    )
    return Page(meta=PageMeta(page=options.page, limit=options.limit, total=total), data=rows)
