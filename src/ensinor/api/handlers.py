"""Shared helpers for API functions: payload parsing, listing params, envelopes and error handling."""

from http import HTTPStatus
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import ApiError
from ..query.fetch import Page
from ..query.pagination import (
    DEFAULT_LIMIT,
    DEFAULT_MAX_LIMIT,
    PaginationOptions,
    calculate_pagination,
    split_query,
)
from ..query.predicates import ListingSpec
from ..utils.logging import get_logger
from .models import ApiResponse, PageMeta

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong!"

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def parse_payload(model: Type[PayloadT], payload: Any) -> PayloadT:
    """Validate a raw mapping (or pass through an already-built model)."""
    if isinstance(payload, model):
        return payload
    return model.model_validate(payload or {})


def listing_params(
    query: Optional[Mapping[str, Any]],
    spec: ListingSpec,
    pagination: Optional[Mapping[str, Any]] = None,
) -> Tuple[Dict[str, Any], PaginationOptions]:
    """
    Split a raw query map for ``spec`` and normalize its pagination part.

    Args:
        query: Raw query parameters
        spec: Listing declaration (its filter names form the allow-list)
        pagination: ``pagination`` config section (default_limit, max_limit)

    Returns:
        (filters, PaginationOptions)
    """
    pagination = pagination or {}
    filters, raw_options = split_query(query, spec.filter_names)
    options = calculate_pagination(
        raw_options,
        default_limit=pagination.get("default_limit", DEFAULT_LIMIT),
        max_limit=pagination.get("max_limit", DEFAULT_MAX_LIMIT),
    )
    return filters, options


def ok(message: str, data: Any = None) -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data)


def paged(message: str, page: Page, dto: Type[BaseModel]) -> ApiResponse:
    """Envelope a fetched page, converting each row through ``dto``."""
    return ApiResponse(
        success=True,
        message=message,
        meta=PageMeta(page=page.meta.page, limit=page.meta.limit, total=page.meta.total),
        data=[dto.model_validate(row) for row in page.data],
    )


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid payload"


def handle_error(exc: Exception) -> Tuple[ApiResponse, int]:
    """
    Turn any exception into an error envelope plus HTTP status.

    ApiError subclasses keep their message and status, payload validation
    errors become 400, everything else is logged and reported as a generic 500.
    """
    if isinstance(exc, ApiError):
        status = int(exc.status_code)
        logger.info(f"Request failed ({status}): {exc.message}")
        return ApiResponse(success=False, message=exc.message), status

    if isinstance(exc, ValidationError):
        message = _validation_message(exc)
        logger.info(f"Invalid payload: {message}")
        return ApiResponse(success=False, message=message), int(HTTPStatus.BAD_REQUEST)

    logger.error(f"Unexpected error: {type(exc).__name__}: {exc}", exc_info=exc)
    return (
        ApiResponse(success=False, message=GENERIC_ERROR_MESSAGE),
        int(HTTPStatus.INTERNAL_SERVER_ERROR),
    )
