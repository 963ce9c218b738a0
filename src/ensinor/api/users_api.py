"""Users API: read-only listings."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..database.user_repo import USER_LISTING, find_user_by_id, list_users
from ..errors import NotFoundError
from .handlers import listing_params, ok, paged
from .models import ApiResponse, UserOut


def get_users(
    session: Session,
    query: Optional[Mapping[str, Any]] = None,
    role: Optional[str] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, USER_LISTING, pagination)
    page = list_users(session, filters, options, role=role)
    return paged("Users retrieved successfully", page, UserOut)


def get_user(session: Session, user_id: str) -> ApiResponse:
    user = find_user_by_id(session, user_id)
    if not user or user.is_deleted:
        raise NotFoundError("User not found!")
    return ok("User retrieved successfully", UserOut.model_validate(user))
