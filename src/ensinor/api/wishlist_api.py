"""Wishlist API: per-user saved courses (hard-deleted)."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..database.course_repo import find_approved_course
from ..database.sqlite_client import transaction
from ..database.user_repo import find_active_user
from ..database.wishlist_repo import (
    WISHLIST_LISTING,
    create_wishlist_item,
    delete_wishlist_item,
    find_duplicate,
    find_wishlist_item,
    list_wishlist,
)
from ..errors import BadRequestError, ForbiddenError, NotFoundError
from .handlers import listing_params, ok, paged, parse_payload
from .models import ApiResponse, WishlistCreate, WishlistOut


def add_to_wishlist(session: Session, user_id: str, payload: Any) -> ApiResponse:
    """
    Save an approved course to the user's wishlist.

    Raises:
        NotFoundError: Inactive/missing user, or course missing or not approved
        BadRequestError: Course already in the wishlist
    """
    data = parse_payload(WishlistCreate, payload)
    user = find_active_user(session, user_id)
    if not user:
        raise NotFoundError("User not found!")
    course = find_approved_course(session, data.course_id)
    if not course:
        raise NotFoundError("Course not found or not approved!")
    if find_duplicate(session, user.id, course.id):
        raise BadRequestError("Course already in wishlist!")

    with transaction(session):
        item = create_wishlist_item(session, user.id, course.id)

    return ok("Added to wishlist successfully", WishlistOut.model_validate(item))


def get_my_wishlist(
    session: Session,
    user_id: str,
    query: Optional[Mapping[str, Any]] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, WISHLIST_LISTING, pagination)
    page = list_wishlist(session, filters, options, user_id=user_id)
    return paged("Wishlist retrieved successfully", page, WishlistOut)


def remove_from_wishlist(session: Session, user_id: str, item_id: str) -> ApiResponse:
    item = find_wishlist_item(session, item_id)
    if not item:
        raise NotFoundError("Wishlist item not found!")
    if item.user_id != user_id:
        raise ForbiddenError("You can only remove your own wishlist items")

    snapshot = WishlistOut.model_validate(item)
    with transaction(session):
        delete_wishlist_item(session, item)

    return ok("Removed from wishlist successfully", snapshot)
