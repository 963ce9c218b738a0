"""Repository functions for wishlists (hard-deleted)."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session, selectinload

from ..query.fetch import Page, paginate
from ..query.pagination import PaginationOptions
from ..query.predicates import ListingSpec
from ..utils.id_generator import new_id
from .schema import Wishlist

WISHLIST_LISTING = ListingSpec(
    model=Wishlist,
    filters={"course_id": "course_id"},
    soft_delete=False,
)


def create_wishlist_item(session: Session, user_id: str, course_id: str) -> Wishlist:
    row = Wishlist(id=new_id(), user_id=user_id, course_id=course_id)
    session.add(row)
    session.flush()
    return row


def find_wishlist_item(session: Session, item_id: str) -> Optional[Wishlist]:
    return session.query(Wishlist).filter(Wishlist.id == item_id).first()


def find_duplicate(session: Session, user_id: str, course_id: str) -> Optional[Wishlist]:
    return (
        session.query(Wishlist)
        .filter(Wishlist.user_id == user_id, Wishlist.course_id == course_id)
        .first()
    )


def list_wishlist(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    user_id: Optional[str] = None,
) -> Page:
    scope = [Wishlist.user_id == user_id] if user_id else []
    return paginate(
        session,
        WISHLIST_LISTING,
        filters,
        options,
        scope=scope,
        load_options=[selectinload(Wishlist.course)],
    )


def delete_wishlist_item(session: Session, item: Wishlist) -> None:
    session.delete(item)
