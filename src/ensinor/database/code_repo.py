"""Repository functions shared by promo codes and coupons.

Both tables have the same shape, so every function takes the model class.
"""

from datetime import datetime
from typing import Any, Mapping, Optional, Type, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..constants import ALLOWED_CODE_MODELS
from ..query.fetch import Page, paginate
from ..query.pagination import PaginationOptions
from ..query.predicates import ListingSpec
from ..utils.id_generator import new_id
from .schema import Coupon, PromoCode

CodeModel = Union[Type[PromoCode], Type[Coupon]]

KIND_PROMO = "promo"
KIND_COUPON = "coupon"
CODE_MODELS = {KIND_PROMO: PromoCode, KIND_COUPON: Coupon}

_CODE_FILTERS = {
    "code": "code",
    "discount": "discount",
    "model_type": "model_type",
}

_CODE_CHOICES = {"model_type": ALLOWED_CODE_MODELS}

PROMO_CODE_LISTING = ListingSpec(
    model=PromoCode,
    searchable=("code",),
    filters=_CODE_FILTERS,
    sortable=("created_at", "code", "discount", "expire_at"),
    choices=_CODE_CHOICES,
)

COUPON_LISTING = ListingSpec(
    model=Coupon,
    searchable=("code",),
    filters=_CODE_FILTERS,
    sortable=("created_at", "code", "discount", "expire_at"),
    choices=_CODE_CHOICES,
)


def listing_for(model: CodeModel) -> ListingSpec:
    return PROMO_CODE_LISTING if model is PromoCode else COUPON_LISTING


def create_code(session: Session, model: CodeModel, **fields: Any):
    row = model(id=new_id(), used_count=0, is_active=True, is_deleted=False, **fields)
    session.add(row)
    session.flush()
    return row


def find_code_by_id(session: Session, model: CodeModel, code_id: str):
    return (
        session.query(model)
        .filter(model.id == code_id, model.is_deleted.is_(False))
        .first()
    )


def find_code(session: Session, model: CodeModel, code: str):
    """Find by code string regardless of state (codes are unique per table)."""
    return session.query(model).filter(model.code == code).first()


def find_active_code_for_course(session: Session, model: CodeModel, course_id: str, author_id: Optional[str] = None):
    query = session.query(model).filter(
        model.course_id == course_id,
        model.is_active.is_(True),
        model.is_deleted.is_(False),
    )
    if author_id:
        query = query.filter(model.author_id == author_id)
    return query.first()


def find_redeemable_code(session: Session, model: CodeModel, code: str, now: datetime):
    """Active, non-deleted code whose expiry is not in the past."""
    return (
        session.query(model)
        .filter(
            model.code == code,
            model.is_active.is_(True),
            model.is_deleted.is_(False),
            model.expire_at >= now,
        )
        .first()
    )


def increment_usage(session: Session, row) -> None:
    row.used_count = (row.used_count or 0) + 1
    session.add(row)


def list_codes(
    session: Session,
    model: CodeModel,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    author_id: Optional[str] = None,
    course_id: Optional[str] = None,
) -> Page:
    scope = []
    if author_id:
        scope.append(model.author_id == author_id)
    if course_id:
        scope.append(model.course_id == course_id)
    return paginate(session, listing_for(model), filters, options, scope=scope)


def soft_delete_code(session: Session, row) -> None:
    row.is_deleted = True
    row.is_active = False
    session.add(row)


def delete_stale_codes(session: Session, model: CodeModel, now: datetime) -> int:
    """Hard-delete codes that are inactive or already expired."""
    count = (
        session.query(model)
        .filter(or_(model.is_active.is_(False), model.expire_at < now))
        .delete(synchronize_session=False)
    )
    return count or 0
