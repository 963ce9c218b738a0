"""Promo codes and coupons API: creation, listing, soft delete and redemption.

Promo codes and coupons share one table shape. A course can carry an active
promo code or an active coupon, never both. Revenue after discount is split
97/3 (promo) or 50/50 (coupon) between instructor and platform; with an
affiliate, the affiliate takes 20% first and the rest is split 50/50.
"""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..constants import (
    AFFILIATE_CUT,
    CODE_MODEL_COURSE,
    CODE_MODEL_GLOBAL,
    COUPON_SPLIT,
    PROMO_SPLIT,
    ROLE_SUPER_ADMIN,
)
from ..database.code_repo import (
    CODE_MODELS,
    KIND_COUPON,
    KIND_PROMO,
    create_code,
    find_active_code_for_course,
    find_code,
    find_code_by_id,
    find_redeemable_code,
    increment_usage,
    list_codes,
    listing_for,
    soft_delete_code,
)
from ..database.course_repo import find_course_by_id
from ..database.sqlite_client import transaction
from ..database.user_repo import find_active_user
from ..errors import BadRequestError, ForbiddenError, NotFoundError
from ..utils.id_generator import new_transaction_id
from ..utils.logging import get_logger
from ..utils.time import to_naive_utc, utc_now
from .handlers import listing_params, ok, paged, parse_payload
from .models import ApiResponse, CodeCreate, CodeOut, RedeemRequest, RedemptionOut

logger = get_logger(__name__)

_LABELS = {KIND_PROMO: "Promo code", KIND_COUPON: "Coupon"}
_SPLITS = {KIND_PROMO: PROMO_SPLIT, KIND_COUPON: COUPON_SPLIT}


def _model_for(kind: str):
    try:
        return CODE_MODELS[kind]
    except KeyError:
        raise BadRequestError(f"Unknown code kind: {kind}") from None


def _other_kind(kind: str) -> str:
    return KIND_COUPON if kind == KIND_PROMO else KIND_PROMO


def _create(session: Session, kind: str, author_id: str, payload: Any) -> ApiResponse:
    model = _model_for(kind)
    label = _LABELS[kind]
    data = parse_payload(CodeCreate, payload)

    author = find_active_user(session, author_id)
    if not author:
        raise NotFoundError("Author not found!")

    is_global = author.role == ROLE_SUPER_ADMIN
    if is_global and data.course_id:
        raise BadRequestError(f"Global {label.lower()} cannot be linked to a course!")

    expire_at = to_naive_utc(data.expire_at)
    if expire_at <= utc_now():
        raise BadRequestError(f"{label} expiration must be in the future!")

    if find_code(session, model, data.code):
        raise BadRequestError(f"{label} code already exists!")

    if not is_global:
        if not data.course_id:
            raise BadRequestError(f"Course ID is required for a course {label.lower()}!")
        if not find_course_by_id(session, data.course_id):
            raise NotFoundError("Course not found!")

        other_kind = _other_kind(kind)
        if find_active_code_for_course(session, CODE_MODELS[other_kind], data.course_id):
            raise BadRequestError(
                f"A {_LABELS[other_kind].lower()} already exists for this course! Cannot create {label.lower()}."
            )
        if find_active_code_for_course(session, model, data.course_id, author_id=author.id):
            raise BadRequestError(f"An active {label.lower()} already exists for this course!")

    fields = {
        "author_id": author.id,
        "course_id": None if is_global else data.course_id,
        "model_type": CODE_MODEL_GLOBAL if is_global else CODE_MODEL_COURSE,
        "code": data.code,
        "discount": data.discount,
        "max_usage": data.max_usage,
        "expire_at": expire_at,
    }
    if kind == KIND_PROMO:
        fields["is_global"] = is_global

    with transaction(session):
        row = create_code(session, model, **fields)

    logger.info(f"{label} {row.code} created by {author.id} ({fields['model_type']})")
    return ok(f"{label} created successfully", CodeOut.model_validate(row))


def create_promo_code(session: Session, author_id: str, payload: Any) -> ApiResponse:
    return _create(session, KIND_PROMO, author_id, payload)


def create_coupon(session: Session, author_id: str, payload: Any) -> ApiResponse:
    return _create(session, KIND_COUPON, author_id, payload)


def get_codes(
    session: Session,
    kind: str,
    query: Optional[Mapping[str, Any]] = None,
    author_id: Optional[str] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    model = _model_for(kind)
    filters, options = listing_params(query, listing_for(model), pagination)
    page = list_codes(session, model, filters, options, author_id=author_id)
    return paged(f"{_LABELS[kind]}s retrieved successfully", page, CodeOut)


def delete_code(session: Session, kind: str, author_id: str, code_id: str) -> ApiResponse:
    model = _model_for(kind)
    row = find_code_by_id(session, model, code_id)
    if not row:
        raise NotFoundError(f"{_LABELS[kind]} not found!")
    if row.author_id != author_id:
        raise ForbiddenError(f"You can only delete your own {_LABELS[kind].lower()}s")

    with transaction(session):
        soft_delete_code(session, row)

    return ok(f"{_LABELS[kind]} deleted successfully", CodeOut.model_validate(row))


def split_revenue(final_price: float, kind: str, with_affiliate: bool = False):
    """
    Split a post-discount amount.

    Returns:
        (instructor, platform, affiliate) amounts rounded to cents
    """
    affiliate = 0.0
    if with_affiliate:
        affiliate = final_price * AFFILIATE_CUT
        remaining = final_price - affiliate
        instructor, platform = remaining * 0.5, remaining * 0.5
    else:
        instructor_share, platform_share = _SPLITS[kind]
        instructor, platform = final_price * instructor_share, final_price * platform_share
    return round(instructor, 2), round(platform, 2), round(affiliate, 2)


def redeem_code(session: Session, kind: str, payload: Any) -> ApiResponse:
    """
    Apply a promo code or coupon to a price and record one use.

    Raises:
        NotFoundError: Code is unknown, inactive or expired; or the affiliate is unknown
        BadRequestError: Usage limit reached, or the code belongs to another course
    """
    model = _model_for(kind)
    label = _LABELS[kind]
    data = parse_payload(RedeemRequest, payload)

    row = find_redeemable_code(session, model, data.code, utc_now())
    if not row:
        raise NotFoundError(f"Invalid or expired {label.lower()}!")
    if row.max_usage is not None and (row.used_count or 0) >= row.max_usage:
        raise BadRequestError(f"{label} usage limit reached!")
    if row.course_id and data.course_id and row.course_id != data.course_id:
        raise BadRequestError(f"{label} is not valid for this course!")
    if data.affiliate_id and not find_active_user(session, data.affiliate_id):
        raise NotFoundError("Affiliate not found!")

    discount = data.base_price * row.discount / 100
    final_price = data.base_price - discount
    instructor, platform, affiliate = split_revenue(final_price, kind, with_affiliate=bool(data.affiliate_id))

    with transaction(session):
        increment_usage(session, row)

    redemption = RedemptionOut(
        code=row.code,
        kind=kind,
        base_price=round(data.base_price, 2),
        discount=round(discount, 2),
        final_price=round(final_price, 2),
        instructor_earning=instructor,
        platform_earning=platform,
        affiliate_earning=affiliate,
        transaction_id=new_transaction_id(),
    )
    logger.info(f"{label} {row.code} redeemed ({redemption.transaction_id})")
    return ok(f"{label} applied successfully", redemption)
