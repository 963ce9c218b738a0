"""Tests for promo codes and coupons."""

from datetime import datetime, timedelta, timezone

import pytest

from ensinor.api import codes_api
from ensinor.constants import CODE_MODEL_COURSE, CODE_MODEL_GLOBAL
from ensinor.database.code_repo import KIND_COUPON, KIND_PROMO, create_code
from ensinor.database.schema import Coupon, PromoCode
from ensinor.errors import BadRequestError, ForbiddenError, NotFoundError
from ensinor.utils.time import utc_now


def _payload(code, course=None, discount=10, **extra):
    payload = {"code": code, "discount": discount, "expire_at": utc_now() + timedelta(days=7)}
    if course is not None:
        payload["course_id"] = course.id
    payload.update(extra)
    return payload


# --- Creation ----------------------------------------------------------------


def test_instructor_creates_course_promo_code(session, make_course, instructor):
    course = make_course()

    result = codes_api.create_promo_code(session, instructor.id, _payload("SAVE10", course))

    assert result.message == "Promo code created successfully"
    assert result.data.model_type == CODE_MODEL_COURSE
    assert result.data.course_id == course.id
    assert session.query(PromoCode).one().is_global is False


def test_super_admin_creates_global_promo_code(session, admin):
    result = codes_api.create_promo_code(session, admin.id, _payload("EVERYONE"))

    assert result.data.model_type == CODE_MODEL_GLOBAL
    assert result.data.course_id is None
    assert session.query(PromoCode).one().is_global is True


def test_global_code_cannot_name_a_course(session, admin, make_course):
    course = make_course()

    with pytest.raises(BadRequestError, match="cannot be linked to a course"):
        codes_api.create_coupon(session, admin.id, _payload("GLOBAL", course))


def test_course_code_requires_course(session, instructor):
    with pytest.raises(BadRequestError, match="Course ID is required"):
        codes_api.create_coupon(session, instructor.id, _payload("NOCOURSE"))


def test_unknown_course_is_not_found(session, instructor):
    payload = _payload("GHOST", course_id="missing-course")
    with pytest.raises(NotFoundError, match="Course not found!"):
        codes_api.create_coupon(session, instructor.id, payload)


def test_expiry_must_be_in_the_future(session, make_course, instructor):
    course = make_course()
    payload = _payload("LATE", course, expire_at=utc_now() - timedelta(minutes=1))

    with pytest.raises(BadRequestError, match="expiration must be in the future"):
        codes_api.create_promo_code(session, instructor.id, payload)


def test_aware_expiry_is_accepted(session, make_course, instructor):
    course = make_course()
    expire_at = datetime.now(timezone(timedelta(hours=5))) + timedelta(days=1)

    result = codes_api.create_coupon(session, instructor.id, _payload("AWARE", course, expire_at=expire_at))

    assert result.data.expire_at.tzinfo is None


def test_duplicate_code_rejected(session, make_course, instructor):
    codes_api.create_promo_code(session, instructor.id, _payload("DUP", make_course()))
    other_course = make_course()

    with pytest.raises(BadRequestError, match="code already exists"):
        codes_api.create_promo_code(session, instructor.id, _payload("DUP", other_course))


def test_promo_code_blocked_by_active_coupon(session, make_course, instructor):
    course = make_course()
    codes_api.create_coupon(session, instructor.id, _payload("HALF", course))

    with pytest.raises(BadRequestError) as excinfo:
        codes_api.create_promo_code(session, instructor.id, _payload("PROMO", course))

    assert excinfo.value.message == "A coupon already exists for this course! Cannot create promo code."


def test_coupon_blocked_by_active_promo_code(session, make_course, instructor):
    course = make_course()
    codes_api.create_promo_code(session, instructor.id, _payload("PROMO", course))

    with pytest.raises(BadRequestError, match="promo code already exists for this course"):
        codes_api.create_coupon(session, instructor.id, _payload("HALF", course))


def test_one_active_code_per_author_and_course(session, make_course, instructor):
    course = make_course()
    codes_api.create_coupon(session, instructor.id, _payload("FIRST", course))

    with pytest.raises(BadRequestError, match="active coupon already exists"):
        codes_api.create_coupon(session, instructor.id, _payload("SECOND", course))


def test_payload_discount_bounds(session, make_course, instructor):
    from pydantic import ValidationError

    with pytest.raises(ValidationError):
        codes_api.create_coupon(session, instructor.id, _payload("BIG", make_course(), discount=150))


# --- Listing and deletion ----------------------------------------------------


def test_list_and_soft_delete(session, make_course, instructor, make_user):
    course = make_course()
    created = codes_api.create_coupon(session, instructor.id, _payload("BYE", course)).data

    assert codes_api.get_codes(session, KIND_COUPON, {"searchTerm": "by"}).meta.total == 1

    with pytest.raises(ForbiddenError):
        codes_api.delete_code(session, KIND_COUPON, make_user().id, created.id)

    result = codes_api.delete_code(session, KIND_COUPON, instructor.id, created.id)

    assert result.data.is_active is False
    assert codes_api.get_codes(session, KIND_COUPON).meta.total == 0
    assert session.get(Coupon, created.id).is_deleted is True


def test_unknown_kind_is_bad_request(session):
    with pytest.raises(BadRequestError, match="Unknown code kind"):
        codes_api.get_codes(session, "voucher")


# --- Redemption --------------------------------------------------------------


def test_split_revenue_promo_and_coupon():
    assert codes_api.split_revenue(90.0, KIND_PROMO) == (87.3, 2.7, 0.0)
    assert codes_api.split_revenue(90.0, KIND_COUPON) == (45.0, 45.0, 0.0)


def test_split_revenue_with_affiliate():
    assert codes_api.split_revenue(90.0, KIND_PROMO, with_affiliate=True) == (36.0, 36.0, 18.0)


def test_redeem_promo_code(session, make_course, instructor):
    course = make_course()
    codes_api.create_promo_code(session, instructor.id, _payload("TEN", course, max_usage=2))

    result = codes_api.redeem_code(
        session, KIND_PROMO, {"code": "TEN", "base_price": 100, "course_id": course.id}
    )

    redemption = result.data
    assert redemption.discount == 10.0
    assert redemption.final_price == 90.0
    assert redemption.instructor_earning == 87.3
    assert redemption.platform_earning == 2.7
    assert redemption.affiliate_earning == 0.0
    assert redemption.transaction_id.startswith("TXN-")
    assert session.query(PromoCode).one().used_count == 1


def test_redeem_coupon_with_affiliate(session, make_course, instructor, student):
    course = make_course()
    codes_api.create_coupon(session, instructor.id, _payload("AFF", course))

    redemption = codes_api.redeem_code(
        session, KIND_COUPON, {"code": "AFF", "base_price": 100, "affiliate_id": student.id}
    ).data

    assert (redemption.instructor_earning, redemption.platform_earning, redemption.affiliate_earning) == (
        36.0,
        36.0,
        18.0,
    )


def test_redeem_stops_at_usage_limit(session, make_course, instructor):
    course = make_course()
    codes_api.create_coupon(session, instructor.id, _payload("ONCE", course, max_usage=1))
    codes_api.redeem_code(session, KIND_COUPON, {"code": "ONCE", "base_price": 10})

    with pytest.raises(BadRequestError, match="usage limit reached"):
        codes_api.redeem_code(session, KIND_COUPON, {"code": "ONCE", "base_price": 10})


def test_redeem_rejects_other_course(session, make_course, instructor):
    course = make_course()
    codes_api.create_coupon(session, instructor.id, _payload("MINE", course))

    with pytest.raises(BadRequestError, match="not valid for this course"):
        codes_api.redeem_code(
            session, KIND_COUPON, {"code": "MINE", "base_price": 10, "course_id": make_course().id}
        )


def test_redeem_expired_code_is_not_found(session, make_course, instructor):
    course = make_course()
    create_code(
        session,
        PromoCode,
        author_id=instructor.id,
        course_id=course.id,
        code="OLD",
        discount=5,
        expire_at=utc_now() - timedelta(days=1),
    )
    session.commit()

    with pytest.raises(NotFoundError, match="Invalid or expired promo code!"):
        codes_api.redeem_code(session, KIND_PROMO, {"code": "OLD", "base_price": 10})


def test_redeem_unknown_affiliate(session, make_course, instructor):
    codes_api.create_coupon(session, instructor.id, _payload("X", make_course()))

    with pytest.raises(NotFoundError, match="Affiliate not found!"):
        codes_api.redeem_code(session, KIND_COUPON, {"code": "X", "base_price": 10, "affiliate_id": "nobody"})
