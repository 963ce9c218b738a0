"""Tests for maintenance jobs."""

from datetime import datetime, timedelta

import pytest

from ensinor.constants import COURSE_PENDING, PAYMENT_PAID, SUBSCRIPTION_ACTIVE, SUBSCRIPTION_EXPIRED
from ensinor.database.code_repo import create_code
from ensinor.database.schema import Coupon, Course, Notification, PromoCode, Subscription, User
from ensinor.database.subscription_repo import create_subscription
from ensinor.ops.maintenance import (
    cleanup_codes,
    cleanup_expired_users,
    cleanup_unpublished_courses,
    expire_subscriptions,
    run_job,
)

NOW = datetime(2025, 6, 1, 8, 0, 0)


@pytest.fixture
def make_subscription(session, monthly_package):
    def _make(user, expired_at, status=SUBSCRIPTION_ACTIVE):
        subscription = create_subscription(session, user.id, monthly_package.id, "basic")
        subscription.status = status
        subscription.payment_status = PAYMENT_PAID
        subscription.expired_at = expired_at
        session.commit()
        return subscription

    return _make


def test_expire_subscriptions_expires_and_warns(session, student, make_subscription):
    overdue = make_subscription(student, NOW - timedelta(hours=1))
    ending = make_subscription(student, NOW + timedelta(hours=2))
    later = make_subscription(student, NOW + timedelta(days=3))

    result = expire_subscriptions(session, now=NOW)

    assert result.details == {"expired": 1, "warned": 1}
    assert result.affected == 1

    overdue_row = session.get(Subscription, overdue.id)
    assert overdue_row.is_expired is True
    assert overdue_row.status == SUBSCRIPTION_EXPIRED
    assert session.get(Subscription, ending.id).expiry_warned is True
    assert session.get(Subscription, later.id).expiry_warned is False

    messages = sorted(row.message for row in session.query(Notification).all())
    assert messages == ["EXPIRED: your subscription has expired", "WARNING: your subscription expires soon"]
    assert all(row.receiver_id == student.id for row in session.query(Notification).all())


def test_expire_subscriptions_does_not_repeat(session, student, make_subscription):
    make_subscription(student, NOW - timedelta(hours=1))
    make_subscription(student, NOW + timedelta(hours=2))

    expire_subscriptions(session, now=NOW)
    again = expire_subscriptions(session, now=NOW)

    assert again.details == {"expired": 0, "warned": 0}
    assert session.query(Notification).count() == 2


def test_cleanup_expired_users(session, make_user):
    stale = make_user(is_verified=False, expire_at=NOW - timedelta(minutes=5))
    verified = make_user(is_verified=True, expire_at=NOW - timedelta(minutes=5))
    waiting = make_user(is_verified=False, expire_at=NOW + timedelta(hours=1))
    stale_id = stale.id

    result = cleanup_expired_users(session, now=NOW)

    assert result.details == {"deleted": 1}
    assert session.get(User, stale_id) is None
    assert session.get(User, verified.id) is not None
    assert session.get(User, waiting.id) is not None


def test_cleanup_unpublished_courses(session, make_course):
    old_draft = make_course(is_published=False, created_at=NOW - timedelta(hours=13))
    new_draft = make_course(is_published=False, created_at=NOW - timedelta(hours=1))
    old_live = make_course(is_published=True, created_at=NOW - timedelta(days=3))
    pending = make_course(is_published=False, status=COURSE_PENDING, created_at=NOW - timedelta(hours=12))

    result = cleanup_unpublished_courses(session, now=NOW, max_age_hours=12)
    session.expire_all()

    assert result.details == {"soft_deleted": 2}
    assert session.get(Course, old_draft.id).is_deleted is True
    assert session.get(Course, pending.id).is_deleted is True
    assert session.get(Course, new_draft.id).is_deleted is False
    assert session.get(Course, old_live.id).is_deleted is False


def test_cleanup_codes(session, make_course, instructor):
    course = make_course()
    create_code(session, PromoCode, author_id=instructor.id, course_id=course.id, code="OLD",
                discount=5, expire_at=NOW - timedelta(days=1))
    create_code(session, PromoCode, author_id=instructor.id, course_id=course.id, code="FRESH",
                discount=5, expire_at=NOW + timedelta(days=1))
    off = create_code(session, Coupon, author_id=instructor.id, course_id=course.id, code="OFF",
                      discount=5, expire_at=NOW + timedelta(days=1))
    off.is_active = False
    session.commit()

    result = cleanup_codes(session, now=NOW)
    session.expire_all()

    assert result.details == {"promo": 1, "coupon": 1}
    assert result.affected == 2
    assert [row.code for row in session.query(PromoCode).all()] == ["FRESH"]
    assert session.query(Coupon).count() == 0


def test_run_job_reads_settings_from_config(session, student, make_subscription):
    make_subscription(student, NOW + timedelta(days=2))
    config = {"scheduler": {"expiry_warning_hours": 72}}

    result = run_job("expire_subscriptions", session, config, now=NOW)

    assert result.details == {"expired": 0, "warned": 1}


def test_run_job_unknown_name(session):
    with pytest.raises(KeyError):
        run_job("reindex_everything", session)


def test_job_result_to_dict(session):
    result = cleanup_codes(session, now=NOW)
    assert result.to_dict() == {"job": "cleanup_codes", "affected": 0, "details": {"promo": 0, "coupon": 0}}
