"""Subscriptions API: purchase, activation and listings.

A subscription starts pending/unpaid with ``expired_at = now + billing cycle``.
Activation (payment confirmed) restarts the period from the activation time
and carries over the days left on the user's previous paid subscription,
which is retired in the same transaction.
"""

from datetime import timedelta
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..constants import (
    ALLOWED_SUBSCRIPTION_TYPES,
    BILLING_CYCLE_DAYS,
    PAYMENT_PAID,
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_EXPIRED,
    USER_BLOCKED,
)
from ..database.sqlite_client import transaction
from ..database.subscription_repo import (
    PACKAGE_LISTING,
    SUBSCRIPTION_LISTING,
    create_subscription as insert_subscription,
    find_other_paid_subscription,
    find_package,
    find_subscription,
    find_unpaid_subscription,
    list_packages,
    list_subscriptions,
)
from ..database.user_repo import find_user_by_id
from ..errors import BadRequestError, ForbiddenError, NotFoundError
from ..utils.id_generator import new_transaction_id
from ..utils.logging import get_logger
from ..utils.time import days_between, utc_now
from .handlers import listing_params, ok, paged, parse_payload
from .models import ApiResponse, PackageOut, SubscriptionCreate, SubscriptionOut

logger = get_logger(__name__)


def billing_days(billing_cycle: str) -> int:
    try:
        return BILLING_CYCLE_DAYS[billing_cycle]
    except KeyError:
        raise BadRequestError("Invalid billing cycle!") from None


def create_subscription(session: Session, user_id: str, payload: Any) -> ApiResponse:
    """
    Start a pending subscription for a package.

    An existing unpaid subscription for the same user and package is returned
    instead of creating a second one.
    """
    data = parse_payload(SubscriptionCreate, payload)
    if data.type not in ALLOWED_SUBSCRIPTION_TYPES:
        raise BadRequestError(f"Invalid subscription type: {data.type}")

    user = find_user_by_id(session, user_id)
    if not user:
        raise NotFoundError("User not found!")
    if user.is_deleted:
        raise ForbiddenError("Your account is deleted!")
    if user.status == USER_BLOCKED:
        raise ForbiddenError("Your account is blocked!")

    package = find_package(session, data.package_id)
    if not package:
        raise NotFoundError("Package not found!")

    existing = find_unpaid_subscription(session, user.id, package.id)
    if existing:
        return ok("Pending subscription already exists", SubscriptionOut.model_validate(existing))

    days = billing_days(package.billing_cycle)
    with transaction(session):
        subscription = insert_subscription(session, user.id, package.id, data.type)
        subscription.expired_at = utc_now() + timedelta(days=days)

    return ok("Subscription created successfully", SubscriptionOut.model_validate(subscription))


def activate_subscription(
    session: Session,
    subscription_id: str,
    transaction_id: Optional[str] = None,
) -> ApiResponse:
    """
    Mark a subscription paid and active.

    Args:
        session: SQLAlchemy session
        subscription_id: Pending subscription to activate
        transaction_id: Payment reference; generated when absent

    Raises:
        NotFoundError: Subscription missing
        BadRequestError: Subscription already paid
    """
    subscription = find_subscription(session, subscription_id)
    if not subscription:
        raise NotFoundError("Subscription not found!")
    if subscription.payment_status == PAYMENT_PAID:
        raise BadRequestError("Subscription is already paid!")

    now = utc_now()
    days = billing_days(subscription.package.billing_cycle)
    previous = find_other_paid_subscription(session, subscription.user_id, subscription.id)
    carried_days = 0
    if previous is not None and previous.expired_at is not None:
        carried_days = days_between(previous.expired_at, now)

    with transaction(session):
        if previous is not None:
            previous.is_expired = True
            previous.status = SUBSCRIPTION_EXPIRED
            previous.is_deleted = True
        subscription.status = SUBSCRIPTION_ACTIVE
        subscription.payment_status = PAYMENT_PAID
        subscription.is_expired = False
        subscription.expiry_warned = False
        subscription.transaction_id = transaction_id or new_transaction_id()
        subscription.expired_at = now + timedelta(days=days + carried_days)

    logger.info(
        f"Subscription {subscription.id} activated for user {subscription.user_id} "
        f"(carried over {carried_days} days)"
    )
    return ok("Subscription activated successfully", SubscriptionOut.model_validate(subscription))


def get_subscription(session: Session, subscription_id: str) -> ApiResponse:
    subscription = find_subscription(session, subscription_id)
    if not subscription:
        raise NotFoundError("Subscription not found!")
    return ok("Subscription retrieved successfully", SubscriptionOut.model_validate(subscription))


def get_subscriptions(
    session: Session,
    query: Optional[Mapping[str, Any]] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, SUBSCRIPTION_LISTING, pagination)
    page = list_subscriptions(session, filters, options)
    return paged("Subscriptions retrieved successfully", page, SubscriptionOut)


def get_my_subscriptions(
    session: Session,
    user_id: str,
    query: Optional[Mapping[str, Any]] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, SUBSCRIPTION_LISTING, pagination)
    page = list_subscriptions(session, filters, options, user_id=user_id)
    return paged("My subscriptions retrieved successfully", page, SubscriptionOut)


def get_packages(
    session: Session,
    query: Optional[Mapping[str, Any]] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, PACKAGE_LISTING, pagination)
    page = list_packages(session, filters, options)
    return paged("Packages retrieved successfully", page, PackageOut)
