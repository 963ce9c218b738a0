"""Repository functions for packages and subscriptions."""

from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session, selectinload

from ..constants import (
    ALLOWED_PAYMENT_STATUSES,
    ALLOWED_SUBSCRIPTION_STATUSES,
    ALLOWED_SUBSCRIPTION_TYPES,
    PAYMENT_PAID,
    PAYMENT_UNPAID,
    SUBSCRIPTION_ACTIVE,
    SUBSCRIPTION_PENDING,
)
from ..query.fetch import Page, paginate
from ..query.pagination import PaginationOptions
from ..query.predicates import ListingSpec
from ..utils.id_generator import new_id
from ..utils.logging import get_logger
from .schema import Package, Subscription

logger = get_logger(__name__)

PACKAGE_LISTING = ListingSpec(
    model=Package,
    searchable=("title",),
    filters={"billing_cycle": "billing_cycle"},
    sortable=("created_at", "title", "price"),
)

SUBSCRIPTION_LISTING = ListingSpec(
    model=Subscription,
    filters={
        "type": "type",
        "status": "status",
        "payment_status": "payment_status",
        "is_expired": "is_expired",
    },
    sortable=("created_at", "expired_at"),
    choices={
        "type": ALLOWED_SUBSCRIPTION_TYPES,
        "status": ALLOWED_SUBSCRIPTION_STATUSES,
        "payment_status": ALLOWED_PAYMENT_STATUSES,
    },
)


def create_package(session: Session, title: str, billing_cycle: str, price: float) -> Package:
    row = Package(id=new_id(), title=title, billing_cycle=billing_cycle, price=price, is_deleted=False)
    session.add(row)
    session.flush()
    return row


def find_package(session: Session, package_id: str) -> Optional[Package]:
    return (
        session.query(Package)
        .filter(Package.id == package_id, Package.is_deleted.is_(False))
        .first()
    )


def list_packages(session: Session, filters: Mapping[str, Any], options: PaginationOptions) -> Page:
    return paginate(session, PACKAGE_LISTING, filters, options)


def create_subscription(session: Session, user_id: str, package_id: str, subscription_type: str) -> Subscription:
    row = Subscription(
        id=new_id(),
        user_id=user_id,
        package_id=package_id,
        type=subscription_type,
        status=SUBSCRIPTION_PENDING,
        payment_status=PAYMENT_UNPAID,
        is_expired=False,
        expiry_warned=False,
        is_deleted=False,
    )
    session.add(row)
    session.flush()
    logger.debug(f"Created subscription {row.id} for user {user_id}")
    return row


def find_subscription(session: Session, subscription_id: str) -> Optional[Subscription]:
    return (
        session.query(Subscription)
        .options(selectinload(Subscription.package))
        .filter(Subscription.id == subscription_id, Subscription.is_deleted.is_(False))
        .first()
    )


def find_unpaid_subscription(session: Session, user_id: str, package_id: str) -> Optional[Subscription]:
    return (
        session.query(Subscription)
        .filter(
            Subscription.user_id == user_id,
            Subscription.package_id == package_id,
            Subscription.status == SUBSCRIPTION_PENDING,
            Subscription.payment_status == PAYMENT_UNPAID,
            Subscription.is_expired.is_(False),
            Subscription.is_deleted.is_(False),
        )
        .first()
    )


def find_other_paid_subscription(session: Session, user_id: str, exclude_id: str) -> Optional[Subscription]:
    """A different, still-valid paid subscription for the same user."""
    return (
        session.query(Subscription)
        .filter(
            Subscription.user_id == user_id,
            Subscription.id != exclude_id,
            Subscription.is_expired.is_(False),
            Subscription.is_deleted.is_(False),
            Subscription.payment_status == PAYMENT_PAID,
        )
        .first()
    )


def list_due_for_expiry(session: Session, now: datetime) -> List[Subscription]:
    """Active subscriptions whose expiry time has passed."""
    return (
        session.query(Subscription)
        .options(selectinload(Subscription.package))
        .filter(
            Subscription.is_expired.is_(False),
            Subscription.is_deleted.is_(False),
            Subscription.expired_at.isnot(None),
            Subscription.expired_at <= now,
        )
        .all()
    )


def list_expiring_between(session: Session, start: datetime, end: datetime) -> List[Subscription]:
    """Active, not yet warned subscriptions expiring in (start, end]."""
    return (
        session.query(Subscription)
        .options(selectinload(Subscription.package))
        .filter(
            Subscription.status == SUBSCRIPTION_ACTIVE,
            Subscription.is_expired.is_(False),
            Subscription.is_deleted.is_(False),
            Subscription.expiry_warned.is_(False),
            Subscription.expired_at > start,
            Subscription.expired_at <= end,
        )
        .all()
    )


def list_subscriptions(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    user_id: Optional[str] = None,
) -> Page:
    scope = [Subscription.user_id == user_id] if user_id else []
    return paginate(
        session,
        SUBSCRIPTION_LISTING,
        filters,
        options,
        scope=scope,
        load_options=[selectinload(Subscription.package)],
    )
