"""Periodic maintenance jobs.

Each job takes a session (plus an optional ``now`` for deterministic runs),
commits its own writes and returns a small summary. Jobs read and then write
without coordinating with concurrent requests.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from ..config.loader import get_setting
from ..constants import NOTIFY_SUBSCRIPTION, SUBSCRIPTION_EXPIRED
from ..database.code_repo import CODE_MODELS, delete_stale_codes
from ..database.course_repo import soft_delete_unpublished_before
from ..database.notification_repo import create_notification
from ..database.sqlite_client import transaction
from ..database.subscription_repo import list_due_for_expiry, list_expiring_between
from ..database.user_repo import delete_user, list_expired_unverified_users
from ..utils.logging import get_logger
from ..utils.time import to_utc_z, utc_now

logger = get_logger(__name__)

DEFAULT_WARNING_HOURS = 24
DEFAULT_UNPUBLISHED_MAX_AGE_HOURS = 12


@dataclass
class JobResult:
    job: str
    affected: int
    details: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _package_title(subscription) -> str:
    return subscription.package.title if subscription.package else "subscription"


def expire_subscriptions(
    session: Session,
    now: Optional[datetime] = None,
    warning_hours: int = DEFAULT_WARNING_HOURS,
) -> JobResult:
    """
    Expire overdue subscriptions and warn about ones ending soon.

    Overdue (``expired_at <= now``) subscriptions become ``is_expired`` with
    status ``expired`` and the user gets an EXPIRED notification. Active
    subscriptions ending within ``warning_hours`` get a single WARNING
    notification (tracked by ``expiry_warned``).
    """
    now = now or utc_now()
    due = list_due_for_expiry(session, now)
    expiring = list_expiring_between(session, now, now + timedelta(hours=warning_hours))

    with transaction(session):
        for subscription in due:
            subscription.is_expired = True
            subscription.status = SUBSCRIPTION_EXPIRED
            create_notification(
                session,
                receiver_id=subscription.user_id,
                message="EXPIRED: your subscription has expired",
                description=f"Your {_package_title(subscription)} plan expired at {to_utc_z(subscription.expired_at)}.",
                mode_type=NOTIFY_SUBSCRIPTION,
            )
        for subscription in expiring:
            subscription.expiry_warned = True
            create_notification(
                session,
                receiver_id=subscription.user_id,
                message="WARNING: your subscription expires soon",
                description=f"Your {_package_title(subscription)} plan expires at {to_utc_z(subscription.expired_at)}.",
                mode_type=NOTIFY_SUBSCRIPTION,
            )

    if due or expiring:
        logger.info(f"Subscription sweep: expired={len(due)} warned={len(expiring)}")
    return JobResult(
        job="expire_subscriptions",
        affected=len(due),
        details={"expired": len(due), "warned": len(expiring)},
    )


def cleanup_expired_users(session: Session, now: Optional[datetime] = None) -> JobResult:
    """Hard-delete unverified users whose verification window has closed."""
    now = now or utc_now()
    users = list_expired_unverified_users(session, now)
    with transaction(session):
        for user in users:
            delete_user(session, user)

    if users:
        logger.info(f"Removed {len(users)} expired unverified users")
    return JobResult(job="cleanup_expired_users", affected=len(users), details={"deleted": len(users)})


def cleanup_unpublished_courses(
    session: Session,
    now: Optional[datetime] = None,
    max_age_hours: int = DEFAULT_UNPUBLISHED_MAX_AGE_HOURS,
) -> JobResult:
    """Soft-delete courses left unpublished for longer than ``max_age_hours``."""
    now = now or utc_now()
    with transaction(session):
        count = soft_delete_unpublished_before(session, now - timedelta(hours=max_age_hours))

    if count:
        logger.info(f"Soft-deleted {count} stale unpublished courses")
    return JobResult(job="cleanup_unpublished_courses", affected=count, details={"soft_deleted": count})


def cleanup_codes(session: Session, now: Optional[datetime] = None) -> JobResult:
    """Delete promo codes and coupons that are inactive or past their expiry."""
    now = now or utc_now()
    details: Dict[str, int] = {}
    with transaction(session):
        for kind, model in CODE_MODELS.items():
            details[kind] = delete_stale_codes(session, model, now)

    total = sum(details.values())
    if total:
        logger.info(f"Deleted stale codes: {details}")
    return JobResult(job="cleanup_codes", affected=total, details=details)


def _job_kwargs(name: str, config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    config = config or {}
    if name == "expire_subscriptions":
        return {"warning_hours": get_setting(config, "scheduler.expiry_warning_hours", DEFAULT_WARNING_HOURS)}
    if name == "cleanup_unpublished_courses":
        return {
            "max_age_hours": get_setting(
                config, "scheduler.unpublished_course_max_age_hours", DEFAULT_UNPUBLISHED_MAX_AGE_HOURS
            )
        }
    return {}


MAINTENANCE_JOBS: Dict[str, Callable[..., JobResult]] = {
    "expire_subscriptions": expire_subscriptions,
    "cleanup_expired_users": cleanup_expired_users,
    "cleanup_unpublished_courses": cleanup_unpublished_courses,
    "cleanup_codes": cleanup_codes,
}


def run_job(
    name: str,
    session: Session,
    config: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> JobResult:
    """
    Run one maintenance job by name with its settings taken from ``config``.

    Raises:
        KeyError: Unknown job name
    """
    if name not in MAINTENANCE_JOBS:
        raise KeyError(f"Unknown maintenance job: {name}")
    return MAINTENANCE_JOBS[name](session, now=now, **_job_kwargs(name, config))
