"""Repository functions for users."""

from datetime import datetime
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..constants import ALLOWED_ROLES, ALLOWED_USER_STATUSES, USER_ACTIVE
from ..query.fetch import Page, paginate
from ..query.pagination import PaginationOptions
from ..query.predicates import ListingSpec
from ..utils.id_generator import new_id
from ..utils.logging import get_logger
from .schema import User

logger = get_logger(__name__)

USER_LISTING = ListingSpec(
    model=User,
    searchable=("name", "email"),
    filters={"role": "role", "status": "status", "email": "email"},
    sortable=("created_at", "name", "email", "points"),
    choices={"role": ALLOWED_ROLES, "status": ALLOWED_USER_STATUSES},
)


def create_user(
    session: Session,
    *,
    name: str,
    email: str,
    role: str = "student",
    status: str = USER_ACTIVE,
    is_verified: bool = True,
    expire_at: Optional[datetime] = None,
    points: int = 0,
) -> User:
    row = User(
        id=new_id(),
        name=name,
        email=email,
        role=role,
        status=status,
        is_verified=is_verified,
        expire_at=expire_at,
        points=points,
        courses=0,
        is_deleted=False,
    )
    session.add(row)
    session.flush()
    logger.debug(f"Created user {row.id} ({role})")
    return row


def find_user_by_id(session: Session, user_id: str) -> Optional[User]:
    return session.query(User).filter(User.id == user_id).first()


def find_active_user(session: Session, user_id: str) -> Optional[User]:
    """Find a user that exists, is active and is not soft-deleted."""
    return (
        session.query(User)
        .filter(
            User.id == user_id,
            User.status == USER_ACTIVE,
            User.is_deleted.is_(False),
        )
        .first()
    )


def list_users(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    role: Optional[str] = None,
    active_only: bool = False,
) -> Page:
    """
    List users with search/filter/pagination.

    Args:
        session: SQLAlchemy session
        filters: searchTerm plus declared filters
        options: Pagination options
        role: Restrict to one role (scope)
        active_only: Restrict to active users (scope)

    Returns:
        Page of User rows
    """
    scope = []
    if role:
        scope.append(User.role == role)
    if active_only:
        scope.append(User.status == USER_ACTIVE)
    return paginate(session, USER_LISTING, filters, options, scope=scope)


def list_expired_unverified_users(session: Session, now: datetime) -> List[User]:
    """Unverified signups whose verification window has closed."""
    return (
        session.query(User)
        .filter(
            User.expire_at.isnot(None),
            User.expire_at <= now,
            User.is_verified.is_(False),
        )
        .all()
    )


def delete_user(session: Session, user: User) -> None:
    session.delete(user)
