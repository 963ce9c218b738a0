"""Repository functions for in-app notifications (hard-deleted)."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..constants import ALLOWED_NOTIFICATION_MODES
from ..query.fetch import Page, paginate
from ..query.pagination import PaginationOptions
from ..query.predicates import ListingSpec
from ..utils.id_generator import new_id
from .schema import Notification

NOTIFICATION_LISTING = ListingSpec(
    model=Notification,
    searchable=("message", "description"),
    filters={"mode_type": "mode_type", "is_read": "is_read"},
    choices={"mode_type": ALLOWED_NOTIFICATION_MODES},
    soft_delete=False,
)


def create_notification(
    session: Session,
    receiver_id: str,
    message: str,
    description: Optional[str],
    mode_type: str,
) -> Notification:
    row = Notification(
        id=new_id(),
        receiver_id=receiver_id,
        message=message,
        description=description,
        mode_type=mode_type,
        is_read=False,
    )
    session.add(row)
    return row


def find_notification(session: Session, notification_id: str) -> Optional[Notification]:
    return session.query(Notification).filter(Notification.id == notification_id).first()


def list_notifications(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    receiver_id: Optional[str] = None,
) -> Page:
    scope = [Notification.receiver_id == receiver_id] if receiver_id else []
    return paginate(session, NOTIFICATION_LISTING, filters, options, scope=scope)


def mark_read(session: Session, notification: Notification) -> None:
    notification.is_read = True
    session.add(notification)


def delete_notification(session: Session, notification: Notification) -> None:
    session.delete(notification)
