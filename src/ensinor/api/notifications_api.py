"""Notifications API: a user's inbox."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..database.notification_repo import (
    NOTIFICATION_LISTING,
    delete_notification as remove_notification,
    find_notification,
    list_notifications,
    mark_read,
)
from ..database.sqlite_client import transaction
from ..errors import ForbiddenError, NotFoundError
from .handlers import listing_params, ok, paged
from .models import ApiResponse, NotificationOut


def _owned_notification(session: Session, user_id: str, notification_id: str):
    notification = find_notification(session, notification_id)
    if not notification:
        raise NotFoundError("Notification not found!")
    if notification.receiver_id != user_id:
        raise ForbiddenError("This notification belongs to another user")
    return notification


def get_my_notifications(
    session: Session,
    user_id: str,
    query: Optional[Mapping[str, Any]] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, NOTIFICATION_LISTING, pagination)
    page = list_notifications(session, filters, options, receiver_id=user_id)
    return paged("Notifications retrieved successfully", page, NotificationOut)


def mark_notification_read(session: Session, user_id: str, notification_id: str) -> ApiResponse:
    notification = _owned_notification(session, user_id, notification_id)
    with transaction(session):
        mark_read(session, notification)
    return ok("Notification marked as read", NotificationOut.model_validate(notification))


def delete_notification(session: Session, user_id: str, notification_id: str) -> ApiResponse:
    notification = _owned_notification(session, user_id, notification_id)
    snapshot = NotificationOut.model_validate(notification)
    with transaction(session):
        remove_notification(session, notification)
    return ok("Notification deleted successfully", snapshot)
