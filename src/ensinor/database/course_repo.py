"""Repository functions for courses and assignments."""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session, selectinload

from ..constants import ALLOWED_COURSE_LEVELS, ALLOWED_COURSE_STATUSES, ALLOWED_COURSE_TYPES, COURSE_APPROVED
from ..query.fetch import Page, paginate
from ..query.pagination import PaginationOptions
from ..query.predicates import ListingSpec
from ..utils.id_generator import new_id
from ..utils.logging import get_logger
from .schema import Assignment, Course

logger = get_logger(__name__)

COURSE_LISTING = ListingSpec(
    model=Course,
    searchable=("title",),
    filters={
        "title": "title",
        "type": "type",
        "category": "category",
        "level": "level",
        "language": "language",
        "status": "status",
    },
    sortable=("created_at", "title", "price", "enrollments"),
    choices={
        "type": ALLOWED_COURSE_TYPES,
        "level": ALLOWED_COURSE_LEVELS,
        "status": ALLOWED_COURSE_STATUSES,
    },
)

# Assignments are hard-deleted, so there is no is_deleted condition.
ASSIGNMENT_LISTING = ListingSpec(
    model=Assignment,
    searchable=("title",),
    filters={"course_id": "course_id"},
    sortable=("created_at", "title", "deadline"),
    soft_delete=False,
)


def create_course(session: Session, **fields: Any) -> Course:
    fields.setdefault("is_deleted", False)
    fields.setdefault("enrollments", 0)
    row = Course(id=new_id(), **fields)
    session.add(row)
    session.flush()
    logger.debug(f"Created course {row.id} for author {row.author_id}")
    return row


def find_course_by_id(session: Session, course_id: str) -> Optional[Course]:
    """Find a non-deleted course."""
    return (
        session.query(Course)
        .filter(Course.id == course_id, Course.is_deleted.is_(False))
        .first()
    )


def find_approved_course(session: Session, course_id: str) -> Optional[Course]:
    return (
        session.query(Course)
        .filter(
            Course.id == course_id,
            Course.status == COURSE_APPROVED,
            Course.is_deleted.is_(False),
        )
        .first()
    )


def find_course_for_author(session: Session, course_id: str, author_id: str) -> Optional[Course]:
    return (
        session.query(Course)
        .filter(
            Course.id == course_id,
            Course.author_id == author_id,
            Course.is_deleted.is_(False),
        )
        .first()
    )


def list_courses(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    author_id: Optional[str] = None,
    status: Optional[str] = None,
) -> Page:
    """
    List courses; ``author_id`` narrows to one author's courses.

    Returns:
        Page of Course rows with the author loaded
    """
    scope = []
    if author_id:
        scope.append(Course.author_id == author_id)
    if status:
        scope.append(Course.status == status)
    return paginate(
        session,
        COURSE_LISTING,
        filters,
        options,
        scope=scope,
        load_options=[selectinload(Course.author)],
    )


def list_popular_courses(session: Session, limit: int = 4) -> List[Course]:
    """Top courses by enrollment count."""
    return (
        session.query(Course)
        .filter(Course.is_deleted.is_(False))
        .order_by(Course.enrollments.desc(), Course.created_at.desc())
        .limit(limit)
        .all()
    )


def update_course(session: Session, course: Course, updates: Dict[str, Any]) -> Course:
    for key, value in updates.items():
        setattr(course, key, value)
    session.add(course)
    return course


def soft_delete_course(session: Session, course: Course) -> Course:
    course.is_deleted = True
    session.add(course)
    return course


def soft_delete_unpublished_before(session: Session, cutoff: datetime) -> int:
    """Soft-delete unpublished courses created at or before ``cutoff``."""
    count = (
        session.query(Course)
        .filter(
            Course.is_published.is_(False),
            Course.is_deleted.is_(False),
            Course.created_at <= cutoff,
        )
        .update({Course.is_deleted: True}, synchronize_session=False)
    )
    return count or 0


def create_assignment(session: Session, **fields: Any) -> Assignment:
    row = Assignment(id=new_id(), **fields)
    session.add(row)
    session.flush()
    return row


def find_assignment_by_id(session: Session, assignment_id: str) -> Optional[Assignment]:
    return session.query(Assignment).filter(Assignment.id == assignment_id).first()


def list_assignments(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    author_id: Optional[str] = None,
) -> Page:
    scope = [Assignment.author_id == author_id] if author_id else []
    return paginate(session, ASSIGNMENT_LISTING, filters, options, scope=scope)


def delete_assignment(session: Session, assignment: Assignment) -> None:
    session.delete(assignment)
