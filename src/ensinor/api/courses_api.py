"""Courses API: listing, creation, update and soft delete of courses."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..constants import ALLOWED_COURSE_LEVELS, ALLOWED_COURSE_TYPES
from ..database.course_repo import (
    COURSE_LISTING,
    create_course as insert_course,
    find_course_by_id,
    find_course_for_author,
    list_courses,
    list_popular_courses,
    soft_delete_course,
    update_course as apply_course_updates,
)
from ..database.sqlite_client import transaction
from ..database.user_repo import find_active_user
from ..errors import BadRequestError, NotFoundError
from ..utils.logging import get_logger
from .handlers import listing_params, ok, paged, parse_payload
from .models import ApiResponse, CourseCreate, CourseOut, CourseUpdate

logger = get_logger(__name__)


def _check_choices(fields: Mapping[str, Any]) -> None:
    if fields.get("type") is not None and fields["type"] not in ALLOWED_COURSE_TYPES:
        raise BadRequestError(f"Invalid course type: {fields['type']}")
    if fields.get("level") is not None and fields["level"] not in ALLOWED_COURSE_LEVELS:
        raise BadRequestError(f"Invalid course level: {fields['level']}")


def get_courses(
    session: Session,
    query: Optional[Mapping[str, Any]] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    """
    List non-deleted courses.

    Args:
        session: SQLAlchemy session
        query: Raw query (page, limit, sortBy, sortOrder, searchTerm, declared filters)
        pagination: ``pagination`` config section

    Returns:
        ApiResponse with meta and CourseOut rows
    """
    filters, options = listing_params(query, COURSE_LISTING, pagination)
    page = list_courses(session, filters, options)
    return paged("Courses retrieved successfully", page, CourseOut)


def get_my_courses(
    session: Session,
    author_id: str,
    query: Optional[Mapping[str, Any]] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, COURSE_LISTING, pagination)
    page = list_courses(session, filters, options, author_id=author_id)
    return paged("My courses retrieved successfully", page, CourseOut)


def get_popular_courses(session: Session, limit: int = 4) -> ApiResponse:
    rows = list_popular_courses(session, limit=limit)
    return ok("Popular courses retrieved successfully", [CourseOut.model_validate(row) for row in rows])


def get_course(session: Session, course_id: str) -> ApiResponse:
    course = find_course_by_id(session, course_id)
    if not course:
        raise NotFoundError("Course not found!")
    return ok("Course retrieved successfully", CourseOut.model_validate(course))


def create_course(session: Session, author_id: str, payload: Any) -> ApiResponse:
    """
    Create a course for an active author and bump the author's course counter.

    Both writes commit together.
    """
    data = parse_payload(CourseCreate, payload)
    author = find_active_user(session, author_id)
    if not author:
        raise NotFoundError("Author not found!")

    fields = data.model_dump()
    _check_choices(fields)
    fields["is_free_course"] = fields["price"] == 0

    with transaction(session):
        course = insert_course(session, author_id=author.id, **fields)
        author.courses = (author.courses or 0) + 1

    logger.info(f"Course {course.id} created by {author.id}")
    return ok("Course created successfully", CourseOut.model_validate(course))


def update_course(session: Session, author_id: str, course_id: str, payload: Any) -> ApiResponse:
    data = parse_payload(CourseUpdate, payload)
    course = find_course_for_author(session, course_id, author_id)
    if not course:
        raise NotFoundError("Course not found!")

    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    _check_choices(updates)
    if "price" in updates:
        updates["is_free_course"] = updates["price"] == 0

    with transaction(session):
        apply_course_updates(session, course, updates)

    return ok("Course updated successfully", CourseOut.model_validate(course))


def delete_course(session: Session, author_id: str, course_id: str) -> ApiResponse:
    course = find_course_for_author(session, course_id, author_id)
    if not course:
        raise NotFoundError("Course not found!")

    with transaction(session):
        soft_delete_course(session, course)

    logger.info(f"Course {course.id} soft-deleted")
    return ok("Course deleted successfully", CourseOut.model_validate(course))
