"""Assignments API. Assignments are hard-deleted."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..database.course_repo import (
    ASSIGNMENT_LISTING,
    create_assignment as insert_assignment,
    delete_assignment as remove_assignment,
    find_assignment_by_id,
    find_course_for_author,
    list_assignments,
)
from ..database.sqlite_client import transaction
from ..errors import ForbiddenError, NotFoundError
from .handlers import listing_params, ok, paged, parse_payload
from .models import ApiResponse, AssignmentCreate, AssignmentOut


def create_assignment(session: Session, author_id: str, payload: Any) -> ApiResponse:
    data = parse_payload(AssignmentCreate, payload)
    course = find_course_for_author(session, data.course_id, author_id)
    if not course:
        raise NotFoundError("Course not found for this author!")

    with transaction(session):
        assignment = insert_assignment(session, author_id=author_id, **data.model_dump())

    return ok("Assignment created successfully", AssignmentOut.model_validate(assignment))


def get_assignments(
    session: Session,
    query: Optional[Mapping[str, Any]] = None,
    author_id: Optional[str] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, ASSIGNMENT_LISTING, pagination)
    page = list_assignments(session, filters, options, author_id=author_id)
    return paged("Assignments retrieved successfully", page, AssignmentOut)


def get_assignment(session: Session, assignment_id: str) -> ApiResponse:
    assignment = find_assignment_by_id(session, assignment_id)
    if not assignment:
        raise NotFoundError("Assignment not found!")
    return ok("Assignment retrieved successfully", AssignmentOut.model_validate(assignment))


def delete_assignment(session: Session, author_id: str, assignment_id: str) -> ApiResponse:
    assignment = find_assignment_by_id(session, assignment_id)
    if not assignment:
        raise NotFoundError("Assignment not found!")
    if assignment.author_id != author_id:
        raise ForbiddenError("You can only delete your own assignments")

    snapshot = AssignmentOut.model_validate(assignment)
    with transaction(session):
        remove_assignment(session, assignment)

    return ok("Assignment deleted successfully", snapshot)
