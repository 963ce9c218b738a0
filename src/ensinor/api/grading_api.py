"""Grading systems API.

A super admin owns the single default grading system. Other authors create
one grading system per approved course, for themselves only.
"""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..constants import ALLOWED_GRADE_LABELS, ROLE_SUPER_ADMIN
from ..database.course_repo import find_approved_course
from ..database.grading_repo import (
    GRADING_SYSTEM_LISTING,
    create_grade,
    create_grading_system as insert_grading_system,
    find_default,
    find_for_course_and_author,
    find_grading_system,
    list_grading_systems,
    soft_delete_grading_system,
)
from ..database.sqlite_client import transaction
from ..database.user_repo import find_active_user
from ..errors import BadRequestError, ForbiddenError, NotFoundError
from ..utils.logging import get_logger
from .handlers import listing_params, ok, paged, parse_payload
from .models import ApiResponse, GradeCreate, GradeOut, GradingSystemCreate, GradingSystemOut

logger = get_logger(__name__)


def ranges_overlap(min_a: float, max_a: float, min_b: float, max_b: float) -> bool:
    """Closed ranges [min_a, max_a] and [min_b, max_b] share at least one point."""
    return min_a <= max_b and min_b <= max_a


def create_grading_system(session: Session, current_user_id: str, payload: Any) -> ApiResponse:
    """
    Create a grading system.

    Raises:
        NotFoundError: Caller, author or approved course missing
        ForbiddenError: Non-admin creating for someone else
        BadRequestError: Default already exists, or author already has one for the course
    """
    data = parse_payload(GradingSystemCreate, payload)
    caller = find_active_user(session, current_user_id)
    if not caller:
        raise NotFoundError("User not found!")

    author_id = data.author_id or caller.id
    author = caller if author_id == caller.id else find_active_user(session, author_id)
    if not author:
        raise NotFoundError("Author not found!")

    is_default = caller.role == ROLE_SUPER_ADMIN
    if is_default:
        if find_default(session):
            raise BadRequestError("Default grading system already exists!")
        course_id = None
    else:
        if author.id != caller.id:
            raise ForbiddenError("You can only create grading system for yourself!")
        if not data.course_id or not find_approved_course(session, data.course_id):
            raise NotFoundError("Course not found!")
        if find_for_course_and_author(session, data.course_id, author.id):
            raise BadRequestError("You have already created a grading system for this course!")
        course_id = data.course_id

    with transaction(session):
        system = insert_grading_system(session, author.id, course_id, is_default)

    logger.info(f"Grading system {system.id} created (default={is_default})")
    return ok("Grading system created successfully", GradingSystemOut.model_validate(system))


def add_grade(session: Session, grading_system_id: str, payload: Any) -> ApiResponse:
    """
    Add a grade band to a grading system.

    The band must satisfy 0 <= min <= max <= 100, must not overlap any
    existing band, and its label must be unused in the system.
    """
    data = parse_payload(GradeCreate, payload)
    system = find_grading_system(session, grading_system_id)
    if not system:
        raise NotFoundError("Grading system not found!")

    if data.min_score > data.max_score:
        raise BadRequestError(
            "Invalid score range! minScore must be >= 0, maxScore <= 100, and minScore <= maxScore."
        )
    if data.grade_label not in ALLOWED_GRADE_LABELS:
        raise BadRequestError(f"Invalid grade label: {data.grade_label}")

    for existing in system.grades:
        if ranges_overlap(data.min_score, data.max_score, existing.min_score, existing.max_score):
            raise BadRequestError("This grade range overlaps with an existing grade in the system!")
        if existing.grade_label == data.grade_label:
            raise BadRequestError("This grade label already exists in the grading system!")

    with transaction(session):
        grade = create_grade(session, system, data.min_score, data.max_score, data.grade_label)

    return ok("Grade added successfully", GradeOut.model_validate(grade))


def get_grading_systems(
    session: Session,
    query: Optional[Mapping[str, Any]] = None,
    author_id: Optional[str] = None,
    pagination: Optional[Mapping[str, Any]] = None,
) -> ApiResponse:
    filters, options = listing_params(query, GRADING_SYSTEM_LISTING, pagination)
    page = list_grading_systems(session, filters, options, author_id=author_id)
    return paged("Grading systems retrieved successfully", page, GradingSystemOut)


def get_grading_system(session: Session, grading_system_id: str) -> ApiResponse:
    system = find_grading_system(session, grading_system_id)
    if not system:
        raise NotFoundError("Grading system not found!")
    return ok("Grading system retrieved successfully", GradingSystemOut.model_validate(system))


def delete_grading_system(session: Session, author_id: str, grading_system_id: str) -> ApiResponse:
    system = find_grading_system(session, grading_system_id)
    if not system:
        raise NotFoundError("Grading system not found!")
    if system.author_id != author_id:
        raise ForbiddenError("You can only delete your own grading systems")

    with transaction(session):
        soft_delete_grading_system(session, system)

    return ok("Grading system deleted successfully", GradingSystemOut.model_validate(system))
