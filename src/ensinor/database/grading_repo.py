"""Repository functions for grading systems and their grades."""

from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session, selectinload

from ..query.fetch import Page, paginate
from ..query.pagination import PaginationOptions
from ..query.predicates import ListingSpec
from ..utils.id_generator import new_id
from .schema import Grade, GradingSystem

GRADING_SYSTEM_LISTING = ListingSpec(
    model=GradingSystem,
    filters={"course_id": "course_id", "is_default": "is_default"},
)


def create_grading_system(
    session: Session,
    author_id: str,
    course_id: Optional[str],
    is_default: bool,
) -> GradingSystem:
    row = GradingSystem(
        id=new_id(),
        author_id=author_id,
        course_id=course_id,
        is_default=is_default,
        is_deleted=False,
    )
    session.add(row)
    session.flush()
    return row


def find_grading_system(session: Session, grading_system_id: str) -> Optional[GradingSystem]:
    return (
        session.query(GradingSystem)
        .options(selectinload(GradingSystem.grades))
        .filter(GradingSystem.id == grading_system_id, GradingSystem.is_deleted.is_(False))
        .first()
    )


def find_for_course_and_author(session: Session, course_id: str, author_id: str) -> Optional[GradingSystem]:
    return (
        session.query(GradingSystem)
        .filter(
            GradingSystem.course_id == course_id,
            GradingSystem.author_id == author_id,
            GradingSystem.is_deleted.is_(False),
        )
        .first()
    )


def find_default(session: Session) -> Optional[GradingSystem]:
    return (
        session.query(GradingSystem)
        .options(selectinload(GradingSystem.grades))
        .filter(GradingSystem.is_default.is_(True), GradingSystem.is_deleted.is_(False))
        .first()
    )


def find_for_course(session: Session, course_id: str) -> Optional[GradingSystem]:
    return (
        session.query(GradingSystem)
        .options(selectinload(GradingSystem.grades))
        .filter(GradingSystem.course_id == course_id, GradingSystem.is_deleted.is_(False))
        .first()
    )


def resolve_for_course(session: Session, course_id: str) -> Optional[GradingSystem]:
    """Course-specific grading system, falling back to the default one."""
    return find_for_course(session, course_id) or find_default(session)


def create_grade(
    session: Session,
    grading_system: GradingSystem,
    min_score: float,
    max_score: float,
    grade_label: str,
) -> Grade:
    row = Grade(
        id=new_id(),
        grading_system=grading_system,
        min_score=min_score,
        max_score=max_score,
        grade_label=grade_label,
    )
    session.add(row)
    session.flush()
    return row


def list_grading_systems(
    session: Session,
    filters: Mapping[str, Any],
    options: PaginationOptions,
    author_id: Optional[str] = None,
    course_id: Optional[str] = None,
) -> Page:
    scope = []
    if author_id:
        scope.append(GradingSystem.author_id == author_id)
    if course_id:
        scope.append(GradingSystem.course_id == course_id)
    return paginate(
        session,
        GRADING_SYSTEM_LISTING,
        filters,
        options,
        scope=scope,
        load_options=[selectinload(GradingSystem.grades)],
    )


def soft_delete_grading_system(session: Session, grading_system: GradingSystem) -> None:
    grading_system.is_deleted = True
    session.add(grading_system)
