"""Tests for grading systems and grade bands."""

import pytest

from ensinor.api import grading_api
from ensinor.constants import COURSE_PENDING, ROLE_INSTRUCTOR
from ensinor.errors import BadRequestError, ForbiddenError, NotFoundError


def test_super_admin_creates_single_default(session, admin):
    result = grading_api.create_grading_system(session, admin.id, {})

    assert result.data.is_default is True
    assert result.data.course_id is None

    with pytest.raises(BadRequestError, match="Default grading system already exists!"):
        grading_api.create_grading_system(session, admin.id, {})


def test_instructor_creates_one_per_course(session, instructor, make_course):
    course = make_course()

    result = grading_api.create_grading_system(session, instructor.id, {"course_id": course.id})

    assert result.data.is_default is False
    assert result.data.author_id == instructor.id

    with pytest.raises(BadRequestError, match="already created a grading system"):
        grading_api.create_grading_system(session, instructor.id, {"course_id": course.id})


def test_course_must_be_approved(session, instructor, make_course):
    pending = make_course(status=COURSE_PENDING)

    with pytest.raises(NotFoundError, match="Course not found!"):
        grading_api.create_grading_system(session, instructor.id, {"course_id": pending.id})


def test_cannot_create_for_someone_else(session, instructor, make_course, make_user):
    course = make_course()
    other = make_user(role=ROLE_INSTRUCTOR)

    with pytest.raises(ForbiddenError):
        grading_api.create_grading_system(
            session, instructor.id, {"course_id": course.id, "author_id": other.id}
        )


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ((0, 50), (50, 100), True),
        ((0, 49.99), (50, 100), False),
        ((60, 79.99), (70, 90), True),
        ((10, 20), (0, 100), True),
    ],
)
def test_ranges_overlap_is_closed(a, b, expected):
    assert grading_api.ranges_overlap(*a, *b) is expected


def test_add_grade_bands(session, admin):
    system = grading_api.create_grading_system(session, admin.id, {}).data

    grading_api.add_grade(session, system.id, {"min_score": 80, "max_score": 100, "grade_label": "A"})
    grading_api.add_grade(session, system.id, {"min_score": 60, "max_score": 79.99, "grade_label": "B"})

    fetched = grading_api.get_grading_system(session, system.id).data
    assert [grade.grade_label for grade in fetched.grades] == ["B", "A"]


def test_add_grade_rejects_overlap(session, default_grading):
    with pytest.raises(BadRequestError, match="overlaps"):
        grading_api.add_grade(
            session, default_grading.id, {"min_score": 75, "max_score": 85, "grade_label": "B_PLUS"}
        )


def test_add_grade_rejects_duplicate_label(session, admin):
    system = grading_api.create_grading_system(session, admin.id, {}).data
    grading_api.add_grade(session, system.id, {"min_score": 90, "max_score": 100, "grade_label": "A"})

    with pytest.raises(BadRequestError, match="label already exists"):
        grading_api.add_grade(session, system.id, {"min_score": 0, "max_score": 10, "grade_label": "A"})


def test_add_grade_rejects_inverted_range(session, default_grading):
    with pytest.raises(BadRequestError, match="Invalid score range"):
        grading_api.add_grade(session, default_grading.id, {"min_score": 50, "max_score": 40, "grade_label": "D"})


def test_add_grade_rejects_unknown_label(session, admin):
    system = grading_api.create_grading_system(session, admin.id, {}).data

    with pytest.raises(BadRequestError, match="Invalid grade label"):
        grading_api.add_grade(session, system.id, {"min_score": 0, "max_score": 10, "grade_label": "Z"})


def test_delete_grading_system_is_soft_and_owner_only(session, instructor, make_course, make_user):
    course = make_course()
    system = grading_api.create_grading_system(session, instructor.id, {"course_id": course.id}).data

    with pytest.raises(ForbiddenError):
        grading_api.delete_grading_system(session, make_user().id, system.id)

    grading_api.delete_grading_system(session, instructor.id, system.id)

    assert grading_api.get_grading_systems(session, author_id=instructor.id).meta.total == 0
    with pytest.raises(NotFoundError):
        grading_api.get_grading_system(session, system.id)
