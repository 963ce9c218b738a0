"""Pydantic models for the API layer: the response envelope, row DTOs and write payloads.

Row DTOs read straight off ORM rows (``from_attributes``); payload models
carry the field-level constraints, business checks live in the *_api modules.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int


class ApiResponse(BaseModel):
    """Response envelope: ``{success, message, meta?, data}``."""
    success: bool = True
    message: str
    meta: Optional[PageMeta] = None
    data: Any = None


# --- Row DTOs -------------------------------------------------------------


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserSummary(OrmModel):
    id: str
    name: str
    email: str


class UserOut(OrmModel):
    id: str
    name: str
    email: str
    role: str
    status: str
    is_verified: bool
    points: int = 0
    courses: int = 0
    created_at: datetime


class CourseOut(OrmModel):
    id: str
    author_id: str
    title: str
    short_description: Optional[str] = None
    type: str
    category: Optional[str] = None
    level: Optional[str] = None
    language: Optional[str] = None
    status: str
    price: float
    is_free_course: bool
    is_published: bool
    enrollments: int = 0
    created_at: datetime
    author: Optional[UserSummary] = None


class AssignmentOut(OrmModel):
    id: str
    course_id: str
    author_id: str
    title: str
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    created_at: datetime


class WishlistOut(OrmModel):
    id: str
    user_id: str
    course_id: str
    created_at: datetime
    course: Optional[CourseOut] = None


class CodeOut(OrmModel):
    id: str
    author_id: str
    course_id: Optional[str] = None
    model_type: str
    code: str
    discount: int
    max_usage: Optional[int] = None
    used_count: int = 0
    expire_at: datetime
    is_active: bool
    created_at: datetime


class GradeOut(OrmModel):
    id: str
    min_score: float
    max_score: float
    grade_label: str


class GradingSystemOut(OrmModel):
    id: str
    author_id: str
    course_id: Optional[str] = None
    is_default: bool
    created_at: datetime
    grades: List[GradeOut] = []


class QuizOut(OrmModel):
    id: str
    course_id: str
    author_id: str
    title: str
    marks: int
    total_questions: int
    total_attempt: int
    created_at: datetime


class QuizAttemptOut(OrmModel):
    id: str
    quiz_id: str
    user_id: str
    is_completed: bool
    marks_obtained: Optional[int] = None
    correct_rate: Optional[float] = None
    grade: Optional[str] = None
    last_activity: Optional[datetime] = None
    created_at: datetime


class QuizAnswerOut(OrmModel):
    id: str
    attempt_id: str
    question_id: str
    option_id: Optional[str] = None
    text_answer: Optional[str] = None
    is_correct: bool
    created_at: datetime


class PackageOut(OrmModel):
    id: str
    title: str
    billing_cycle: str
    price: float


class SubscriptionOut(OrmModel):
    id: str
    user_id: str
    package_id: str
    type: str
    status: str
    payment_status: str
    transaction_id: Optional[str] = None
    expired_at: Optional[datetime] = None
    is_expired: bool
    created_at: datetime
    package: Optional[PackageOut] = None


class NotificationOut(OrmModel):
    id: str
    receiver_id: str
    message: str
    description: Optional[str] = None
    mode_type: str
    is_read: bool
    created_at: datetime


class AchievementOut(BaseModel):
    user_id: str
    points: int
    level: int
    next_level_progress: float


class RedemptionOut(BaseModel):
    """Price breakdown after applying a promo code or coupon."""
    code: str
    kind: str  # promo | coupon
    base_price: float
    discount: float
    final_price: float
    instructor_earning: float
    platform_earning: float
    affiliate_earning: float = 0.0
    transaction_id: str


# --- Write payloads -------------------------------------------------------


class CourseCreate(BaseModel):
    title: str = Field(min_length=1)
    short_description: Optional[str] = None
    type: str = "external"
    category: Optional[str] = None
    level: Optional[str] = None
    language: Optional[str] = None
    price: float = Field(default=0.0, ge=0)
    is_published: bool = False
    points: int = Field(default=0, ge=0)


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    short_description: Optional[str] = None
    category: Optional[str] = None
    level: Optional[str] = None
    language: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    is_published: Optional[bool] = None


class AssignmentCreate(BaseModel):
    course_id: str
    title: str = Field(min_length=1)
    description: Optional[str] = None
    deadline: Optional[datetime] = None


class WishlistCreate(BaseModel):
    course_id: str


class CodeCreate(BaseModel):
    code: str = Field(min_length=1)
    discount: int = Field(gt=0, le=100)
    expire_at: datetime
    course_id: Optional[str] = None
    max_usage: Optional[int] = Field(default=None, gt=0)


class RedeemRequest(BaseModel):
    code: str = Field(min_length=1)
    base_price: float = Field(ge=0)
    course_id: Optional[str] = None
    affiliate_id: Optional[str] = None


class GradingSystemCreate(BaseModel):
    author_id: Optional[str] = None  # defaults to the caller
    course_id: Optional[str] = None


class GradeCreate(BaseModel):
    min_score: float = Field(ge=0, le=100)
    max_score: float = Field(ge=0, le=100)
    grade_label: str


class QuizCreate(BaseModel):
    course_id: str
    title: str = Field(min_length=1)
    marks: int = Field(default=0, ge=0)


class OptionIn(BaseModel):
    text: str = Field(min_length=1)
    is_correct: bool = False


class QuestionCreate(BaseModel):
    text: str = Field(min_length=1)
    options: List[OptionIn] = Field(min_length=2)


class AnswerCreate(BaseModel):
    """Either a chosen option or a typed answer, never both."""

    question_id: str
    option_id: Optional[str] = None
    text: Optional[str] = None

    @model_validator(mode="after")
    def _one_answer(self) -> "AnswerCreate":
        if (self.option_id is None) == (self.text is None):
            raise ValueError("provide exactly one of option_id or text")
        return self


class SubscriptionCreate(BaseModel):
    package_id: str
    type: str = "basic"
