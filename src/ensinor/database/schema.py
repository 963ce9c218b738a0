from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship

from ..utils.id_generator import new_id
from ..utils.time import utc_now

Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    role = Column(String, nullable=False, default="student")
    status = Column(String, nullable=False, default="active")  # active | blocked
    is_verified = Column(Boolean, nullable=False, default=False)
    expire_at = Column(DateTime, nullable=True)  # unverified signups are removed after this
    points = Column(Integer, nullable=False, default=0)
    courses = Column(Integer, nullable=False, default=0)  # authored course counter
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)


class Course(Base):
    __tablename__ = "courses"

    id = Column(String, primary_key=True, default=new_id)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    short_description = Column(Text, nullable=True)
    type = Column(String, nullable=False, default="external")
    category = Column(String, nullable=True)
    level = Column(String, nullable=True)
    language = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")  # pending | approved | denied
    price = Column(Float, nullable=False, default=0.0)
    is_free_course = Column(Boolean, nullable=False, default=False)
    is_published = Column(Boolean, nullable=False, default=False)
    enrollments = Column(Integer, nullable=False, default=0)
    points = Column(Integer, nullable=False, default=0)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    author = relationship("User")


class Assignment(Base):
    """Assignments are hard-deleted."""
    __tablename__ = "assignments"

    id = Column(String, primary_key=True, default=new_id)
    course_id = Column(String, ForeignKey("courses.id"), nullable=False, index=True)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    deadline = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    course = relationship("Course")


class Wishlist(Base):
    __tablename__ = "wishlists"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String, ForeignKey("courses.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)

    course = relationship("Course")


class PromoCode(Base):
    __tablename__ = "promo_codes"

    id = Column(String, primary_key=True, default=new_id)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String, ForeignKey("courses.id"), nullable=True, index=True)
    model_type = Column(String, nullable=False, default="course")  # course | global
    code = Column(String, nullable=False, unique=True)
    discount = Column(Integer, nullable=False)  # percent
    max_usage = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    expire_at = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_global = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(String, primary_key=True, default=new_id)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String, ForeignKey("courses.id"), nullable=True, index=True)
    model_type = Column(String, nullable=False, default="course")
    code = Column(String, nullable=False, unique=True)
    discount = Column(Integer, nullable=False)  # percent
    max_usage = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    expire_at = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)


class GradingSystem(Base):
    __tablename__ = "grading_systems"

    id = Column(String, primary_key=True, default=new_id)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(String, ForeignKey("courses.id"), nullable=True, index=True)
    is_default = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)

    grades = relationship("Grade", back_populates="grading_system", order_by="Grade.min_score")


class Grade(Base):
    __tablename__ = "grades"

    id = Column(String, primary_key=True, default=new_id)
    grading_system_id = Column(String, ForeignKey("grading_systems.id"), nullable=False, index=True)
    min_score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    grade_label = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    grading_system = relationship("GradingSystem", back_populates="grades")


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(String, primary_key=True, default=new_id)
    course_id = Column(String, ForeignKey("courses.id"), nullable=False, index=True)
    author_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    marks = Column(Integer, nullable=False, default=0)
    total_questions = Column(Integer, nullable=False, default=0)
    total_attempt = Column(Integer, nullable=False, default=0)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)


class Question(Base):
    __tablename__ = "questions"

    id = Column(String, primary_key=True, default=new_id)
    quiz_id = Column(String, ForeignKey("quizzes.id"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    options = relationship("Option", back_populates="question")


class Option(Base):
    __tablename__ = "options"

    id = Column(String, primary_key=True, default=new_id)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    question = relationship("Question", back_populates="options")


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    id = Column(String, primary_key=True, default=new_id)
    quiz_id = Column(String, ForeignKey("quizzes.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    marks_obtained = Column(Integer, nullable=True)
    correct_rate = Column(Float, nullable=True)
    grade = Column(String, nullable=True)
    last_activity = Column(DateTime, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)

    quiz = relationship("Quiz")
    answers = relationship("QuizAnswer", back_populates="attempt")


class QuizAnswer(Base):
    """Quiz answers are hard-deleted."""
    __tablename__ = "quiz_answers"

    id = Column(String, primary_key=True, default=new_id)
    attempt_id = Column(String, ForeignKey("quiz_attempts.id"), nullable=False, index=True)
    question_id = Column(String, ForeignKey("questions.id"), nullable=False)
    option_id = Column(String, ForeignKey("options.id"), nullable=True)  # null for typed answers
    text_answer = Column(Text, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)

    attempt = relationship("QuizAttempt", back_populates="answers")


class Package(Base):
    __tablename__ = "packages"

    id = Column(String, primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    billing_cycle = Column(String, nullable=False, default="monthly")  # monthly | yearly
    price = Column(Float, nullable=False, default=0.0)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(String, primary_key=True, default=new_id)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    package_id = Column(String, ForeignKey("packages.id"), nullable=False)
    type = Column(String, nullable=False, default="basic")
    status = Column(String, nullable=False, default="pending")  # pending | active | expired | cancelled
    payment_status = Column(String, nullable=False, default="unpaid")  # unpaid | paid | failed
    transaction_id = Column(String, nullable=True)
    expired_at = Column(DateTime, nullable=True)
    is_expired = Column(Boolean, nullable=False, default=False)
    expiry_warned = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)

    package = relationship("Package")
    user = relationship("User")

    __table_args__ = (
        Index("idx_subscriptions_expiry", "is_expired", "expired_at"),
    )


class Notification(Base):
    """Notifications are hard-deleted."""
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=new_id)
    receiver_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    message = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    mode_type = Column(String, nullable=False)  # course | subscription
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)


def create_all(engine_url: str) -> None:
    engine = create_engine(engine_url)
    Base.metadata.create_all(engine)
