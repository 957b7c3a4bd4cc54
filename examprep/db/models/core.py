"""SQLAlchemy models for plans, usage, the question bank and test attempts."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from examprep.db.base import Base, TimestampMixin
from examprep.utils.datetime import utc_now


class User(TimestampMixin, Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    email: Mapped[str] = mapped_column(String(191), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(128))
    role: Mapped[str] = mapped_column(
        Enum("user", "admin", name="user_role"), default="user", nullable=False
    )
    status: Mapped[str] = mapped_column(
        Enum("active", "blocked", "deleted", name="user_status"),
        default="active",
        nullable=False,
    )

    subscriptions: Mapped[list["UserSubscription"]] = relationship(back_populates="user")


class SubscriptionPlan(TimestampMixin, Base):
    __tablename__ = "subscription_plans"
    __table_args__ = (UniqueConstraint("code", name="uq_subscription_plans_code"),)

    code: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # List of PlanFeature payloads; validated in services.subscriptions.plan_features.
    features: Mapped[list[dict]] = mapped_column(JSON, default=list, nullable=False)
    priority: Mapped[int] = mapped_column(SmallInteger, default=0)
    monthly_price: Mapped[float] = mapped_column(Float, default=0.0)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    published: Mapped[bool] = mapped_column(Boolean, default=True)

    subscriptions: Mapped[list["UserSubscription"]] = relationship(back_populates="plan")


class UserSubscription(TimestampMixin, Base):
    __tablename__ = "user_subscriptions"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    plan_id: Mapped[int] = mapped_column(ForeignKey("subscription_plans.id"))
    status: Mapped[str] = mapped_column(
        Enum("active", "cancelled", "expired", "pending", name="subscription_status"),
        default="active",
        nullable=False,
    )
    priority: Mapped[int] = mapped_column(default=0)
    # Subscription anchor for periodic quota windows.
    starts_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    user: Mapped[User] = relationship(back_populates="subscriptions")
    plan: Mapped[SubscriptionPlan] = relationship(back_populates="subscriptions")


class UsageEvent(Base):
    """Append-only log of quota-gated actions (downloads, support requests...)."""

    __tablename__ = "usage_events"
    __table_args__ = (
        Index("ix_usage_events_user_feature_created", "user_id", "feature_key", "created_at"),
    )

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    feature_key: Mapped[str] = mapped_column(String(64), nullable=False)
    subject_id: Mapped[str | None] = mapped_column(String(191))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    user: Mapped[User] = relationship()


class Paper(TimestampMixin, Base):
    __tablename__ = "papers"
    __table_args__ = (UniqueConstraint("slug", name="uq_papers_slug"),)

    title: Mapped[str] = mapped_column(String(191), nullable=False)
    slug: Mapped[str] = mapped_column(String(191), nullable=False)
    category_name: Mapped[str | None] = mapped_column(String(191))
    year: Mapped[int | None] = mapped_column(Integer)
    session: Mapped[str | None] = mapped_column(String(64))
    description: Mapped[str | None] = mapped_column(Text)
    published: Mapped[bool] = mapped_column(Boolean, default=False)

    question_links: Mapped[list["PaperQuestion"]] = relationship(
        back_populates="paper", order_by="PaperQuestion.order"
    )


class Bookmark(Base):
    __tablename__ = "bookmarks"
    __table_args__ = (UniqueConstraint("user_id", "paper_id", name="uq_bookmarks_user_paper"),)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    paper_id: Mapped[int] = mapped_column(ForeignKey("papers.id", ondelete="CASCADE"))
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    removed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    paper: Mapped[Paper] = relationship()


class QuestionCategory(Base):
    __tablename__ = "question_categories"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("question_categories.id", ondelete="SET NULL")
    )


class Question(TimestampMixin, Base):
    __tablename__ = "questions"

    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        Enum("mcq", "short_answer", name="question_type"), default="mcq", nullable=False
    )
    options: Mapped[list[str] | None] = mapped_column(JSON)
    # A single value, or a list for multi-select questions.
    correct_answer: Mapped[Any] = mapped_column(JSON, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text)
    question_category_id: Mapped[int | None] = mapped_column(
        ForeignKey("question_categories.id", ondelete="SET NULL"), index=True
    )

    category: Mapped[QuestionCategory | None] = relationship()


class PaperQuestion(Base):
    __tablename__ = "paper_questions"

    paper_id: Mapped[int] = mapped_column(ForeignKey("papers.id", ondelete="CASCADE"))
    question_id: Mapped[int] = mapped_column(ForeignKey("questions.id", ondelete="CASCADE"))
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    paper: Mapped[Paper] = relationship(back_populates="question_links")
    question: Mapped[Question] = relationship()


class TestConfig(TimestampMixin, Base):
    __tablename__ = "test_configs"
    __test__ = False
    __table_args__ = (UniqueConstraint("slug", name="uq_test_configs_slug"),)

    name: Mapped[str] = mapped_column(String(191), nullable=False)
    slug: Mapped[str | None] = mapped_column(String(191))
    description: Mapped[str | None] = mapped_column(Text)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=60)
    passing_marks: Mapped[float] = mapped_column(Float, default=50.0)
    has_negative_marking: Mapped[bool] = mapped_column(Boolean, default=False)
    negative_mark_value: Mapped[float] = mapped_column(Float, default=0.0)
    marks_per_question: Mapped[float] = mapped_column(Float, default=1.0)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    # List of CompositionRule payloads.
    composition: Mapped[list[dict]] = mapped_column(JSON, default=list, nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, default=False)


class TestAttempt(Base):
    __tablename__ = "test_attempts"
    __test__ = False
    __table_args__ = (Index("ix_test_attempts_user", "user_id"),)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    test_config_id: Mapped[int | None] = mapped_column(
        ForeignKey("test_configs.id", ondelete="SET NULL")
    )
    test_config_name: Mapped[str] = mapped_column(String(191), nullable=False)
    test_config_slug: Mapped[str | None] = mapped_column(String(191))
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(
        Enum("in_progress", "completed", name="attempt_status"),
        default="in_progress",
        nullable=False,
    )
    score: Mapped[float] = mapped_column(Float, default=0.0)
    total_marks: Mapped[float] = mapped_column(Float, default=0.0)
    percentage: Mapped[float] = mapped_column(Float, default=0.0)
    passed: Mapped[bool] = mapped_column(Boolean, default=False)

    question_attempts: Mapped[list["QuestionAttempt"]] = relationship(
        back_populates="attempt", order_by="QuestionAttempt.order"
    )


class QuestionAttempt(Base):
    """Per-question snapshot written once when an attempt is submitted."""

    __tablename__ = "question_attempts"

    test_attempt_id: Mapped[int] = mapped_column(
        ForeignKey("test_attempts.id", ondelete="CASCADE"), index=True
    )
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    question_id: Mapped[int | None] = mapped_column(
        ForeignKey("questions.id", ondelete="SET NULL")
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    options: Mapped[list[str] | None] = mapped_column(JSON)
    correct_answer: Mapped[Any] = mapped_column(JSON, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text)
    question_category_id: Mapped[int | None] = mapped_column(Integer)
    user_answer: Mapped[Any] = mapped_column(JSON, nullable=True)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)
    time_spent_seconds: Mapped[int | None] = mapped_column(Integer)

    attempt: Mapped[TestAttempt] = relationship(back_populates="question_attempts")


__all__ = [
    "Bookmark",
    "Paper",
    "PaperQuestion",
    "Question",
    "QuestionAttempt",
    "QuestionCategory",
    "SubscriptionPlan",
    "TestAttempt",
    "TestConfig",
    "UsageEvent",
    "User",
    "UserSubscription",
]
