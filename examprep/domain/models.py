"""Pydantic models shared across service layers.

Rows and JSON columns read from the store are validated into these types
before any quota, generation or scoring logic touches them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

QuotaPeriod = Literal["daily", "weekly", "monthly", "yearly", "lifetime"]
QuestionType = Literal["mcq", "short_answer"]
Answer = str | list[str]

QUOTA_FEATURE_LABELS: dict[str, str] = {
    "downloads": "download",
    "bookmarks": "bookmark",
    "take_exam": "exam",
    "ai_interactions": "AI interaction",
    "priority_support": "priority support",
}


QUOTA_FEATURE_NAMES: dict[str, str] = {
    "downloads": "paper downloads",
    "bookmarks": "bookmarking",
    "take_exam": "exams",
    "ai_interactions": "AI interactions",
    "priority_support": "priority support",
}


def feature_label(key: str) -> str:
    """Singular label used in limit messages (\"daily download limit\")."""

    return QUOTA_FEATURE_LABELS.get(key, key.replace("_", " "))


def feature_name(key: str) -> str:
    return QUOTA_FEATURE_NAMES.get(key, key.replace("_", " "))


class PlanFeature(BaseModel):
    text: str = ""
    key: str | None = None
    is_quota: bool = False
    limit: int | None = None
    period: QuotaPeriod | None = None

    @field_validator("limit")
    @classmethod
    def _limit_floor(cls, value: int | None) -> int | None:
        if value is not None and value < -1:
            raise ValueError("limit must be -1 (unlimited) or a non-negative integer")
        return value

    @property
    def is_unlimited(self) -> bool:
        return self.limit == -1


PlanFeatureList = TypeAdapter(list[PlanFeature])


class QuotaWindow(BaseModel):
    period: QuotaPeriod
    window_start: datetime
    next_reset: datetime | None = None


class QuotaDecision(BaseModel):
    allowed: bool
    message: str
    next_reset: datetime | None = None

    @property
    def success(self) -> bool:
        return self.allowed


class QuotaUsage(BaseModel):
    key: str
    limit: int
    period: QuotaPeriod
    used: int
    remaining: int | None
    window_start: datetime
    next_reset: datetime | None = None


class BookmarkToggle(BaseModel):
    success: bool
    bookmarked: bool
    message: str


class CategoryNode(BaseModel):
    id: int
    name: str
    parent_id: int | None = None
    subcategories: list[CategoryNode] = Field(default_factory=list)


class FlatCategory(BaseModel):
    id: int
    name: str
    level: int


class QuestionModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    question_text: str
    type: QuestionType = "mcq"
    options: list[str] = Field(default_factory=list)
    correct_answer: Answer
    explanation: str | None = None
    question_category_id: int | None = None

    @field_validator("options", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return [] if value is None else value


class GeneratedQuestion(QuestionModel):
    order: int
    link_id: str


class CompositionRule(BaseModel):
    question_category_id: int
    percentage: float = Field(ge=0, le=100)


CompositionList = TypeAdapter(list[CompositionRule])


class TestConfigModel(BaseModel):
    __test__ = False
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    name: str
    slug: str | None = None
    description: str | None = None
    duration_minutes: int = Field(default=60, ge=1)
    passing_marks: float = Field(default=50.0, ge=0, le=100)
    has_negative_marking: bool = False
    negative_mark_value: float = Field(default=0.0, ge=0)
    marks_per_question: float = Field(default=1.0, ge=0)
    total_questions: int = Field(ge=0)
    composition: list[CompositionRule] = Field(default_factory=list)
    published: bool = False


class CategoryShortfall(BaseModel):
    question_category_id: int
    requested: int
    available: int


class GeneratedTest(BaseModel):
    config: TestConfigModel
    questions: list[GeneratedQuestion]
    shortfalls: list[CategoryShortfall] = Field(default_factory=list)


class QuestionScore(BaseModel):
    question_id: int
    user_answer: Any = None
    answered: bool
    is_correct: bool
    marks: float
    time_spent: int | None = None


class ScoreResult(BaseModel):
    raw_score: float
    total_marks: float
    percentage: float
    passed: bool
    per_question: list[QuestionScore]


class QuestionAttemptModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order: int
    question_id: int | None = None
    question_text: str
    type: QuestionType
    options: list[str] = Field(default_factory=list)
    correct_answer: Answer
    explanation: str | None = None
    user_answer: Any = None
    is_correct: bool = False
    time_spent_seconds: int | None = None

    @field_validator("options", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return [] if value is None else value


class TestAttemptModel(BaseModel):
    __test__ = False
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    test_config_id: int | None = None
    test_config_name: str
    test_config_slug: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    status: Literal["in_progress", "completed"]
    score: float = 0.0
    total_marks: float = 0.0
    percentage: float = 0.0
    passed: bool = False
    question_attempts: list[QuestionAttemptModel] = Field(default_factory=list)


class PaperModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    category_name: str | None = None
    year: int | None = None
    session: str | None = None
    description: str | None = None
    published: bool = False


__all__ = [
    "Answer",
    "BookmarkToggle",
    "CategoryNode",
    "CategoryShortfall",
    "CompositionList",
    "CompositionRule",
    "FlatCategory",
    "GeneratedQuestion",
    "GeneratedTest",
    "PaperModel",
    "PlanFeature",
    "PlanFeatureList",
    "QUOTA_FEATURE_LABELS",
    "QUOTA_FEATURE_NAMES",
    "QuestionAttemptModel",
    "QuestionModel",
    "QuestionScore",
    "QuestionType",
    "QuotaDecision",
    "QuotaPeriod",
    "QuotaUsage",
    "QuotaWindow",
    "ScoreResult",
    "TestAttemptModel",
    "TestConfigModel",
    "feature_label",
    "feature_name",
]
