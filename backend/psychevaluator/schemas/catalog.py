"""
Pydantic schemas for tests and questions.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from psychevaluator.core.datetime_utils import ensure_timezone_aware
from psychevaluator.core.question_rules import build_question_fields
from psychevaluator.models import QuestionType


def _strip_required(value: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError("Value cannot be blank")
    return stripped


def _reject_nulls(model: BaseModel, fields: tuple) -> None:
    """Fields that may be omitted from a partial update but never set to null."""
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{name} cannot be null")


class QuestionOptionSchema(BaseModel):
    """An answer option. Omit ``id`` to have one generated."""

    id: Optional[str] = Field(None, max_length=64, description="Stable option ID")
    text: str = Field(..., min_length=1, max_length=500, description="Option text")

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip_required(v)


class QuestionOptionResponse(BaseModel):
    id: str
    text: str


class QuestionCreate(BaseModel):
    """Schema for adding a question to a test."""

    text: str = Field(..., min_length=1, max_length=2000, description="Question text")
    question_type: QuestionType = Field(..., description="Question type")
    options: Optional[List[QuestionOptionSchema]] = Field(
        None, description="Ordered options (multiple-choice only, at least 2)"
    )
    scale_min: Optional[int] = Field(None, description="Scale minimum (rating-scale only)")
    scale_max: Optional[int] = Field(None, description="Scale maximum (rating-scale only)")
    min_label: Optional[str] = Field(None, max_length=200)
    max_label: Optional[str] = Field(None, max_length=200)

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return _strip_required(v)

    @model_validator(mode="after")
    def check_shape(self) -> "QuestionCreate":
        """Reject option/scale combinations that don't fit the type."""
        build_question_fields(self.model_dump())
        return self


class QuestionUpdate(BaseModel):
    """
    Schema for a partial question update.

    The merged question is checked against its type before it is saved.
    """

    text: Optional[str] = Field(None, min_length=1, max_length=2000)
    question_type: Optional[QuestionType] = None
    options: Optional[List[QuestionOptionSchema]] = None
    scale_min: Optional[int] = None
    scale_max: Optional[int] = None
    min_label: Optional[str] = Field(None, max_length=200)
    max_label: Optional[str] = Field(None, max_length=200)

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v) if v is not None else v

    @model_validator(mode="after")
    def require_values(self) -> "QuestionUpdate":
        _reject_nulls(self, ("text", "question_type"))
        return self


class QuestionResponse(BaseModel):
    """A question as stored."""

    id: str
    test_id: str
    position: int
    text: str
    question_type: QuestionType
    options: Optional[List[QuestionOptionResponse]] = None
    scale_min: Optional[int] = None
    scale_max: Optional[int] = None
    min_label: Optional[str] = None
    max_label: Optional[str] = None

    class Config:
        from_attributes = True


class PublicQuestionResponse(QuestionResponse):
    """A question as shown to a respondent, with its countdown length."""

    time_limit_seconds: int = Field(..., description="Seconds allowed for this question")


class TestCreate(BaseModel):
    """Schema for creating a test."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    is_published: bool = Field(True, description="Visible to respondents")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return _strip_required(v)


class TestUpdate(BaseModel):
    """Schema for a partial test update."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    is_published: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        return _strip_required(v) if v is not None else v

    @model_validator(mode="after")
    def require_values(self) -> "TestUpdate":
        _reject_nulls(self, ("title", "description", "is_published"))
        return self


class TestPublicationUpdate(BaseModel):
    is_published: bool


class TestSummaryResponse(BaseModel):
    """A test in a list."""

    id: str
    title: str
    description: str
    is_published: bool
    question_count: int


class TestDetailResponse(BaseModel):
    """A test with its ordered questions (admin view)."""

    id: str
    title: str
    description: str
    is_published: bool
    created_at: datetime
    updated_at: datetime
    questions: List[QuestionResponse]

    class Config:
        from_attributes = True

    @field_validator("created_at", "updated_at")
    @classmethod
    def make_aware(cls, v: datetime) -> datetime:
        return ensure_timezone_aware(v)


class PublicTestSummary(BaseModel):
    """A published test in the respondent catalog."""

    id: str
    title: str
    description: str
    question_count: int


class PublicTestDetail(BaseModel):
    """A published test ready to be played."""

    id: str
    title: str
    description: str
    questions: List[PublicQuestionResponse]
    total_time_limit_seconds: int = Field(
        ..., description="Sum of all question countdowns"
    )
