"""
Pydantic schemas for the respondent flow: start, finish, and results.
"""
from datetime import datetime
from typing import List, Optional, Union

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator

from psychevaluator.core.datetime_utils import ensure_timezone_aware
from psychevaluator.core.error_responses import ErrorMessages
from psychevaluator.models import AnalysisStatus, QuestionType
from psychevaluator.schemas.catalog import PublicTestSummary

AnswerValue = Union[int, str]


class StartSubmissionRequest(BaseModel):
    """Respondent identity entered before the first question."""

    full_name: str = Field(..., min_length=1, max_length=200, description="Full name")
    email: str = Field(..., max_length=320, description="Email address for the result")

    @field_validator("full_name")
    @classmethod
    def reject_blank_name(cls, v: str) -> str:
        # Stored exactly as entered
        if not v.strip():
            raise ValueError("Name cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        # Validated but stored as entered, without normalisation
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email address: {e}") from e
        return v


class AnswerSchema(BaseModel):
    """One answer: an option ID, a scale value, or free text."""

    question_id: str = Field(..., min_length=1, max_length=36)
    value: AnswerValue = Field(..., description="Option ID, scale value, or text")


class FinishSubmissionRequest(BaseModel):
    """Final answers. Unanswered questions are simply absent."""

    answers: List[AnswerSchema] = Field(default_factory=list)

    @field_validator("answers")
    @classmethod
    def one_answer_per_question(cls, v: List[AnswerSchema]) -> List[AnswerSchema]:
        seen = set()
        for answer in v:
            if answer.question_id in seen:
                raise ValueError(ErrorMessages.DUPLICATE_ANSWER)
            seen.add(answer.question_id)
        return v


class SubmissionResponse(BaseModel):
    """A submission as stored."""

    id: str
    test_id: str
    full_name: str
    email: str
    answers: List[AnswerSchema]
    time_taken: int = Field(..., description="Seconds between start and finish")
    started_at: datetime
    submitted_at: Optional[datetime] = None
    analysis_status: AnalysisStatus
    psychological_traits: Optional[str] = None
    ai_error: Optional[str] = None
    ai_error_category: Optional[str] = None
    manual_analysis_notes: Optional[str] = None

    class Config:
        from_attributes = True

    @field_validator("started_at", "submitted_at")
    @classmethod
    def make_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_timezone_aware(v) if v is not None else v


class FinishSubmissionResponse(BaseModel):
    submission: SubmissionResponse
    unanswered_count: int = Field(..., description="Questions left without an answer")


class AnsweredQuestion(BaseModel):
    """An answer paired with the question it answers."""

    question_id: str
    question_text: Optional[str] = Field(
        None, description="None when the question no longer exists"
    )
    question_type: Optional[QuestionType] = None
    value: AnswerValue
    display_value: str = Field(..., description="Option text or scale reading")


class ResultsResponse(BaseModel):
    """The results view for one submission."""

    test: PublicTestSummary
    submission: SubmissionResponse
    answers: List[AnsweredQuestion]
    unanswered_count: int
