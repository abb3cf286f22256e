"""
Pydantic schemas for admin authentication, review, and dashboard endpoints.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from psychevaluator.core.datetime_utils import ensure_timezone_aware
from psychevaluator.models import AnalysisStatus
from psychevaluator.schemas.submissions import AnsweredQuestion, SubmissionResponse


class AdminLoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=256)


class AdminTokenResponse(BaseModel):
    """A signed admin session token and its expiry."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class AdminMeResponse(BaseModel):
    username: str
    expires_at: datetime


class DashboardResponse(BaseModel):
    """Catalog and submission counts for the admin dashboard."""

    total_tests: int
    published_tests: int
    total_submissions: int = Field(..., description="Including unfinished attempts")
    finished_submissions: int
    submissions_by_status: Dict[str, int] = Field(
        ..., description="Finished submissions per analysis status"
    )
    awaiting_manual_review: int = Field(
        ..., description="Finished submissions whose AI analysis failed"
    )
    average_submissions_per_test: float = Field(
        ..., description="Submissions per test, one decimal; 0 with no tests"
    )


class SubmissionListItem(BaseModel):
    """A submission row in the admin list."""

    id: str
    test_id: str
    test_title: Optional[str] = Field(None, description="None if the test was deleted")
    full_name: str
    email: str
    time_taken: int
    started_at: datetime
    submitted_at: Optional[datetime] = None
    analysis_status: AnalysisStatus

    @field_validator("started_at", "submitted_at")
    @classmethod
    def make_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_timezone_aware(v) if v is not None else v


class AdminSubmissionDetail(BaseModel):
    """One submission with its answers paired to question text."""

    submission: SubmissionResponse
    test_title: Optional[str] = None
    answers: List[AnsweredQuestion]


class ReviewUpdateRequest(BaseModel):
    """
    Manual review of a submission.

    Either field may be omitted; at least one must be present. Any status
    may be chosen, including a reset to pending_ai.
    """

    manual_analysis_notes: Optional[str] = Field(None, max_length=20000)
    analysis_status: Optional[AnalysisStatus] = None

    @model_validator(mode="after")
    def require_a_change(self) -> "ReviewUpdateRequest":
        if not self.model_fields_set:
            raise ValueError("Provide manual_analysis_notes or analysis_status")
        if "analysis_status" in self.model_fields_set and self.analysis_status is None:
            raise ValueError("analysis_status cannot be null")
        return self


class NotificationResponse(BaseModel):
    """The composed result notification and how it was handled."""

    recipient: str
    subject: str
    body: str
    channel: str = Field(..., description='"log" (simulated) or "smtp"')
    delivered: bool = Field(..., description="False on the simulated channel")
