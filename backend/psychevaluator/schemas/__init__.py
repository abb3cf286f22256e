"""
Pydantic schemas for request/response validation.
"""
from .catalog import (
    QuestionCreate,
    QuestionUpdate,
    QuestionResponse,
    PublicQuestionResponse,
    TestCreate,
    TestUpdate,
    TestPublicationUpdate,
    TestSummaryResponse,
    TestDetailResponse,
    PublicTestSummary,
    PublicTestDetail,
)
from .submissions import (
    StartSubmissionRequest,
    FinishSubmissionRequest,
    SubmissionResponse,
    FinishSubmissionResponse,
    AnsweredQuestion,
    ResultsResponse,
)
from .admin import (
    AdminLoginRequest,
    AdminTokenResponse,
    AdminMeResponse,
    DashboardResponse,
    SubmissionListItem,
    AdminSubmissionDetail,
    ReviewUpdateRequest,
    NotificationResponse,
)

__all__ = [
    "QuestionCreate",
    "QuestionUpdate",
    "QuestionResponse",
    "PublicQuestionResponse",
    "TestCreate",
    "TestUpdate",
    "TestPublicationUpdate",
    "TestSummaryResponse",
    "TestDetailResponse",
    "PublicTestSummary",
    "PublicTestDetail",
    "StartSubmissionRequest",
    "FinishSubmissionRequest",
    "SubmissionResponse",
    "FinishSubmissionResponse",
    "AnsweredQuestion",
    "ResultsResponse",
    "AdminLoginRequest",
    "AdminTokenResponse",
    "AdminMeResponse",
    "DashboardResponse",
    "SubmissionListItem",
    "AdminSubmissionDetail",
    "ReviewUpdateRequest",
    "NotificationResponse",
]
