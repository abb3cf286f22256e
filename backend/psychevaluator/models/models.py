"""
Database models for the PsycheValuator application.

Tests own their questions (cascade delete). Submissions reference a test by
id only: they are never deleted and outlive the test they were taken on.
"""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    """Persist enum values (e.g. "pending_ai") rather than member names."""
    return [member.value for member in enum_cls]


class QuestionType(str, enum.Enum):
    """Question type enumeration."""

    MULTIPLE_CHOICE = "multiple-choice"
    RATING_SCALE = "rating-scale"
    OPEN_ENDED = "open-ended"


class AnalysisStatus(str, enum.Enum):
    """Position of a submission in the review lifecycle."""

    PENDING_AI = "pending_ai"
    AI_COMPLETED = "ai_completed"
    AI_FAILED_PENDING_MANUAL = "ai_failed_pending_manual"
    MANUAL_REVIEW_COMPLETED = "manual_review_completed"


class Test(Base):
    """A named collection of ordered questions presented to respondents."""

    __test__ = False  # keep pytest from collecting the model
    __tablename__ = "tests"

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    is_published = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    questions = relationship(
        "Question",
        back_populates="test",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Question.position",
        lazy="selectin",
    )


class Question(Base):
    """A single question belonging to exactly one test."""

    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=_new_id)
    test_id = Column(
        String(36),
        ForeignKey("tests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    text = Column(Text, nullable=False)
    question_type = Column(
        Enum(
            QuestionType,
            name="questiontype",
            values_callable=_enum_values,
        ),
        nullable=False,
    )
    # Ordered list of {"id": str, "text": str}; only for multiple-choice
    options = Column(JSON, nullable=True)
    # Rating-scale bounds and labels
    scale_min = Column(Integer, nullable=True)
    scale_max = Column(Integer, nullable=True)
    min_label = Column(String(200), nullable=True)
    max_label = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    test = relationship("Test", back_populates="questions")

    __table_args__ = (Index("ix_questions_test_position", "test_id", "position"),)


class TestSubmission(Base):
    """
    One respondent's attempt at a test.

    Lifecycle: created on Start with no answers, finished once with answers
    and timing (submitted_at set), then moved through AnalysisStatus by the
    analysis step and admin review.
    """

    __test__ = False
    __tablename__ = "test_submissions"

    id = Column(String(36), primary_key=True, default=_new_id)
    test_id = Column(String(36), nullable=False, index=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    # List of {"question_id": str, "value": str | int}
    answers = Column(JSON, nullable=False, default=list)
    time_taken = Column(Integer, nullable=False, default=0)  # seconds
    started_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True, index=True)
    analysis_status = Column(
        Enum(
            AnalysisStatus,
            name="analysisstatus",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=AnalysisStatus.PENDING_AI,
        index=True,
    )
    # Set by the conditional claim that guards the analysis call
    analysis_claimed_at = Column(DateTime(timezone=True), nullable=True)
    psychological_traits = Column(Text, nullable=True)
    ai_error = Column(Text, nullable=True)
    ai_error_category = Column(String(32), nullable=True)
    manual_analysis_notes = Column(Text, nullable=True)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    @property
    def is_finished(self) -> bool:
        return self.submitted_at is not None


class RevokedAdminToken(Base):
    """JTI of an admin session token revoked by logout before its expiry."""

    __tablename__ = "revoked_admin_tokens"

    jti = Column(String(36), primary_key=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    revoked_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
