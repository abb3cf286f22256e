"""
Analysis step of the submission lifecycle.

When a finished submission is first viewed while pending_ai, the viewer
claims it, calls the analysis collaborator once, and writes the outcome
back. Concurrent viewers that lose the claim get the row as it stands
without a second call. Collaborator failures never propagate: they move
the submission to ai_failed_pending_manual with a classified message.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from psychevaluator.analysis import (
    AnalysisProvider,
    AnalysisResult,
    build_responses_text,
)
from psychevaluator.analysis.error_classifier import ErrorClassifier
from psychevaluator.core.config import settings
from psychevaluator.core.datetime_utils import utc_now
from psychevaluator.models import AnalysisStatus, Test, TestSubmission
from psychevaluator.repositories import SubmissionRepository

logger = logging.getLogger(__name__)

SUBMISSION_FIELDS = (
    "id",
    "test_id",
    "full_name",
    "email",
    "answers",
    "time_taken",
    "started_at",
    "submitted_at",
    "analysis_status",
    "psychological_traits",
    "ai_error",
    "ai_error_category",
    "manual_analysis_notes",
)


def submission_snapshot(submission: TestSubmission) -> Dict[str, Any]:
    """Plain copy of a submission's visible fields, detached from the session."""
    snapshot = {name: getattr(submission, name) for name in SUBMISSION_FIELDS}
    snapshot["answers"] = list(snapshot["answers"] or [])
    return snapshot


def needs_analysis(submission: TestSubmission) -> bool:
    """Analysis runs only for a finished submission that is still pending_ai."""
    return (
        submission.submitted_at is not None
        and submission.analysis_status == AnalysisStatus.PENDING_AI
    )


def outcome_fields(result: AnalysisResult) -> Dict[str, Any]:
    """Submission fields that record an analysis outcome."""
    if result.succeeded:
        return {
            "analysis_status": AnalysisStatus.AI_COMPLETED,
            "psychological_traits": result.psychological_traits,
            "ai_error": None,
            "ai_error_category": None,
        }
    error = result.error
    return {
        "analysis_status": AnalysisStatus.AI_FAILED_PENDING_MANUAL,
        "psychological_traits": None,
        "ai_error": error.message if error else None,
        "ai_error_category": error.category.value if error else None,
    }


async def call_provider(
    provider: AnalysisProvider, responses: str, time_taken: int
) -> AnalysisResult:
    """Invoke the provider once; an unexpected exception becomes a classified failure."""
    try:
        return await provider.analyze(responses, time_taken)
    except Exception as e:
        return ErrorClassifier.to_result(e, provider.get_provider_name())


async def analyze_if_pending(
    repo: SubmissionRepository,
    provider: AnalysisProvider,
    test: Test,
    submission: TestSubmission,
    claim_timeout_seconds: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Run the analysis step for a submission if it is due.

    Args:
        repo: Submission repository bound to the request's session
        provider: Analysis collaborator
        test: The submission's test (questions supply the prompt text)
        submission: The submission as just read
        claim_timeout_seconds: Age after which another caller's claim is
            considered abandoned (defaults to ANALYSIS_CLAIM_TIMEOUT_SECONDS)

    Returns:
        A snapshot of the submission after the step. If the outcome could
        not be written back, the snapshot carries the outcome anyway.
    """
    if not needs_analysis(submission):
        return submission_snapshot(submission)

    if claim_timeout_seconds is None:
        claim_timeout_seconds = settings.ANALYSIS_CLAIM_TIMEOUT_SECONDS

    submission_id = submission.id
    log_extra = {"submission_id": submission_id, "test_id": submission.test_id}
    claimed_at = utc_now()
    if not await repo.claim_for_analysis(submission_id, claimed_at, claim_timeout_seconds):
        logger.info(
            f"Analysis for submission {submission_id} already claimed, skipping",
            extra=log_extra,
        )
        current = await repo.get(submission_id)
        return submission_snapshot(current if current is not None else submission)

    snapshot = submission_snapshot(submission)
    logger.info(f"Analysis claimed for submission {submission_id}", extra=log_extra)

    responses = build_responses_text(test.questions, snapshot["answers"])
    result = await call_provider(provider, responses, snapshot["time_taken"])
    fields = outcome_fields(result)

    if result.succeeded:
        logger.info(
            f"Analysis completed for submission {submission_id}",
            extra={**log_extra, "analysis_status": fields["analysis_status"].value},
        )
    else:
        logger.warning(
            f"Analysis failed for submission {submission_id}: "
            f"{result.error.detail if result.error else 'no detail'}",
            extra={
                **log_extra,
                "analysis_status": fields["analysis_status"].value,
                "error_category": fields["ai_error_category"],
            },
        )

    try:
        stored = await repo.record_analysis(
            submission_id, claimed_at=claimed_at, **fields
        )
    except SQLAlchemyError as e:
        await repo.db.rollback()
        logger.error(
            f"Failed to store analysis outcome for submission {submission_id}: {e}",
            extra=log_extra,
        )
        snapshot.update(fields)
        return snapshot

    if not stored:
        # An admin changed the status (or a newer claim took over) while the
        # call was running; their state wins.
        logger.info(
            f"Analysis outcome for submission {submission_id} discarded: "
            "submission changed while analysis ran",
            extra=log_extra,
        )

    current = await repo.get(submission_id)
    if current is None:
        snapshot.update(fields)
        return snapshot
    return submission_snapshot(current)
