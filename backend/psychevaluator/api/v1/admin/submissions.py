"""
Admin submission review: list, detail, manual review, and notification.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.api.deps import get_catalog_repository, get_submission_repository
from psychevaluator.core.db_error_handling import handle_db_error
from psychevaluator.core.error_responses import (
    ErrorMessages,
    raise_bad_request,
    raise_not_found,
    raise_service_unavailable,
)
from psychevaluator.models import AnalysisStatus, TestSubmission, get_db
from psychevaluator.repositories import CatalogRepository, SubmissionRepository
from psychevaluator.schemas import (
    AdminSubmissionDetail,
    NotificationResponse,
    ReviewUpdateRequest,
    SubmissionListItem,
    SubmissionResponse,
)
from psychevaluator.services.notification_service import (
    NotificationDeliveryError,
    compose_result_message,
    notify_rejection_reason,
    send_result_notification,
)
from psychevaluator.services.results_service import pair_answers

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_submission_or_404(
    repo: SubmissionRepository, submission_id: str
) -> TestSubmission:
    submission = await repo.get(submission_id)
    if submission is None:
        raise_not_found(ErrorMessages.SUBMISSION_NOT_FOUND)
    return submission


@router.get("/submissions", response_model=List[SubmissionListItem])
async def list_submissions(
    status: Optional[AnalysisStatus] = Query(None, description="Filter by status"),
    test_id: Optional[str] = Query(None, description="Filter by test"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    repo: SubmissionRepository = Depends(get_submission_repository),
):
    """
    Submissions newest first, with their test titles.

    Unfinished attempts are included; their ``submitted_at`` is null.
    """
    rows = await repo.list_with_titles(
        status=status, test_id=test_id, limit=limit, offset=offset
    )
    return [
        SubmissionListItem(
            id=submission.id,
            test_id=submission.test_id,
            test_title=title,
            full_name=submission.full_name,
            email=submission.email,
            time_taken=submission.time_taken,
            started_at=submission.started_at,
            submitted_at=submission.submitted_at,
            analysis_status=submission.analysis_status,
        )
        for submission, title in rows
    ]


@router.get("/submissions/{submission_id}", response_model=AdminSubmissionDetail)
async def get_submission(
    submission_id: str,
    repo: SubmissionRepository = Depends(get_submission_repository),
    catalog: CatalogRepository = Depends(get_catalog_repository),
):
    """A submission with its answers paired to the question text."""
    submission = await get_submission_or_404(repo, submission_id)
    test = await catalog.get_test(submission.test_id)
    questions = test.questions if test is not None else []
    return AdminSubmissionDetail(
        submission=SubmissionResponse.model_validate(submission),
        test_title=test.title if test is not None else None,
        answers=pair_answers(questions, submission.answers or []),
    )


@router.patch("/submissions/{submission_id}/review", response_model=SubmissionResponse)
async def review_submission(
    submission_id: str,
    body: ReviewUpdateRequest,
    repo: SubmissionRepository = Depends(get_submission_repository),
    db: AsyncSession = Depends(get_db),
):
    """
    Record manual notes and/or set the analysis status.

    Any status may be set. Setting pending_ai lets the next results view
    run the analysis again.
    """
    submission = await get_submission_or_404(repo, submission_id)
    changes = body.model_dump(exclude_unset=True)

    async with handle_db_error(db, "save the review"):
        submission = await repo.update_review(submission, changes)
        logger.info(
            f"Review updated for submission {submission_id}: "
            f"{', '.join(sorted(changes))}",
            extra={
                "submission_id": submission_id,
                "analysis_status": submission.analysis_status.value,
            },
        )
        return SubmissionResponse.model_validate(submission)


@router.post("/submissions/{submission_id}/notify", response_model=NotificationResponse)
async def notify_submission(
    submission_id: str,
    repo: SubmissionRepository = Depends(get_submission_repository),
    catalog: CatalogRepository = Depends(get_catalog_repository),
):
    """
    Compose and send the result notification for a reviewed submission.

    Raises:
        HTTPException: 400 if the notes are empty or the review is not
            completed, 503 if the configured channel fails to deliver
    """
    submission = await get_submission_or_404(repo, submission_id)

    reason = notify_rejection_reason(submission)
    if reason is not None:
        raise_bad_request(reason)

    test = await catalog.get_test(submission.test_id)
    message = compose_result_message(submission, test.title if test is not None else None)

    try:
        receipt = await send_result_notification(message, submission_id)
    except NotificationDeliveryError:
        raise_service_unavailable(ErrorMessages.NOTIFICATION_DELIVERY_FAILED)

    return NotificationResponse(
        recipient=message.recipient,
        subject=message.subject,
        body=message.body,
        channel=receipt.channel,
        delivered=receipt.delivered,
    )
