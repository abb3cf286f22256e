"""
Respondent submission endpoints: start, finish, and the results view.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.analysis import AnalysisProvider
from psychevaluator.api.deps import (
    get_analysis_provider,
    get_catalog_repository,
    get_submission_repository,
)
from psychevaluator.api.v1.tests import get_published_test_or_404
from psychevaluator.core.auth import AdminSession, get_current_admin_optional
from psychevaluator.core.datetime_utils import elapsed_seconds, utc_now
from psychevaluator.core.db_error_handling import handle_db_error
from psychevaluator.core.error_responses import (
    ErrorMessages,
    raise_bad_request,
    raise_conflict,
    raise_forbidden,
    raise_not_found,
)
from psychevaluator.models import Test, TestSubmission, get_db
from psychevaluator.repositories import CatalogRepository, SubmissionRepository
from psychevaluator.schemas import (
    FinishSubmissionRequest,
    FinishSubmissionResponse,
    QuestionResponse,
    ResultsResponse,
    StartSubmissionRequest,
    SubmissionResponse,
)
from psychevaluator.services.analysis_service import analyze_if_pending
from psychevaluator.services.results_service import (
    count_unanswered,
    pair_answers,
    to_public_summary,
)

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_test_or_404(repo: CatalogRepository, test_id: str) -> Test:
    """
    Fetch a test regardless of publication.

    A respondent who started before the test was unpublished can still
    finish and see results.

    Raises:
        HTTPException: 404 if the test does not exist
    """
    test = await repo.get_test(test_id)
    if test is None:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
    return test


async def get_submission_for_test_or_404(
    repo: SubmissionRepository, test_id: str, submission_id: str
) -> TestSubmission:
    """
    Fetch a submission that belongs to the given test.

    Raises:
        HTTPException: 404 if the submission does not exist or belongs to
            another test
    """
    submission = await repo.get(submission_id)
    if submission is None or submission.test_id != test_id:
        raise_not_found(ErrorMessages.SUBMISSION_NOT_FOUND)
    return submission


@router.post(
    "/{test_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_submission(
    test_id: str,
    body: StartSubmissionRequest,
    admin: Optional[AdminSession] = Depends(get_current_admin_optional),
    catalog: CatalogRepository = Depends(get_catalog_repository),
    repo: SubmissionRepository = Depends(get_submission_repository),
    db: AsyncSession = Depends(get_db),
):
    """
    Start a test: create an answer-less submission for the respondent.

    Raises:
        HTTPException: 403 if the caller is signed in as an admin, 404 if the
            test is missing or unpublished, 403 if the store rejects the
            write because of an access policy
    """
    if admin is not None:
        raise_forbidden(ErrorMessages.ADMIN_CANNOT_TAKE_TEST)

    test = await get_published_test_or_404(catalog, test_id)

    async with handle_db_error(db, "start the test"):
        submission = await repo.create(test.id, body.full_name, body.email)
        logger.info(
            f"Submission {submission.id} started for test {test.id}",
            extra={"submission_id": submission.id, "test_id": test.id},
        )
        return SubmissionResponse.model_validate(submission)


@router.post(
    "/{test_id}/submissions/{submission_id}/finish",
    response_model=FinishSubmissionResponse,
)
async def finish_submission(
    test_id: str,
    submission_id: str,
    body: FinishSubmissionRequest,
    catalog: CatalogRepository = Depends(get_catalog_repository),
    repo: SubmissionRepository = Depends(get_submission_repository),
    db: AsyncSession = Depends(get_db),
):
    """
    Finish a test: store the answers and the elapsed time.

    The time taken is measured by the server from Start to this call. The
    submission moves to pending_ai. Unanswered questions have no entry.

    Raises:
        HTTPException: 404 if the test or submission is missing, 400 if an
            answer references a question outside the test, 409 if the
            submission was already finished
    """
    test = await get_test_or_404(catalog, test_id)
    submission = await get_submission_for_test_or_404(repo, test_id, submission_id)

    if submission.is_finished:
        raise_conflict(ErrorMessages.SUBMISSION_ALREADY_FINISHED)

    question_ids = {question.id for question in test.questions}
    unknown_ids = {answer.question_id for answer in body.answers} - question_ids
    if unknown_ids:
        raise_bad_request(ErrorMessages.unknown_question_ids(unknown_ids))

    answers = [answer.model_dump() for answer in body.answers]
    submitted_at = utc_now()
    time_taken = elapsed_seconds(submission.started_at, submitted_at)

    async with handle_db_error(db, "submit your answers"):
        if not await repo.finish(submission.id, answers, submitted_at, time_taken):
            # Another request finished it first
            raise_conflict(ErrorMessages.SUBMISSION_ALREADY_FINISHED)

        finished = await repo.get(submission.id)
        unanswered = count_unanswered(test.questions, answers)
        logger.info(
            f"Submission {submission.id} finished: {len(answers)} answered, "
            f"{unanswered} unanswered, {time_taken}s",
            extra={
                "submission_id": submission.id,
                "test_id": test.id,
                "analysis_status": finished.analysis_status.value,
            },
        )
        return FinishSubmissionResponse(
            submission=SubmissionResponse.model_validate(finished),
            unanswered_count=unanswered,
        )


@router.get("/{test_id}/results/{submission_id}", response_model=ResultsResponse)
async def get_results(
    test_id: str,
    submission_id: str,
    catalog: CatalogRepository = Depends(get_catalog_repository),
    repo: SubmissionRepository = Depends(get_submission_repository),
    provider: AnalysisProvider = Depends(get_analysis_provider),
    db: AsyncSession = Depends(get_db),
):
    """
    Results view for a submission.

    The first view of a finished pending_ai submission runs the analysis
    step once; later views (and concurrent ones) read the stored outcome.

    Raises:
        HTTPException: 404 if the test or submission is missing
    """
    test = await get_test_or_404(catalog, test_id)
    submission = await get_submission_for_test_or_404(repo, test_id, submission_id)

    # Detached copies: a failed write-back rolls the session back and
    # expires every loaded instance
    summary = to_public_summary(test)
    questions = [QuestionResponse.model_validate(q) for q in test.questions]

    async with handle_db_error(db, "load your results"):
        snapshot = await analyze_if_pending(repo, provider, test, submission)
        return ResultsResponse(
            test=summary,
            submission=SubmissionResponse.model_validate(snapshot),
            answers=pair_answers(questions, snapshot["answers"]),
            unanswered_count=count_unanswered(questions, snapshot["answers"]),
        )
