"""
Admin dashboard statistics.
"""
from fastapi import APIRouter, Depends

from psychevaluator.api.deps import get_catalog_repository, get_submission_repository
from psychevaluator.models import AnalysisStatus
from psychevaluator.repositories import CatalogRepository, SubmissionRepository
from psychevaluator.schemas import DashboardResponse

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    catalog: CatalogRepository = Depends(get_catalog_repository),
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    """Counts of tests and submissions, with finished submissions per status."""
    by_status = await submissions.count_by_status()
    total_tests = await catalog.count_tests()
    total_submissions = await submissions.count()
    return DashboardResponse(
        total_tests=total_tests,
        published_tests=await catalog.count_tests(published_only=True),
        total_submissions=total_submissions,
        finished_submissions=await submissions.count(finished_only=True),
        submissions_by_status={status.value: count for status, count in by_status.items()},
        awaiting_manual_review=by_status[AnalysisStatus.AI_FAILED_PENDING_MANUAL],
        average_submissions_per_test=(
            round(total_submissions / total_tests, 1) if total_tests else 0.0
        ),
    )
