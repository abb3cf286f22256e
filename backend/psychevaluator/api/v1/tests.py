"""
Respondent catalog endpoints: published tests only.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from psychevaluator.api.deps import get_catalog_repository
from psychevaluator.core.error_responses import ErrorMessages, raise_not_found
from psychevaluator.models import Test
from psychevaluator.repositories import CatalogRepository
from psychevaluator.schemas import PublicTestDetail, PublicTestSummary
from psychevaluator.services.results_service import to_public_detail, to_public_summary

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_published_test_or_404(repo: CatalogRepository, test_id: str) -> Test:
    """
    Fetch a published test or raise 404.

    Unpublished tests are indistinguishable from missing ones for respondents.

    Raises:
        HTTPException: 404 if the test does not exist or is unpublished
    """
    test = await repo.get_test(test_id, published_only=True)
    if test is None:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
    return test


@router.get("", response_model=List[PublicTestSummary])
async def list_tests(repo: CatalogRepository = Depends(get_catalog_repository)):
    """List published tests, newest first."""
    tests = await repo.list_tests(published_only=True)
    return [to_public_summary(test) for test in tests]


@router.get("/{test_id}", response_model=PublicTestDetail)
async def get_test(
    test_id: str,
    repo: CatalogRepository = Depends(get_catalog_repository),
):
    """
    Get a published test with its ordered questions.

    Each question carries the countdown length the player should use.
    """
    test = await get_published_test_or_404(repo, test_id)
    return to_public_detail(test)
