"""
Admin catalog management: tests.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.api.deps import get_catalog_repository
from psychevaluator.core.db_error_handling import handle_db_error
from psychevaluator.core.error_responses import ErrorMessages, raise_not_found
from psychevaluator.models import Test, get_db
from psychevaluator.repositories import CatalogRepository
from psychevaluator.schemas import (
    TestCreate,
    TestDetailResponse,
    TestPublicationUpdate,
    TestSummaryResponse,
    TestUpdate,
)
from psychevaluator.services.results_service import to_summary

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_test_or_404(repo: CatalogRepository, test_id: str) -> Test:
    """
    Fetch any test, published or not.

    Raises:
        HTTPException: 404 if the test does not exist
    """
    test = await repo.get_test(test_id)
    if test is None:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
    return test


@router.get("", response_model=List[TestSummaryResponse])
async def list_tests(repo: CatalogRepository = Depends(get_catalog_repository)):
    """List every test, newest first."""
    return [to_summary(test) for test in await repo.list_tests()]


@router.post("", response_model=TestDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_test(
    body: TestCreate,
    repo: CatalogRepository = Depends(get_catalog_repository),
    db: AsyncSession = Depends(get_db),
):
    """Create a test with an empty question list."""
    async with handle_db_error(db, "create test"):
        test = await repo.create_test(
            title=body.title,
            description=body.description,
            is_published=body.is_published,
        )
        return TestDetailResponse.model_validate(test)


@router.get("/{test_id}", response_model=TestDetailResponse)
async def get_test(
    test_id: str,
    repo: CatalogRepository = Depends(get_catalog_repository),
):
    return TestDetailResponse.model_validate(await get_test_or_404(repo, test_id))


@router.patch("/{test_id}", response_model=TestDetailResponse)
async def update_test(
    test_id: str,
    body: TestUpdate,
    repo: CatalogRepository = Depends(get_catalog_repository),
    db: AsyncSession = Depends(get_db),
):
    """Merge the given fields into a test. Omitted fields keep their values."""
    test = await get_test_or_404(repo, test_id)
    async with handle_db_error(db, "update test"):
        test = await repo.update_test(test, body.model_dump(exclude_unset=True))
        return TestDetailResponse.model_validate(test)


@router.put("/{test_id}/publication", response_model=TestDetailResponse)
async def set_publication(
    test_id: str,
    body: TestPublicationUpdate,
    repo: CatalogRepository = Depends(get_catalog_repository),
    db: AsyncSession = Depends(get_db),
):
    """Publish or unpublish a test."""
    test = await get_test_or_404(repo, test_id)
    async with handle_db_error(db, "change test publication"):
        test = await repo.update_test(test, {"is_published": body.is_published})
        logger.info(
            f"Test {test_id} {'published' if body.is_published else 'unpublished'}",
            extra={"test_id": test_id},
        )
        return TestDetailResponse.model_validate(test)


@router.delete("/{test_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_test(
    test_id: str,
    repo: CatalogRepository = Depends(get_catalog_repository),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a test and all of its questions.

    Submissions taken on the test are kept.
    """
    test = await get_test_or_404(repo, test_id)
    async with handle_db_error(db, "delete test"):
        await repo.delete_test(test)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
