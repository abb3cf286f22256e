"""
Shared FastAPI dependencies: repositories and the analysis provider.

Tests and alternative deployments override these through
``app.dependency_overrides``.
"""
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.analysis import AnalysisProvider, create_analysis_provider
from psychevaluator.models import get_db
from psychevaluator.repositories import CatalogRepository, SubmissionRepository


def get_catalog_repository(db: AsyncSession = Depends(get_db)) -> CatalogRepository:
    return CatalogRepository(db)


def get_submission_repository(
    db: AsyncSession = Depends(get_db),
) -> SubmissionRepository:
    return SubmissionRepository(db)


@lru_cache(maxsize=1)
def get_analysis_provider() -> AnalysisProvider:
    """The configured analysis provider, built once per process."""
    return create_analysis_provider()
