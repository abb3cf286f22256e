"""
Repositories for catalog and submission persistence.

Endpoints receive these through FastAPI dependencies (see ``api.deps``),
so a different backing store can be injected without touching handlers.
"""
from .catalog import CatalogRepository
from .submissions import SubmissionRepository

__all__ = ["CatalogRepository", "SubmissionRepository"]
