"""
Admin API endpoints.

Everything except the auth sub-router requires a valid admin session
token (``Authorization: Bearer``).

Submodules:
    - auth: Login, logout, and the current session
    - dashboard: Catalog and submission counts
    - tests: Test catalog management
    - questions: Questions within a test
    - submissions: Submission review and result notification
"""
from fastapi import APIRouter, Depends

from psychevaluator.core.auth import get_current_admin

from . import auth, dashboard, questions, submissions, tests

router = APIRouter()

router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Admin - Auth"],
)

router.include_router(
    dashboard.router,
    tags=["Admin - Dashboard"],
    dependencies=[Depends(get_current_admin)],
)

router.include_router(
    tests.router,
    prefix="/tests",
    tags=["Admin - Tests"],
    dependencies=[Depends(get_current_admin)],
)

router.include_router(
    questions.router,
    prefix="/tests",
    tags=["Admin - Questions"],
    dependencies=[Depends(get_current_admin)],
)

router.include_router(
    submissions.router,
    tags=["Admin - Submissions"],
    dependencies=[Depends(get_current_admin)],
)
