"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter

from psychevaluator.api.v1 import admin, health, submissions, tests

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(tests.router, prefix="/tests", tags=["tests"])
api_router.include_router(submissions.router, prefix="/tests", tags=["submissions"])
api_router.include_router(admin.router, prefix="/admin")
