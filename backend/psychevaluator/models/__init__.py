"""
Models package for the PsycheValuator backend.
"""
from .base import Base, async_engine, AsyncSessionLocal, get_db
from .models import (
    Test,
    Question,
    TestSubmission,
    RevokedAdminToken,
    QuestionType,
    AnalysisStatus,
)

__all__ = [
    "Base",
    "async_engine",
    "AsyncSessionLocal",
    "get_db",
    "Test",
    "Question",
    "TestSubmission",
    "RevokedAdminToken",
    "QuestionType",
    "AnalysisStatus",
]
