"""
Read-only database browser (sqladmin) for PsycheValuator.
"""
from .auth import AdminAuth
from .views import QuestionAdmin, TestAdmin, TestSubmissionAdmin

__all__ = [
    "AdminAuth",
    "TestAdmin",
    "QuestionAdmin",
    "TestSubmissionAdmin",
]
