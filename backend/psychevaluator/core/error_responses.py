"""
Standardized error response messages and builders.

All user-facing error messages live here so wording stays consistent across
endpoints and log messages stay separate from what respondents and admins see.

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Use "Please try again later." for transient server errors

Usage:
    from psychevaluator.core.error_responses import ErrorMessages, raise_not_found

    if not test:
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
"""

from typing import Dict, NoReturn, Optional

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    INVALID_CREDENTIALS = "Invalid username or password."
    INVALID_TOKEN = "Invalid or expired admin session."
    INVALID_TOKEN_TYPE = "Invalid token type."
    ADMIN_LOGIN_NOT_CONFIGURED = "Admin login is not configured on this server."

    # ==========================================================================
    # Authorization Errors (403)
    # ==========================================================================
    ADMIN_CANNOT_TAKE_TEST = (
        "You are signed in as an administrator. "
        "Please log out before taking a test as a respondent."
    )
    STORE_ACCESS_DENIED = (
        "The data store rejected this change because of an access policy. "
        "Please contact the administrator."
    )

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    TEST_NOT_FOUND = "Test not found."
    QUESTION_NOT_FOUND = "Question not found."
    SUBMISSION_NOT_FOUND = "Submission not found."

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    SUBMISSION_ALREADY_FINISHED = "This submission has already been submitted."

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    NOTIFY_REQUIRES_NOTES = (
        "Manual analysis notes are empty. "
        "Add notes before sending the result to the respondent."
    )
    DUPLICATE_ANSWER = "Each question may be answered at most once."

    # ==========================================================================
    # Server Errors (500/503)
    # ==========================================================================
    NOTIFICATION_DELIVERY_FAILED = (
        "The notification could not be delivered. Please try again later."
    )

    # ==========================================================================
    # Analysis outcome messages (stored in TestSubmission.ai_error)
    # ==========================================================================
    ANALYSIS_OVERLOADED = (
        "The AI analysis service is currently overloaded. Please try again later."
    )
    ANALYSIS_TIMEOUT = (
        "The AI analysis service took too long to respond. Please try again later."
    )
    ANALYSIS_INVALID_OUTPUT = (
        "The AI analysis did not produce the expected output."
    )
    ANALYSIS_NOT_CONFIGURED = "The AI analysis service is not configured."

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def notify_requires_status(current_status: str) -> str:
        """Message when notification is attempted before review is complete."""
        return (
            f"Submission status is '{current_status}'. "
            "Set the status to 'manual_review_completed' before sending the result."
        )

    @staticmethod
    def unknown_question_ids(question_ids: set) -> str:
        """Message when submitted answers reference questions outside the test."""
        ids_str = ", ".join(str(qid) for qid in sorted(question_ids))
        return f"Unknown question IDs: {ids_str}. These questions do not belong to this test."

    @staticmethod
    def analysis_failed(detail: str) -> str:
        """Message for an analysis failure that has no more specific category."""
        return f"AI analysis service error: {detail}"

    @staticmethod
    def database_operation_failed(operation: str) -> str:
        """Generic message for database operation failures."""
        return f"Failed to {operation}. Please try again later."


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def _raise(
    status_code: int, detail: str, headers: Optional[Dict[str, str]] = None
) -> NoReturn:
    raise HTTPException(status_code=status_code, detail=detail, headers=headers)


def raise_bad_request(detail: str) -> NoReturn:
    """Raise 400 for a request that breaks a domain rule."""
    _raise(status.HTTP_400_BAD_REQUEST, detail)


def raise_unauthorized(detail: str, include_www_authenticate: bool = True) -> NoReturn:
    """Raise 401, advertising the Bearer scheme unless told not to."""
    headers = {"WWW-Authenticate": "Bearer"} if include_www_authenticate else None
    _raise(status.HTTP_401_UNAUTHORIZED, detail, headers)


def raise_forbidden(detail: str) -> NoReturn:
    _raise(status.HTTP_403_FORBIDDEN, detail)


def raise_not_found(detail: str) -> NoReturn:
    _raise(status.HTTP_404_NOT_FOUND, detail)


def raise_conflict(detail: str) -> NoReturn:
    """Raise 409 when the record is no longer in the state the request expects."""
    _raise(status.HTTP_409_CONFLICT, detail)


def raise_server_error(detail: str, error_id: Optional[str] = None) -> NoReturn:
    """
    Raise 500 with a generic message.

    Args:
        detail: User-facing message; never the underlying exception text
        error_id: Tracking ID appended so a report can be matched to the logs
    """
    if error_id:
        detail = f"{detail} (Error ID: {error_id})"
    _raise(status.HTTP_500_INTERNAL_SERVER_ERROR, detail)


def raise_service_unavailable(detail: str) -> NoReturn:
    """Raise 503 when a downstream collaborator (SMTP, login config) is unavailable."""
    _raise(status.HTTP_503_SERVICE_UNAVAILABLE, detail)
