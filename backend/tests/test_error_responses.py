"""
Tests for the HTTPException builders and message templates.
"""
import pytest
from fastapi import HTTPException

from psychevaluator.core.error_responses import (
    ErrorMessages,
    raise_conflict,
    raise_server_error,
    raise_unauthorized,
)


def test_unauthorized_advertises_bearer():
    with pytest.raises(HTTPException) as exc_info:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    assert exc_info.value.status_code == 401
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


def test_unauthorized_without_header():
    with pytest.raises(HTTPException) as exc_info:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN, include_www_authenticate=False)

    assert exc_info.value.headers is None


def test_server_error_carries_error_id():
    with pytest.raises(HTTPException) as exc_info:
        raise_server_error("Something went wrong.", error_id="abc-123")

    assert exc_info.value.status_code == 500
    assert exc_info.value.detail == "Something went wrong. (Error ID: abc-123)"


def test_conflict():
    with pytest.raises(HTTPException) as exc_info:
        raise_conflict(ErrorMessages.SUBMISSION_ALREADY_FINISHED)

    assert exc_info.value.status_code == 409


def test_templates():
    assert ErrorMessages.unknown_question_ids({"b", "a"}).startswith(
        "Unknown question IDs: a, b."
    )
    assert ErrorMessages.database_operation_failed("start the test") == (
        "Failed to start the test. Please try again later."
    )
