"""
Tests for database error classification and the handle_db_error context manager.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError, ProgrammingError

from psychevaluator.core.db_error_handling import (
    DatabaseOperationError,
    StoreAccessDenied,
    classify_db_error,
    handle_db_error,
    is_access_policy_violation,
)
from psychevaluator.core.error_responses import ErrorMessages


class DriverError(Exception):
    def __init__(self, message, sqlstate=None):
        super().__init__(message)
        self.sqlstate = sqlstate


def programming_error(message, sqlstate=None):
    return ProgrammingError("INSERT ...", {}, DriverError(message, sqlstate))


@pytest.fixture
def mock_db():
    db = MagicMock()
    db.rollback = AsyncMock()
    return db


class TestClassification:
    def test_sqlstate_42501(self):
        assert is_access_policy_violation(programming_error("denied", "42501"))

    def test_row_level_security_message(self):
        error = programming_error(
            'new row violates row-level security policy for table "test_submissions"'
        )
        assert is_access_policy_violation(error)

    def test_other_errors(self):
        assert not is_access_policy_violation(
            OperationalError("SELECT 1", {}, DriverError("database is locked"))
        )

    def test_classify(self):
        denied = classify_db_error("start test", programming_error("x", "42501"))
        other = classify_db_error("start test", OperationalError("x", {}, DriverError("y")))

        assert isinstance(denied, StoreAccessDenied)
        assert denied.message == ErrorMessages.STORE_ACCESS_DENIED
        assert type(other) is DatabaseOperationError
        assert other.message.startswith("Failed to start test")


class TestHandleDbError:
    async def test_passes_through_on_success(self, mock_db):
        async with handle_db_error(mock_db, "save"):
            pass

        mock_db.rollback.assert_not_called()

    async def test_access_policy_is_403(self, mock_db):
        with pytest.raises(HTTPException) as exc_info:
            async with handle_db_error(mock_db, "start test"):
                raise programming_error("permission denied for table", "42501")

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == ErrorMessages.STORE_ACCESS_DENIED
        mock_db.rollback.assert_awaited_once()

    async def test_other_failure_is_generic_500(self, mock_db):
        with pytest.raises(HTTPException) as exc_info:
            async with handle_db_error(mock_db, "create test"):
                raise OperationalError("INSERT", {}, DriverError("disk I/O error"))

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == ErrorMessages.database_operation_failed(
            "create test"
        )
        assert "disk" not in exc_info.value.detail
        mock_db.rollback.assert_awaited_once()

    async def test_http_exceptions_pass_through(self, mock_db):
        with pytest.raises(HTTPException) as exc_info:
            async with handle_db_error(mock_db, "update"):
                raise HTTPException(status_code=404, detail="Not found")

        assert exc_info.value.status_code == 404
        mock_db.rollback.assert_not_called()

    async def test_http_exceptions_wrapped_when_asked(self, mock_db):
        with pytest.raises(HTTPException) as exc_info:
            async with handle_db_error(mock_db, "update", reraise_http_exceptions=False):
                raise HTTPException(status_code=404, detail="Not found")

        assert exc_info.value.status_code == 500
        mock_db.rollback.assert_awaited_once()
