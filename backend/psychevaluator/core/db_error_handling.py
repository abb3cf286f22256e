"""
Database error handling utilities.

This module provides a reusable async context manager for handling
database errors consistently across endpoints. It centralizes the
common pattern of:
1. Rolling back the database session on error
2. Logging the error with context
3. Raising an appropriate HTTPException

A store rejection caused by an access policy (row-level security,
insufficient privilege) is reported separately from other failures so the
acting user sees a descriptive message instead of a generic error.

Usage:
    from psychevaluator.core.db_error_handling import handle_db_error

    async with handle_db_error(db, "create test"):
        db.add(test)
        await db.commit()
        await db.refresh(test)
        return test
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from psychevaluator.core.error_responses import ErrorMessages

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for insufficient_privilege, which is also what a
# row-level security violation reports.
INSUFFICIENT_PRIVILEGE_SQLSTATE = "42501"

_ACCESS_POLICY_MARKERS = ("row-level security", "permission denied")


class DatabaseOperationError(Exception):
    """Exception raised when a database operation fails.

    Provided for non-HTTP contexts (scripts, internal services) where
    HTTPException is not appropriate.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception that caused the failure
        message: The formatted error message
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Exception,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        self.message = message or f"Failed to {operation_name}: {str(original_error)}"
        super().__init__(self.message)


class StoreAccessDenied(DatabaseOperationError):
    """The data store refused the operation because of an access policy."""

    def __init__(self, operation_name: str, original_error: Exception):
        super().__init__(
            operation_name, original_error, message=ErrorMessages.STORE_ACCESS_DENIED
        )


def _sqlstate(error: BaseException) -> Optional[str]:
    """Extract the SQLSTATE code from a DBAPI error, if the driver exposes one."""
    orig = getattr(error, "orig", None)
    if orig is None:
        return None
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    return None


def is_access_policy_violation(error: BaseException) -> bool:
    """Return True if the store rejected the operation because of an access policy.

    Args:
        error: Exception raised by SQLAlchemy or the database driver

    Returns:
        True for SQLSTATE 42501 or a driver message naming row-level security
        or a permission failure.
    """
    if isinstance(error, DBAPIError) and _sqlstate(error) == INSUFFICIENT_PRIVILEGE_SQLSTATE:
        return True
    text = str(getattr(error, "orig", None) or error).lower()
    return any(marker in text for marker in _ACCESS_POLICY_MARKERS)


def classify_db_error(operation_name: str, error: Exception) -> DatabaseOperationError:
    """Wrap a database error in the matching DatabaseOperationError subclass."""
    if is_access_policy_violation(error):
        return StoreAccessDenied(operation_name, error)
    return DatabaseOperationError(operation_name, error)


@asynccontextmanager
async def handle_db_error(
    db: AsyncSession,
    operation_name: str,
    *,
    reraise_http_exceptions: bool = True,
    log_level: int = logging.ERROR,
) -> AsyncGenerator[None, None]:
    """Async context manager for handling database errors consistently.

    Args:
        db: The session to roll back on error.
        operation_name: Human-readable name of the operation for error messages
            and logging (e.g., "create test", "update review").
        reraise_http_exceptions: If True (default), HTTPExceptions raised within
            the context are re-raised without modification.
        log_level: Logging level for error messages. Defaults to logging.ERROR.

    Raises:
        HTTPException: 403 with a descriptive message when the store rejected
            the operation because of an access policy, otherwise 500 with a
            generic "Failed to <operation>" message. The session is rolled back
            in both cases.

    Note:
        Place the endpoint's return statement inside the block so response
        construction failures are logged with the same operation context.
    """
    try:
        yield
    except HTTPException:
        if reraise_http_exceptions:
            raise
        await db.rollback()
        logger.log(log_level, f"Request failed during {operation_name}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=ErrorMessages.database_operation_failed(operation_name),
        )
    except SQLAlchemyError as e:
        await db.rollback()
        if is_access_policy_violation(e):
            logger.warning(
                f"Store rejected {operation_name} because of an access policy: {e}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=ErrorMessages.STORE_ACCESS_DENIED,
            )
        logger.log(
            log_level,
            f"Database error during {operation_name}: {e}",
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=ErrorMessages.database_operation_failed(operation_name),
        )
