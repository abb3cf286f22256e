"""Error classification for analysis collaborator failures.

Failures are classified by exception type and, for Google API errors, by
the HTTP status code the client library attaches. Message text is never
inspected.
"""

import asyncio
import logging
from typing import Optional, Tuple, Type

from google.api_core import exceptions as api_exceptions

from psychevaluator.analysis.base import AnalysisErrorCategory, AnalysisResult
from psychevaluator.core.error_responses import ErrorMessages

logger = logging.getLogger(__name__)

OVERLOADED_STATUS_CODES = frozenset({429, 503, 529})
TIMEOUT_STATUS_CODES = frozenset({408, 504})

_TIMEOUT_TYPES: Tuple[Type[BaseException], ...] = (
    asyncio.TimeoutError,
    TimeoutError,
    api_exceptions.DeadlineExceeded,
    api_exceptions.GatewayTimeout,
)

_OVERLOADED_TYPES: Tuple[Type[BaseException], ...] = (
    api_exceptions.ServiceUnavailable,
    api_exceptions.TooManyRequests,
    api_exceptions.ResourceExhausted,
)


def message_for(category: AnalysisErrorCategory, detail: Optional[str] = None) -> str:
    """User-readable message stored on the submission for a failure category."""
    if category == AnalysisErrorCategory.OVERLOADED:
        return ErrorMessages.ANALYSIS_OVERLOADED
    if category == AnalysisErrorCategory.TIMEOUT:
        return ErrorMessages.ANALYSIS_TIMEOUT
    if category == AnalysisErrorCategory.INVALID_OUTPUT:
        return ErrorMessages.ANALYSIS_INVALID_OUTPUT
    if category == AnalysisErrorCategory.NOT_CONFIGURED:
        return ErrorMessages.ANALYSIS_NOT_CONFIGURED
    return ErrorMessages.analysis_failed(detail or "unexpected error")


class ErrorClassifier:
    """Classifies exceptions raised while calling the analysis collaborator."""

    @staticmethod
    def classify_exception(error: BaseException) -> AnalysisErrorCategory:
        """Classify an exception.

        Args:
            error: The exception raised by the provider call

        Returns:
            The matching AnalysisErrorCategory
        """
        # A retry wrapper carries the last underlying failure
        if isinstance(error, api_exceptions.RetryError) and error.cause is not None:
            return ErrorClassifier.classify_exception(error.cause)

        if isinstance(error, _TIMEOUT_TYPES):
            return AnalysisErrorCategory.TIMEOUT
        if isinstance(error, _OVERLOADED_TYPES):
            return AnalysisErrorCategory.OVERLOADED

        if isinstance(error, api_exceptions.GoogleAPICallError):
            code = error.code
            if code in OVERLOADED_STATUS_CODES:
                return AnalysisErrorCategory.OVERLOADED
            if code in TIMEOUT_STATUS_CODES:
                return AnalysisErrorCategory.TIMEOUT

        return AnalysisErrorCategory.GENERIC

    @staticmethod
    def to_result(error: BaseException, provider: str) -> AnalysisResult:
        """Turn a provider exception into a failed AnalysisResult.

        Args:
            error: The exception raised by the provider call
            provider: Provider name for the log line

        Returns:
            AnalysisResult carrying the classified error
        """
        category = ErrorClassifier.classify_exception(error)
        detail = f"{type(error).__name__}: {error}"
        logger.warning(
            f"Analysis call to {provider} failed ({category.value}): {detail}",
            extra={"error_category": category.value},
        )
        return AnalysisResult.failure(
            category,
            message_for(category, str(error) or type(error).__name__),
            detail=detail,
        )
