"""Construction of the configured analysis provider."""

import logging

from psychevaluator.core.config import settings

from .base import AnalysisErrorCategory, AnalysisProvider, AnalysisResult
from .error_classifier import message_for

logger = logging.getLogger(__name__)


class UnconfiguredAnalysisProvider(AnalysisProvider):
    """Stands in when no API key is set: every call fails as NOT_CONFIGURED."""

    async def analyze(self, responses: str, time_taken: int) -> AnalysisResult:
        return AnalysisResult.failure(
            AnalysisErrorCategory.NOT_CONFIGURED,
            message_for(AnalysisErrorCategory.NOT_CONFIGURED),
            detail="GOOGLE_API_KEY is not set",
        )


def create_analysis_provider() -> AnalysisProvider:
    """
    Build the analysis provider from settings.

    Returns:
        GoogleAnalysisProvider when GOOGLE_API_KEY is set, otherwise an
        UnconfiguredAnalysisProvider so submissions fall back to manual review.
    """
    if not settings.GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY not configured - AI analysis is disabled")
        return UnconfiguredAnalysisProvider()

    from .google_provider import GoogleAnalysisProvider

    return GoogleAnalysisProvider(
        api_key=settings.GOOGLE_API_KEY,
        model=settings.ANALYSIS_MODEL,
        temperature=settings.ANALYSIS_TEMPERATURE,
        max_tokens=settings.ANALYSIS_MAX_TOKENS,
        timeout_seconds=settings.ANALYSIS_TIMEOUT_SECONDS,
    )
