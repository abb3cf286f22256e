"""
Tests for analysis failure classification and payload interpretation.
"""
import asyncio

import pytest
from google.api_core import exceptions as api_exceptions

from psychevaluator.analysis import AnalysisErrorCategory, AnalysisResult, result_from_payload
from psychevaluator.analysis.error_classifier import ErrorClassifier, message_for
from psychevaluator.core.error_responses import ErrorMessages


class TestClassifyException:
    @pytest.mark.parametrize(
        "error",
        [
            api_exceptions.TooManyRequests("slow down"),
            api_exceptions.ServiceUnavailable("busy"),
            api_exceptions.ResourceExhausted("quota"),
            api_exceptions.from_http_status(529, "overloaded"),
        ],
    )
    def test_overloaded(self, error):
        assert ErrorClassifier.classify_exception(error) == AnalysisErrorCategory.OVERLOADED

    @pytest.mark.parametrize(
        "error",
        [
            asyncio.TimeoutError(),
            TimeoutError("deadline"),
            api_exceptions.DeadlineExceeded("deadline"),
            api_exceptions.GatewayTimeout("gateway"),
            api_exceptions.from_http_status(408, "request timeout"),
        ],
    )
    def test_timeout(self, error):
        assert ErrorClassifier.classify_exception(error) == AnalysisErrorCategory.TIMEOUT

    @pytest.mark.parametrize(
        "error",
        [
            api_exceptions.InternalServerError("boom"),
            api_exceptions.InvalidArgument("bad"),
            RuntimeError("something overloaded"),
        ],
    )
    def test_generic(self, error):
        # Message text never decides the category
        assert ErrorClassifier.classify_exception(error) == AnalysisErrorCategory.GENERIC

    def test_retry_error_uses_cause(self):
        error = api_exceptions.RetryError(
            "gave up", cause=api_exceptions.ServiceUnavailable("busy")
        )
        assert ErrorClassifier.classify_exception(error) == AnalysisErrorCategory.OVERLOADED


class TestToResult:
    def test_overloaded_message(self):
        result = ErrorClassifier.to_result(
            api_exceptions.TooManyRequests("429"), "google"
        )

        assert result.succeeded is False
        assert result.error.category == AnalysisErrorCategory.OVERLOADED
        assert result.error.message == ErrorMessages.ANALYSIS_OVERLOADED
        assert "TooManyRequests" in result.error.detail

    def test_generic_message_carries_detail(self):
        result = ErrorClassifier.to_result(RuntimeError("kaput"), "google")
        assert result.error.message == ErrorMessages.analysis_failed("kaput")

    def test_message_for_each_category(self):
        assert message_for(AnalysisErrorCategory.TIMEOUT) == ErrorMessages.ANALYSIS_TIMEOUT
        assert (
            message_for(AnalysisErrorCategory.NOT_CONFIGURED)
            == ErrorMessages.ANALYSIS_NOT_CONFIGURED
        )
        assert message_for(AnalysisErrorCategory.GENERIC).startswith(
            "AI analysis service error"
        )


class TestResultFromPayload:
    def test_success(self):
        result = result_from_payload({"psychologicalTraits": "  Curious and calm. "})
        assert result == AnalysisResult.success("Curious and calm.")
        assert result.succeeded

    def test_snake_case_key_accepted(self):
        assert result_from_payload({"psychological_traits": "calm"}).succeeded

    def test_error_payload_is_generic_with_its_message(self):
        result = result_from_payload({"error": "Model refused"})

        assert result.error.category == AnalysisErrorCategory.GENERIC
        assert result.error.message == "Model refused"

    @pytest.mark.parametrize(
        "payload",
        [{}, {"psychologicalTraits": ""}, {"psychologicalTraits": 5}, ["calm"], None],
    )
    def test_invalid_output(self, payload):
        result = result_from_payload(payload)

        assert result.error.category == AnalysisErrorCategory.INVALID_OUTPUT
        assert result.error.message == ErrorMessages.ANALYSIS_INVALID_OUTPUT
