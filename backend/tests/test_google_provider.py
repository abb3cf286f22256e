"""
Tests for the Gemini analysis provider with the SDK mocked out.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import pytest
from google.api_core import exceptions as api_exceptions

from psychevaluator.analysis import AnalysisErrorCategory, UnconfiguredAnalysisProvider
from psychevaluator.analysis.factory import create_analysis_provider
from psychevaluator.analysis.google_provider import GoogleAnalysisProvider


@pytest.fixture
def mock_genai():
    with patch("psychevaluator.analysis.google_provider.genai") as genai:
        model = MagicMock()
        model.generate_content_async = AsyncMock()
        genai.GenerativeModel.return_value = model
        yield genai


@pytest.fixture
def provider(mock_genai):
    with patch("psychevaluator.analysis.google_provider.GenerationConfig"):
        yield GoogleAnalysisProvider(api_key="test-key", model="gemini-test", timeout_seconds=0.5)


def reply(text):
    response = MagicMock()
    response.text = text
    return response


class TestGoogleAnalysisProvider:
    async def test_configures_sdk(self, provider, mock_genai):
        mock_genai.configure.assert_called_once_with(api_key="test-key")
        mock_genai.GenerativeModel.assert_called_once_with("gemini-test")
        assert provider.get_provider_name() == "google"

    async def test_success(self, provider):
        provider.client.generate_content_async.return_value = reply(
            '{"psychologicalTraits": "Calm and reflective."}'
        )

        result = await provider.analyze("Q: A?\nA: B", 30)

        assert result.succeeded
        assert result.psychological_traits == "Calm and reflective."
        prompt = provider.client.generate_content_async.call_args.args[0]
        assert "Q: A?\nA: B" in prompt
        assert "Time Taken (seconds): 30" in prompt

    async def test_error_payload(self, provider):
        provider.client.generate_content_async.return_value = reply('{"error": "nope"}')

        result = await provider.analyze("r", 1)

        assert result.error.category == AnalysisErrorCategory.GENERIC
        assert result.error.message == "nope"

    async def test_non_json_reply_is_invalid_output(self, provider):
        provider.client.generate_content_async.return_value = reply("Calm person")

        result = await provider.analyze("r", 1)

        assert result.error.category == AnalysisErrorCategory.INVALID_OUTPUT

    async def test_blocked_reply_is_invalid_output(self, provider):
        response = MagicMock()
        type(response).text = PropertyMock(side_effect=ValueError("blocked"))
        provider.client.generate_content_async.return_value = response

        result = await provider.analyze("r", 1)

        assert result.error.category == AnalysisErrorCategory.INVALID_OUTPUT

    async def test_overloaded(self, provider):
        provider.client.generate_content_async.side_effect = (
            api_exceptions.ServiceUnavailable("busy")
        )

        result = await provider.analyze("r", 1)

        assert result.error.category == AnalysisErrorCategory.OVERLOADED

    async def test_timeout(self, provider):
        async def slow(*args, **kwargs):
            await asyncio.sleep(5)

        provider.client.generate_content_async.side_effect = slow

        result = await provider.analyze("r", 1)

        assert result.error.category == AnalysisErrorCategory.TIMEOUT


class TestCreateAnalysisProvider:
    async def test_without_api_key_returns_unconfigured(self):
        with patch("psychevaluator.analysis.factory.settings") as mock_settings:
            mock_settings.GOOGLE_API_KEY = ""
            provider = create_analysis_provider()

        assert isinstance(provider, UnconfiguredAnalysisProvider)
        result = await provider.analyze("r", 1)
        assert result.error.category == AnalysisErrorCategory.NOT_CONFIGURED

    def test_with_api_key_returns_google(self, mock_genai):
        with patch("psychevaluator.analysis.factory.settings") as mock_settings:
            mock_settings.GOOGLE_API_KEY = "key"
            mock_settings.ANALYSIS_MODEL = "gemini-test"
            mock_settings.ANALYSIS_TEMPERATURE = 0.5
            mock_settings.ANALYSIS_MAX_TOKENS = 100
            mock_settings.ANALYSIS_TIMEOUT_SECONDS = 10.0
            provider = create_analysis_provider()

        assert isinstance(provider, GoogleAnalysisProvider)
        assert provider.model == "gemini-test"
