"""Google Generative AI provider for trait analysis."""

import asyncio
import json
from typing import Any

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

from .base import AnalysisErrorCategory, AnalysisProvider, AnalysisResult, result_from_payload
from .error_classifier import ErrorClassifier, message_for
from .prompts import build_analysis_prompt


class GoogleAnalysisProvider(AnalysisProvider):
    """Gemini integration for trait analysis."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        temperature: float = 0.7,
        max_tokens: int = 2048,
        timeout_seconds: float = 60.0,
    ):
        """
        Initialize Google provider.

        Args:
            api_key: Google API key
            model: Model to use (default: gemini-1.5-flash)
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            timeout_seconds: Upper bound on a single call
        """
        super().__init__(model)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        genai.configure(api_key=api_key)
        self.client = genai.GenerativeModel(model)

    async def analyze(self, responses: str, time_taken: int) -> AnalysisResult:
        """
        Ask the model for a trait summary.

        The model is asked for JSON; the reply is parsed and interpreted by
        result_from_payload. Call failures are classified, never raised.
        """
        prompt = build_analysis_prompt(responses, time_taken)
        generation_config = GenerationConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
            response_mime_type="application/json",
        )

        try:
            response = await asyncio.wait_for(
                self.client.generate_content_async(
                    prompt,
                    generation_config=generation_config,
                ),
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            return ErrorClassifier.to_result(e, self.get_provider_name())

        return self._parse_response(response)

    def _parse_response(self, response: Any) -> AnalysisResult:
        try:
            # .text raises ValueError when the reply has no text part
            # (e.g. blocked by safety filters)
            text = response.text
        except ValueError as e:
            return AnalysisResult.failure(
                AnalysisErrorCategory.INVALID_OUTPUT,
                message_for(AnalysisErrorCategory.INVALID_OUTPUT),
                detail=str(e),
            )

        try:
            payload = json.loads(text) if text else None
        except json.JSONDecodeError as e:
            return AnalysisResult.failure(
                AnalysisErrorCategory.INVALID_OUTPUT,
                message_for(AnalysisErrorCategory.INVALID_OUTPUT),
                detail=f"Failed to parse JSON response: {e}",
            )

        return result_from_payload(payload)
