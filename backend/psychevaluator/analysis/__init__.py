"""
Trait analysis collaborator: provider interface, Gemini integration,
error classification, and prompt building.
"""
from .base import (
    AnalysisError,
    AnalysisErrorCategory,
    AnalysisProvider,
    AnalysisResult,
    result_from_payload,
)
from .factory import UnconfiguredAnalysisProvider, create_analysis_provider
from .prompts import build_analysis_prompt, build_responses_text

__all__ = [
    "AnalysisError",
    "AnalysisErrorCategory",
    "AnalysisProvider",
    "AnalysisResult",
    "result_from_payload",
    "UnconfiguredAnalysisProvider",
    "create_analysis_provider",
    "build_analysis_prompt",
    "build_responses_text",
]
