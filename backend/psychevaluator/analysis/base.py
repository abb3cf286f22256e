"""Base types for the trait analysis collaborator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class AnalysisErrorCategory(str, Enum):
    """Why an analysis call did not produce a trait summary."""

    OVERLOADED = "overloaded"  # Provider reports it is busy or out of capacity
    TIMEOUT = "timeout"  # No answer within the deadline
    INVALID_OUTPUT = "invalid_output"  # Answer arrived but lacked the summary
    NOT_CONFIGURED = "not_configured"  # No API key or provider configured
    GENERIC = "generic"  # Anything else, including an explicit error payload


@dataclass(frozen=True)
class AnalysisError:
    """A classified analysis failure.

    Attributes:
        category: Failure category
        message: User-readable message stored on the submission
        detail: Technical detail for logs (exception type, provider text)
    """

    category: AnalysisErrorCategory
    message: str
    detail: str = ""


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one analysis call: a trait summary or a classified error."""

    psychological_traits: Optional[str] = None
    error: Optional[AnalysisError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and bool(self.psychological_traits)

    @classmethod
    def success(cls, psychological_traits: str) -> "AnalysisResult":
        return cls(psychological_traits=psychological_traits)

    @classmethod
    def failure(
        cls, category: AnalysisErrorCategory, message: str, detail: str = ""
    ) -> "AnalysisResult":
        return cls(error=AnalysisError(category=category, message=message, detail=detail))


class AnalysisProvider(ABC):
    """Abstract base class for analysis collaborator integrations.

    Implementations take the concatenated question/answer text and the time
    taken, and return an AnalysisResult. They never raise for collaborator
    failures: every failure is returned as a classified error.
    """

    def __init__(self, model: str = ""):
        self.model = model

    @abstractmethod
    async def analyze(self, responses: str, time_taken: int) -> AnalysisResult:
        """
        Analyze test responses.

        Args:
            responses: Question/answer pairs as text
            time_taken: Seconds the respondent took to finish

        Returns:
            AnalysisResult with either psychological_traits or error set
        """
        pass

    def get_provider_name(self) -> str:
        """
        Get the name of this provider.

        Returns:
            Provider name (e.g., "google")
        """
        return self.__class__.__name__.replace("AnalysisProvider", "").lower()


def result_from_payload(payload: Any) -> AnalysisResult:
    """
    Interpret a collaborator payload.

    ``{"psychologicalTraits": "..."}`` with non-empty text is a success.
    ``{"error": "..."}`` is a GENERIC failure carrying that message. Anything
    else (missing field, wrong type, empty text) is INVALID_OUTPUT.
    """
    # Deferred import: error_classifier imports this module
    from psychevaluator.analysis.error_classifier import message_for

    if isinstance(payload, dict):
        traits = payload.get("psychologicalTraits", payload.get("psychological_traits"))
        if isinstance(traits, str) and traits.strip():
            return AnalysisResult.success(traits.strip())
        error = payload.get("error")
        if isinstance(error, str) and error.strip():
            return AnalysisResult.failure(
                AnalysisErrorCategory.GENERIC, error.strip(), detail="error payload"
            )
        reason = (
            "psychologicalTraits missing"
            if traits is None
            else "psychologicalTraits empty or not a string"
        )
    else:
        reason = f"payload of type {type(payload).__name__}"

    return AnalysisResult.failure(
        AnalysisErrorCategory.INVALID_OUTPUT,
        message_for(AnalysisErrorCategory.INVALID_OUTPUT),
        detail=reason,
    )
