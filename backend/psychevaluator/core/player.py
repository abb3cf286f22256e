"""
TestPlayer: the timed question flow a respondent steps through.

Each question gets a countdown (longer for open-ended questions). A driver
calls ``tick()`` once per second; when the countdown reaches zero the player
advances to the next question, or finishes the attempt on the last one.
Navigation is linear in both directions and moving back keeps answers.
The player holds no I/O: a driver (see ``scripts/take_test.py``) owns the
timer and sends the finished attempt to the API.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from psychevaluator.core.config import settings
from psychevaluator.models.models import QuestionType

logger = logging.getLogger(__name__)

AnswerValue = Union[str, int]


def question_time_limit(
    question_type: Union[QuestionType, str],
    default_seconds: Optional[int] = None,
    open_ended_seconds: Optional[int] = None,
) -> int:
    """
    Countdown length for a question of the given type, in seconds.

    Args:
        question_type: The question's type
        default_seconds: Override for multiple-choice and rating-scale
            questions (defaults to DEFAULT_QUESTION_SECONDS)
        open_ended_seconds: Override for open-ended questions (defaults to
            OPEN_ENDED_QUESTION_SECONDS)
    """
    if QuestionType(question_type) == QuestionType.OPEN_ENDED:
        return (
            open_ended_seconds
            if open_ended_seconds is not None
            else settings.OPEN_ENDED_QUESTION_SECONDS
        )
    return default_seconds if default_seconds is not None else settings.DEFAULT_QUESTION_SECONDS


def is_blank_answer(value: Any) -> bool:
    """An answer that carries no content counts as unanswered."""
    return value is None or (isinstance(value, str) and not value.strip())


class TickOutcome(str, Enum):
    """What a single one-second tick did to the player."""

    COUNTING = "counting"
    ADVANCED = "advanced"
    FINISHED = "finished"
    IDLE = "idle"


@dataclass
class FinishedAttempt:
    """Everything needed to finish the submission through the API."""

    answers: List[Dict[str, AnswerValue]]
    unanswered_count: int
    elapsed_seconds: int
    timed_out: bool


class TestPlayer:
    """
    State machine for one respondent's pass through a test.

    Args:
        questions: Ordered questions as mappings with ``id`` and
            ``question_type``; a ``time_limit_seconds`` entry, when present,
            overrides the type-based countdown.
        clock: Monotonic clock in seconds, injectable for tests.
    """

    __test__ = False

    def __init__(
        self,
        questions: Sequence[Mapping[str, Any]],
        clock: Callable[[], float] = time.monotonic,
    ):
        self.questions = list(questions)
        self._clock = clock
        self._started = clock()
        self._answers: Dict[str, AnswerValue] = {}
        self.current_index = 0
        self.time_left = 0
        self.result: Optional[FinishedAttempt] = None
        self._reset_timer()

    @property
    def current_question(self) -> Optional[Mapping[str, Any]]:
        if self.is_finished or not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def is_finished(self) -> bool:
        return self.result is not None

    @property
    def is_last_question(self) -> bool:
        return self.current_index >= len(self.questions) - 1

    @property
    def progress(self) -> float:
        """Fraction of the test reached, counting the current question."""
        if not self.questions:
            return 1.0
        return (self.current_index + 1) / len(self.questions)

    @property
    def unanswered_count(self) -> int:
        return sum(
            1
            for question in self.questions
            if is_blank_answer(self._answers.get(question["id"]))
        )

    def current_answer(self) -> Optional[AnswerValue]:
        question = self.current_question
        if question is None:
            return None
        return self._answers.get(question["id"])

    def _time_limit(self, question: Mapping[str, Any]) -> int:
        limit = question.get("time_limit_seconds")
        if limit:
            return int(limit)
        return question_time_limit(question["question_type"])

    def _reset_timer(self) -> None:
        question = self.current_question
        self.time_left = self._time_limit(question) if question is not None else 0

    def _go_to(self, index: int) -> None:
        self.current_index = index
        self._reset_timer()

    def answer(self, value: AnswerValue) -> None:
        """
        Record an answer for the current question.

        A blank value clears the answer. The countdown keeps running.

        Raises:
            RuntimeError: If the attempt is already finished
        """
        question = self.current_question
        if question is None:
            raise RuntimeError("No question is active")
        if is_blank_answer(value):
            self._answers.pop(question["id"], None)
        else:
            self._answers[question["id"]] = value

    def next(self) -> bool:
        """Move forward one question. Returns False on the last question."""
        if self.is_finished or self.is_last_question:
            return False
        self._go_to(self.current_index + 1)
        return True

    def previous(self) -> bool:
        """Move back one question, keeping answers. Returns False on the first."""
        if self.is_finished or self.current_index == 0:
            return False
        self._go_to(self.current_index - 1)
        return True

    def tick(self) -> TickOutcome:
        """Advance the countdown by one second."""
        if self.is_finished or not self.questions:
            return TickOutcome.IDLE

        self.time_left -= 1
        if self.time_left > 0:
            return TickOutcome.COUNTING

        if not self.is_last_question:
            logger.debug(f"Time expired on question {self.current_index + 1}, advancing")
            self._go_to(self.current_index + 1)
            return TickOutcome.ADVANCED

        self._finish(timed_out=True)
        return TickOutcome.FINISHED

    def finish(self) -> FinishedAttempt:
        """
        End the attempt and return the answers in question order.

        Calling finish again returns the same attempt.
        """
        if self.result is not None:
            return self.result
        return self._finish(timed_out=False)

    def _finish(self, timed_out: bool) -> FinishedAttempt:
        answers = [
            {"question_id": question["id"], "value": self._answers[question["id"]]}
            for question in self.questions
            if question["id"] in self._answers
        ]
        self.result = FinishedAttempt(
            answers=answers,
            unanswered_count=self.unanswered_count,
            elapsed_seconds=max(0, round(self._clock() - self._started)),
            timed_out=timed_out,
        )
        self.time_left = 0
        return self.result
