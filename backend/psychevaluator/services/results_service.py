"""
Helpers that shape catalog and submission records for responses.
"""
from typing import Any, Iterable, List, Mapping, Sequence, Union

from psychevaluator.analysis.prompts import describe_answer
from psychevaluator.core.player import is_blank_answer, question_time_limit
from psychevaluator.models import Question, Test
from psychevaluator.schemas import (
    AnsweredQuestion,
    PublicQuestionResponse,
    PublicTestDetail,
    PublicTestSummary,
    QuestionResponse,
    TestSummaryResponse,
)


def count_unanswered(
    questions: Sequence[Union[Question, QuestionResponse]], answers: Iterable[Mapping[str, Any]]
) -> int:
    """Questions with no answer, or only a blank one."""
    answered = {
        answer["question_id"]
        for answer in answers
        if not is_blank_answer(answer.get("value"))
    }
    return sum(1 for question in questions if question.id not in answered)


def pair_answers(
    questions: Sequence[Union[Question, QuestionResponse]], answers: Iterable[Mapping[str, Any]]
) -> List[AnsweredQuestion]:
    """Pair each stored answer with its question's text, in answer order."""
    by_id = {question.id: question for question in questions}
    paired = []
    for answer in answers:
        question = by_id.get(answer["question_id"])
        paired.append(
            AnsweredQuestion(
                question_id=answer["question_id"],
                question_text=question.text if question is not None else None,
                question_type=question.question_type if question is not None else None,
                value=answer["value"],
                display_value=describe_answer(question, answer["value"]),
            )
        )
    return paired


def to_public_question(question: Question) -> PublicQuestionResponse:
    base = QuestionResponse.model_validate(question)
    return PublicQuestionResponse(
        **base.model_dump(),
        time_limit_seconds=question_time_limit(question.question_type),
    )


def to_public_detail(test: Test) -> PublicTestDetail:
    questions = [to_public_question(question) for question in test.questions]
    return PublicTestDetail(
        id=test.id,
        title=test.title,
        description=test.description,
        questions=questions,
        total_time_limit_seconds=sum(q.time_limit_seconds for q in questions),
    )


def to_public_summary(test: Test) -> PublicTestSummary:
    return PublicTestSummary(
        id=test.id,
        title=test.title,
        description=test.description,
        question_count=len(test.questions),
    )


def to_summary(test: Test) -> TestSummaryResponse:
    return TestSummaryResponse(
        id=test.id,
        title=test.title,
        description=test.description,
        is_published=test.is_published,
        question_count=len(test.questions),
    )
