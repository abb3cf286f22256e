"""Prompt building for the trait analysis collaborator."""

from typing import Any, Iterable, List, Mapping, Optional, Sequence

UNKNOWN_QUESTION_TEXT = "Unknown question"

ANALYSIS_PROMPT_TEMPLATE = """Analyze the following test responses and time taken to respond, providing insights into the test taker's psychological traits:

Responses: {responses}
Time Taken (seconds): {time_taken}

Provide a detailed analysis of the psychological traits suggested by these responses.

Respond with a JSON object of the form {{"psychologicalTraits": "<analysis>"}} and nothing else."""


def _get(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def describe_answer(question: Any, value: Any) -> str:
    """
    Render an answer value for the prompt.

    Multiple-choice option ids become the option text; rating-scale values
    are shown against their bounds and labels; anything else is shown as is.
    """
    if question is None:
        return str(value)

    question_type = _get(question, "question_type")
    question_type = getattr(question_type, "value", question_type)

    if question_type == "multiple-choice":
        for option in _get(question, "options") or []:
            if _get(option, "id") == value:
                return str(_get(option, "text"))
        return str(value)

    if question_type == "rating-scale":
        scale_min = _get(question, "scale_min")
        scale_max = _get(question, "scale_max")
        min_label = _get(question, "min_label") or str(scale_min)
        max_label = _get(question, "max_label") or str(scale_max)
        return f"{value} (scale {scale_min} = {min_label} to {scale_max} = {max_label})"

    return str(value)


def build_responses_text(
    questions: Sequence[Any], answers: Iterable[Mapping[str, Any]]
) -> str:
    """
    Join answered questions into the collaborator's ``responses`` text.

    Each answer becomes a ``Q: <question>\\nA: <answer>`` block and blocks are
    separated by a blank line, in the order the answers were given.
    Unanswered questions are left out.
    """
    by_id = {_get(question, "id"): question for question in questions}
    blocks: List[str] = []
    for answer in answers:
        question = by_id.get(answer.get("question_id"))
        question_text = _get(question, "text") if question is not None else None
        blocks.append(
            f"Q: {question_text or UNKNOWN_QUESTION_TEXT}\n"
            f"A: {describe_answer(question, answer.get('value'))}"
        )
    return "\n\n".join(blocks)


def build_analysis_prompt(responses: str, time_taken: int, template: Optional[str] = None) -> str:
    """Fill the analysis prompt template."""
    return (template or ANALYSIS_PROMPT_TEMPLATE).format(
        responses=responses, time_taken=time_taken
    )
