"""
Shape rules for questions.

A question's fields depend on its type:

- multiple-choice: at least two options, each ``{"id", "text"}``; no scale
- rating-scale: integer bounds with ``scale_min < scale_max`` and optional
  end labels; no options
- open-ended: neither options nor scale

These functions work on plain dicts so the same rules guard question
creation, partial updates after merging, and any script that writes
questions directly.
"""
import uuid
from typing import Any, Dict, List, Optional

from psychevaluator.models import QuestionType

MIN_CHOICE_OPTIONS = 2
DEFAULT_SCALE_MIN = 1
DEFAULT_SCALE_MAX = 5

SCALE_FIELDS = ("scale_min", "scale_max", "min_label", "max_label")
QUESTION_FIELDS = ("text", "question_type", "options") + SCALE_FIELDS


class QuestionRuleError(ValueError):
    """A question's fields are inconsistent with its type."""


def normalize_options(options: Optional[List[Any]]) -> List[Dict[str, str]]:
    """
    Return options as ``{"id", "text"}`` dicts in the given display order.

    Options may be dicts or objects with ``id``/``text`` attributes. Options
    supplied without an id get a generated one; text is stripped.
    """
    normalized = []
    for option in options or []:
        if isinstance(option, dict):
            option_id = option.get("id")
            text = option.get("text", "")
        else:
            option_id = getattr(option, "id", None)
            text = getattr(option, "text", "")
        normalized.append(
            {"id": option_id or str(uuid.uuid4()), "text": (text or "").strip()}
        )
    return normalized


def validate_question_fields(fields: Dict[str, Any]) -> None:
    """
    Check a complete set of question fields against its type.

    Raises:
        QuestionRuleError: If the fields violate the rules for the type
    """
    if not (fields.get("text") or "").strip():
        raise QuestionRuleError("Question text cannot be empty.")

    question_type = QuestionType(fields["question_type"])

    if question_type == QuestionType.MULTIPLE_CHOICE:
        options = fields.get("options") or []
        if len(options) < MIN_CHOICE_OPTIONS:
            raise QuestionRuleError(
                f"A multiple-choice question needs at least {MIN_CHOICE_OPTIONS} options."
            )
        if any(not option["text"] for option in options):
            raise QuestionRuleError("Option text cannot be empty.")
        ids = [option["id"] for option in options]
        if len(set(ids)) != len(ids):
            raise QuestionRuleError("Option IDs must be unique within a question.")

    elif question_type == QuestionType.RATING_SCALE:
        scale_min = fields.get("scale_min")
        scale_max = fields.get("scale_max")
        if scale_min is None or scale_max is None:
            raise QuestionRuleError(
                "A rating-scale question needs both a minimum and a maximum."
            )
        if scale_min >= scale_max:
            raise QuestionRuleError(
                "The scale maximum must be greater than the scale minimum."
            )


def _normalize_for_type(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Clear the fields that don't belong to the question's type."""
    question_type = QuestionType(fields["question_type"])
    fields["question_type"] = question_type
    fields["text"] = (fields.get("text") or "").strip()

    if question_type == QuestionType.MULTIPLE_CHOICE:
        fields["options"] = normalize_options(fields.get("options"))
    else:
        fields["options"] = None

    if question_type != QuestionType.RATING_SCALE:
        for name in SCALE_FIELDS:
            fields[name] = None
    return fields


def build_question_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the persisted fields for a new question.

    Rating-scale bounds default to 1..5 when omitted.

    Raises:
        QuestionRuleError: If the resulting question is invalid
    """
    fields = {name: data.get(name) for name in QUESTION_FIELDS}
    if QuestionType(fields["question_type"]) == QuestionType.RATING_SCALE:
        if fields["scale_min"] is None:
            fields["scale_min"] = DEFAULT_SCALE_MIN
        if fields["scale_max"] is None:
            fields["scale_max"] = DEFAULT_SCALE_MAX
    fields = _normalize_for_type(fields)
    validate_question_fields(fields)
    return fields


def merge_question_update(
    current: Dict[str, Any], changes: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Merge a partial update into a question's current fields.

    Fields absent from ``changes`` keep their current values, so rating-scale
    bounds survive an update that only touches the text. Switching to
    rating-scale from another type fills in default bounds where none are
    given. The merged result is normalised for its type and validated before
    anything is written.

    Raises:
        QuestionRuleError: If the merged question is invalid
    """
    merged = {name: current.get(name) for name in QUESTION_FIELDS}
    merged.update({k: v for k, v in changes.items() if k in QUESTION_FIELDS})

    if QuestionType(merged["question_type"]) == QuestionType.RATING_SCALE:
        if merged["scale_min"] is None:
            merged["scale_min"] = DEFAULT_SCALE_MIN
        if merged["scale_max"] is None:
            merged["scale_max"] = DEFAULT_SCALE_MAX

    merged = _normalize_for_type(merged)
    validate_question_fields(merged)
    return merged
