"""Type-aware structural validation for new questions.

Field presence and enum membership are handled by the pydantic request
model; this module enforces the rules that depend on the question type:

- FILL_IN_BLANK and GROUPED questions must not carry options
- MULTIPLE_CHOICE and SINGLE_CHOICE questions must carry options
- YES_NO options are ignored
- a question that is not always shown must declare prerequisites

Rules apply at creation only. Updates are stored as given.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from form_admin.logic.entity_store import EntityStore
from form_admin.logic.errors import (
    ConflictError,
    InvalidOptionsError,
    MissingOptionsError,
    MissingPrerequisitesError,
    ValidationError,
)
from form_admin.models.enums import QuestionType


def validate_question_shape(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Check type-specific shape and return the payload with options normalised.

    Raises a `ValidationError` subclass describing the first violated rule.
    """
    qtype = payload.get("type")
    if not qtype:
        raise ValidationError("Question Type is Empty")
    if qtype not in QuestionType.ALL:
        raise ValidationError(f"Question Type should be {','.join(QuestionType.ALL)}")

    options = [o for o in (payload.get("options") or [])]
    if qtype == QuestionType.FILL_IN_BLANK and options:
        raise InvalidOptionsError("Fill in Blank Questions Do not need options")
    if qtype == QuestionType.GROUPED and options:
        raise InvalidOptionsError("Grouped Questions Do not need options")
    if qtype in QuestionType.CHOICE:
        if not [o for o in options if isinstance(o, str) and o.strip()]:
            raise MissingOptionsError("Question Options is empty")
    if qtype == QuestionType.YES_NO:
        options = []

    if not payload.get("show") and not payload.get("prerequisites"):
        raise MissingPrerequisitesError("Question Requires Prerequisites")

    normalised = dict(payload)
    normalised["options"] = options
    return normalised


async def ensure_unique_question_text(store: EntityStore, question_text: str, *, is_sub_question: bool) -> None:
    """Reject a duplicate question_text for top-level questions.

    Sub-questions are exempt: the same prompt ("Size", "Unit") legitimately
    repeats under different grouped parents. The check is a read followed by
    a separate write and can race with a concurrent create.
    """
    if is_sub_question:
        return
    existing = await store.get({"question_text": question_text})
    if existing is not None:
        raise ConflictError("Question with that title already exists!!")


__all__ = ["validate_question_shape", "ensure_unique_question_text"]
