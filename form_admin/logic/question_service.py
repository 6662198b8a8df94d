"""Question operations.

Creation runs field validation (request model), then the type-shape rules,
then container resolution and the top-level uniqueness check, and finally
the create-and-attach saga in the graph manager.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from form_admin.logic import audit
from form_admin.logic.context import ServiceContext
from form_admin.logic.entity_store import Document, drop_nulls
from form_admin.logic.errors import NotFoundError, ValidationError
from form_admin.logic.pagination import parse_page_query
from form_admin.logic.permissions import ensure_permitted
from form_admin.logic.question_validation import ensure_unique_question_text, validate_question_shape
from form_admin.models.actor import Actor
from form_admin.models.enums import Action, ContainerKind
from form_admin.models.requests import QuestionCreate, QuestionUpdate

logger = logging.getLogger(__name__)

# Request keys that address the container rather than describe the question
_CONTAINER_KEYS = ("form", "section", "parent_question")

# Stored columns that are never null; an explicit null in an update means "leave as is"
_NON_NULLABLE = ("required", "show", "prerequisites", "validation_factor", "options")


class QuestionService:
    def __init__(self, ctx: ServiceContext) -> None:
        self.ctx = ctx
        self.questions = ctx.stores.questions

    async def _load(self, question_id: str) -> Document:
        question = await self.questions.get({"_id": question_id})
        if question is None:
            raise NotFoundError("Question Does not Exist!!")
        return question

    async def create(self, actor: Actor, payload: QuestionCreate, *, question_type: Optional[str] = None) -> Document:
        """Create a question; `question_type` forces the type for the typed routes."""
        ensure_permitted(self.ctx.permissions, actor, Action.CREATE)
        data = payload.model_dump()
        if question_type is not None:
            data["type"] = question_type
        data = validate_question_shape(data)

        resolved = await self.ctx.graph.resolve_container(data)
        await ensure_unique_question_text(
            self.questions,
            data["question_text"],
            is_sub_question=resolved.container.kind == ContainerKind.QUESTION,
        )

        doc = {k: v for k, v in data.items() if k not in _CONTAINER_KEYS}
        doc["values"] = []
        doc["sub_questions"] = []
        question = await self.ctx.graph.create_question(doc, resolved)
        logger.info(
            "question_created id=%s type=%s container=%s:%s",
            question["_id"],
            question["type"],
            resolved.container.kind,
            resolved.container.id,
        )
        self.ctx.audit.track(audit.QUESTION_CREATE, actor, f"Created question {question['question_text']}")
        return question

    async def get(self, actor: Actor, question_id: str) -> Document:
        ensure_permitted(self.ctx.permissions, actor, Action.VIEW)
        question = await self._load(question_id)
        self.ctx.audit.track(audit.QUESTION_VIEW, actor, f"Viewed question {question['question_text']}")
        return question

    async def paginate(
        self,
        actor: Actor,
        *,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        sort_by: Optional[str] = None,
        question_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        ensure_permitted(self.ctx.permissions, actor, Action.VIEW)
        query = parse_page_query("question", self.ctx.pagination, page=page, per_page=per_page, sort_by=sort_by)
        filters = {"type": question_type} if question_type else {}
        return await self.questions.paginate(filters, page=query.page, limit=query.limit, sort=query.sort)

    async def update(self, actor: Actor, question_id: str, patch: QuestionUpdate) -> Document:
        """Apply scalar changes. Type-shape rules are not re-checked on update."""
        ensure_permitted(self.ctx.permissions, actor, Action.UPDATE)
        question = await self._load(question_id)
        changes = drop_nulls(patch.model_dump(exclude_unset=True), _NON_NULLABLE)
        if "question_text" in changes and not (changes["question_text"] or "").strip():
            raise ValidationError("Question Title is Empty")

        updated = await self.questions.update({"_id": question["_id"]}, changes)
        if updated is None:
            raise NotFoundError("Question Does not Exist!!")
        self.ctx.audit.track(
            audit.QUESTION_UPDATE,
            actor,
            f"Updated question {updated['question_text']}",
            diff=audit.diff_documents(question, updated),
        )
        return updated

    async def delete(
        self,
        actor: Actor,
        question_id: str,
        *,
        form_id: Optional[str] = None,
        parent_question_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        ensure_permitted(self.ctx.permissions, actor, Action.UPDATE)
        question, report = await self.ctx.graph.delete_question(
            question_id, form_id=form_id, parent_question_id=parent_question_id
        )
        self.ctx.audit.track(audit.QUESTION_REMOVE, actor, f"Removed question {question.get('question_text')}")
        return {"deleted": question, "cascade": report.to_dict()}


__all__ = ["QuestionService"]
