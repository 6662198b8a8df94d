"""Question endpoints, including the typed creation shortcuts."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from form_admin.logic.errors import NotFoundError
from form_admin.logic.question_service import QuestionService
from form_admin.models.actor import Actor
from form_admin.models.enums import QuestionType, QuestionTypeName
from form_admin.models.requests import QuestionCreate, QuestionUpdate
from form_admin.models.responses import CascadeResult, Page
from form_admin.routes.dependencies import get_actor, get_question_service

router = APIRouter()

TYPE_SHORTCUTS: Dict[str, str] = {
    "yn": QuestionType.YES_NO,
    "fib": QuestionType.FILL_IN_BLANK,
    "sc": QuestionType.SINGLE_CHOICE,
    "mc": QuestionType.MULTIPLE_CHOICE,
    "grouped": QuestionType.GROUPED,
}


@router.post(
    "/forms/questions/create",
    status_code=201,
    summary="Create a question of the given type",
    operation_id="createQuestion",
    tags=["Questions"],
)
async def create_question(
    payload: QuestionCreate,
    actor: Actor = Depends(get_actor),
    service: QuestionService = Depends(get_question_service),
) -> Dict[str, Any]:
    return await service.create(actor, payload)


@router.post(
    "/forms/questions/create/{shortcut}",
    status_code=201,
    summary="Create a question with its type fixed by the path (yn, fib, sc, mc, grouped)",
    operation_id="createTypedQuestion",
    tags=["Questions"],
)
async def create_typed_question(
    shortcut: str,
    payload: QuestionCreate,
    actor: Actor = Depends(get_actor),
    service: QuestionService = Depends(get_question_service),
) -> Dict[str, Any]:
    question_type = TYPE_SHORTCUTS.get(shortcut)
    if question_type is None:
        raise NotFoundError(f"Unknown question type '{shortcut}'")
    return await service.create(actor, payload, question_type=question_type)


@router.get(
    "/forms/questions/paginate",
    response_model=Page,
    summary="List questions",
    operation_id="paginateQuestions",
    tags=["Questions"],
)
async def paginate_questions(
    page: Optional[int] = Query(default=None),
    per_page: Optional[int] = Query(default=None),
    sort_by: Optional[str] = Query(default=None),
    type: Optional[QuestionTypeName] = Query(default=None),
    actor: Actor = Depends(get_actor),
    service: QuestionService = Depends(get_question_service),
):
    return await service.paginate(actor, page=page, per_page=per_page, sort_by=sort_by, question_type=type)


@router.get(
    "/forms/questions/{id}",
    summary="Get a question",
    operation_id="getQuestion",
    tags=["Questions"],
)
async def get_question(
    id: str,
    actor: Actor = Depends(get_actor),
    service: QuestionService = Depends(get_question_service),
) -> Dict[str, Any]:
    return await service.get(actor, id)


@router.put(
    "/forms/questions/{id}",
    summary="Update a question's scalar fields",
    operation_id="updateQuestion",
    tags=["Questions"],
)
async def update_question(
    id: str,
    payload: QuestionUpdate,
    actor: Actor = Depends(get_actor),
    service: QuestionService = Depends(get_question_service),
) -> Dict[str, Any]:
    return await service.update(actor, id, payload)


@router.delete(
    "/forms/questions/{id}",
    response_model=CascadeResult,
    summary="Delete a question given its form or parent question",
    operation_id="deleteQuestion",
    tags=["Questions"],
)
async def delete_question(
    id: str,
    form: Optional[str] = Query(default=None),
    parent_question: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    service: QuestionService = Depends(get_question_service),
):
    return await service.delete(actor, id, form_id=form, parent_question_id=parent_question)


__all__ = ["router", "TYPE_SHORTCUTS"]
