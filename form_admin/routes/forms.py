"""Form endpoints."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from form_admin.logic.form_service import FormService
from form_admin.models.actor import Actor
from form_admin.models.enums import FormTypeName
from form_admin.models.requests import FormCreate, FormUpdate
from form_admin.models.responses import CascadeResult, Page
from form_admin.routes.dependencies import get_actor, get_form_service

router = APIRouter()


@router.post(
    "/forms/create",
    status_code=201,
    summary="Create a form",
    operation_id="createForm",
    tags=["Forms"],
)
async def create_form(
    payload: FormCreate,
    actor: Actor = Depends(get_actor),
    service: FormService = Depends(get_form_service),
) -> Dict[str, Any]:
    return await service.create(actor, payload)


@router.get(
    "/forms/paginate",
    response_model=Page,
    summary="List forms, newest first",
    operation_id="paginateForms",
    tags=["Forms"],
)
async def paginate_forms(
    page: Optional[int] = Query(default=None),
    per_page: Optional[int] = Query(default=None),
    sort_by: Optional[str] = Query(default=None),
    type: Optional[FormTypeName] = Query(default=None),
    actor: Actor = Depends(get_actor),
    service: FormService = Depends(get_form_service),
):
    return await service.paginate(actor, page=page, per_page=per_page, sort_by=sort_by, form_type=type)


@router.get(
    "/forms/{id}",
    summary="Get a form",
    operation_id="getForm",
    tags=["Forms"],
)
async def get_form(
    id: str,
    actor: Actor = Depends(get_actor),
    service: FormService = Depends(get_form_service),
) -> Dict[str, Any]:
    return await service.get(actor, id)


@router.get(
    "/forms/{id}/sections",
    summary="Get the sections of a form in display order",
    operation_id="getFormSections",
    tags=["Forms", "Sections"],
)
async def get_form_sections(
    id: str,
    actor: Actor = Depends(get_actor),
    service: FormService = Depends(get_form_service),
) -> List[Dict[str, Any]]:
    return await service.get_sections(actor, id)


@router.put(
    "/forms/{id}",
    summary="Update a form",
    operation_id="updateForm",
    tags=["Forms"],
)
async def update_form(
    id: str,
    payload: FormUpdate,
    actor: Actor = Depends(get_actor),
    service: FormService = Depends(get_form_service),
) -> Dict[str, Any]:
    return await service.update(actor, id, payload)


@router.delete(
    "/forms/{id}",
    response_model=CascadeResult,
    summary="Delete a form with its sections and questions",
    operation_id="deleteForm",
    tags=["Forms"],
)
async def delete_form(
    id: str,
    actor: Actor = Depends(get_actor),
    service: FormService = Depends(get_form_service),
):
    return await service.delete(actor, id)


__all__ = ["router"]
