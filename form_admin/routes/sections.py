"""Section endpoints."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from form_admin.logic.section_service import SectionService
from form_admin.models.actor import Actor
from form_admin.models.requests import SectionCreate, SectionUpdate
from form_admin.models.responses import CascadeResult, Page
from form_admin.routes.dependencies import get_actor, get_section_service

router = APIRouter()


@router.post(
    "/forms/sections/create",
    status_code=201,
    summary="Create a section and append it to its form",
    operation_id="createSection",
    tags=["Sections"],
)
async def create_section(
    payload: SectionCreate,
    actor: Actor = Depends(get_actor),
    service: SectionService = Depends(get_section_service),
) -> Dict[str, Any]:
    return await service.create(actor, payload)


@router.get(
    "/forms/sections/paginate",
    response_model=Page,
    summary="List sections, optionally of one form",
    operation_id="paginateSections",
    tags=["Sections"],
)
async def paginate_sections(
    page: Optional[int] = Query(default=None),
    per_page: Optional[int] = Query(default=None),
    sort_by: Optional[str] = Query(default=None),
    form: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    service: SectionService = Depends(get_section_service),
):
    return await service.paginate(actor, page=page, per_page=per_page, sort_by=sort_by, form_id=form)


@router.get(
    "/forms/sections/{id}",
    summary="Get a section",
    operation_id="getSection",
    tags=["Sections"],
)
async def get_section(
    id: str,
    actor: Actor = Depends(get_actor),
    service: SectionService = Depends(get_section_service),
) -> Dict[str, Any]:
    return await service.get(actor, id)


@router.put(
    "/forms/sections/{id}",
    summary="Update a section",
    operation_id="updateSection",
    tags=["Sections"],
)
async def update_section(
    id: str,
    payload: SectionUpdate,
    actor: Actor = Depends(get_actor),
    service: SectionService = Depends(get_section_service),
) -> Dict[str, Any]:
    return await service.update(actor, id, payload)


@router.delete(
    "/forms/sections/{id}",
    response_model=CascadeResult,
    summary="Delete a section with its questions",
    operation_id="deleteSection",
    tags=["Sections"],
)
async def delete_section(
    id: str,
    form: Optional[str] = Query(default=None),
    actor: Actor = Depends(get_actor),
    service: SectionService = Depends(get_section_service),
):
    return await service.delete(actor, id, form)


__all__ = ["router"]
