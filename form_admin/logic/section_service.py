"""Section operations."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from form_admin.logic import audit
from form_admin.logic.context import ServiceContext
from form_admin.logic.entity_store import Document
from form_admin.logic.errors import ConflictError, ContainerInvalidError, NotFoundError, ValidationError
from form_admin.logic.pagination import parse_page_query
from form_admin.logic.permissions import ensure_permitted
from form_admin.models.actor import Actor
from form_admin.models.enums import Action
from form_admin.models.requests import SectionCreate, SectionUpdate

logger = logging.getLogger(__name__)


class SectionService:
    def __init__(self, ctx: ServiceContext) -> None:
        self.ctx = ctx
        self.sections = ctx.stores.sections

    async def _load(self, section_id: str) -> Document:
        section = await self.sections.get({"_id": section_id})
        if section is None:
            raise NotFoundError("Section Does Not Exist")
        return section

    async def _ensure_unique_title(self, title: str, *, exclude_id: Optional[str] = None) -> None:
        existing = await self.sections.get({"title": title})
        if existing is not None and existing["_id"] != exclude_id:
            raise ConflictError("Section with that title already exists!!")

    async def create(self, actor: Actor, payload: SectionCreate) -> Document:
        ensure_permitted(self.ctx.permissions, actor, Action.CREATE)
        form = await self.ctx.stores.forms.get({"_id": payload.form})
        if form is None:
            raise NotFoundError("Form Does Not Exist")
        if not form.get("has_sections"):
            raise ContainerInvalidError("Form Does Not Need Sections")
        await self._ensure_unique_title(payload.title)

        doc = {
            "title": payload.title,
            "number": payload.number if payload.number is not None else len(form.get("sections") or []) + 1,
            "questions": [],
        }
        section = await self.ctx.graph.create_section(doc, form)
        logger.info("section_created id=%s form=%s", section["_id"], form["_id"])
        self.ctx.audit.track(audit.SECTION_CREATE, actor, f"Created section {section['title']}")
        return section

    async def get(self, actor: Actor, section_id: str) -> Document:
        ensure_permitted(self.ctx.permissions, actor, Action.VIEW)
        section = await self._load(section_id)
        self.ctx.audit.track(audit.SECTION_VIEW, actor, f"Viewed section {section['title']}")
        return section

    async def paginate(
        self,
        actor: Actor,
        *,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        sort_by: Optional[str] = None,
        form_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        ensure_permitted(self.ctx.permissions, actor, Action.VIEW)
        query = parse_page_query("section", self.ctx.pagination, page=page, per_page=per_page, sort_by=sort_by)
        filters = {"form": form_id} if form_id else {}
        return await self.sections.paginate(filters, page=query.page, limit=query.limit, sort=query.sort)

    async def update(self, actor: Actor, section_id: str, patch: SectionUpdate) -> Document:
        ensure_permitted(self.ctx.permissions, actor, Action.UPDATE)
        section = await self._load(section_id)
        changes = patch.model_dump(exclude_unset=True)
        if "title" in changes:
            title = (changes["title"] or "").strip()
            if not title:
                raise ValidationError("Section Title is Empty")
            if title != section["title"]:
                await self._ensure_unique_title(title, exclude_id=section["_id"])
            changes["title"] = title

        updated = await self.sections.update({"_id": section["_id"]}, changes)
        if updated is None:
            raise NotFoundError("Section Does Not Exist")
        self.ctx.audit.track(
            audit.SECTION_UPDATE,
            actor,
            f"Updated section {updated['title']}",
            diff=audit.diff_documents(section, updated),
        )
        return updated

    async def delete(self, actor: Actor, section_id: str, form_id: Optional[str]) -> Dict[str, Any]:
        ensure_permitted(self.ctx.permissions, actor, Action.UPDATE)
        section, report = await self.ctx.graph.cascade_delete_section(section_id, form_id)
        self.ctx.audit.track(audit.SECTION_REMOVE, actor, f"Removed section {section.get('title')}")
        return {"deleted": section, "cascade": report.to_dict()}


__all__ = ["SectionService"]
