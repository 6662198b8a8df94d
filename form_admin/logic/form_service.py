"""Form operations: create, view, list, update and cascade delete."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from form_admin.logic import audit
from form_admin.logic.context import ServiceContext
from form_admin.logic.entity_store import Document, drop_nulls
from form_admin.logic.errors import ConflictError, NotFoundError, ValidationError
from form_admin.logic.pagination import parse_page_query
from form_admin.logic.permissions import ensure_permitted
from form_admin.models.actor import Actor
from form_admin.models.enums import DEFAULT_SIGNATURES, Action
from form_admin.models.requests import FormCreate, FormUpdate

logger = logging.getLogger(__name__)

# Stored columns that are never null; an explicit null in an update means "leave as is"
_NON_NULLABLE = ("type", "layout", "has_sections")


class FormService:
    def __init__(self, ctx: ServiceContext) -> None:
        self.ctx = ctx
        self.forms = ctx.stores.forms

    async def _load(self, form_id: str) -> Document:
        form = await self.forms.get({"_id": form_id})
        if form is None:
            raise NotFoundError("Form Does Not Exist!")
        return form

    async def create(self, actor: Actor, payload: FormCreate) -> Document:
        ensure_permitted(self.ctx.permissions, actor, Action.CREATE)
        # One form per type; read-then-write, so two concurrent creates can both pass
        if await self.forms.get({"type": payload.type}) is not None:
            raise ConflictError("Form For that type already exists!!")

        doc = payload.model_dump()
        doc["signatures"] = list(DEFAULT_SIGNATURES.get(payload.type, []))
        doc["created_by"] = actor.id
        doc["questions"] = []
        doc["sections"] = []
        form = await self.forms.create(doc)
        logger.info("form_created id=%s type=%s", form["_id"], form["type"])
        self.ctx.audit.track(audit.FORM_CREATE, actor, f"Created form {form['title']}")
        return form

    async def get(self, actor: Actor, form_id: str) -> Document:
        ensure_permitted(self.ctx.permissions, actor, Action.VIEW)
        form = await self._load(form_id)
        self.ctx.audit.track(audit.FORM_VIEW, actor, f"Viewed form {form['title']}")
        return form

    async def get_sections(self, actor: Actor, form_id: str) -> List[Document]:
        """Sections of a form in `form.sections` order, skipping dangling ids."""
        ensure_permitted(self.ctx.permissions, actor, Action.VIEW)
        form = await self._load(form_id)
        sections: List[Document] = []
        for section_id in form.get("sections") or []:
            section = await self.ctx.stores.sections.get({"_id": section_id})
            if section is None:
                logger.warning("form_sections_dangling form=%s section=%s", form_id, section_id)
                continue
            sections.append(section)
        self.ctx.audit.track(audit.FORM_SECTIONS_VIEW, actor, f"Viewed sections of form {form['title']}")
        return sections

    async def paginate(
        self,
        actor: Actor,
        *,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        sort_by: Optional[str] = None,
        form_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        ensure_permitted(self.ctx.permissions, actor, Action.VIEW)
        query = parse_page_query("form", self.ctx.pagination, page=page, per_page=per_page, sort_by=sort_by)
        filters = {"type": form_type} if form_type else {}
        return await self.forms.paginate(filters, page=query.page, limit=query.limit, sort=query.sort)

    async def update(self, actor: Actor, form_id: str, patch: FormUpdate) -> Document:
        ensure_permitted(self.ctx.permissions, actor, Action.UPDATE)
        form = await self._load(form_id)
        changes = drop_nulls(patch.model_dump(exclude_unset=True), _NON_NULLABLE)
        changes.pop("signatures", None)

        new_type = changes.pop("type", None)
        if new_type is not None and new_type != form["type"]:
            raise ValidationError("Form Type is Not Consistent!")
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValidationError("Form Title is Empty")

        if "has_sections" in changes:
            flip_to = bool(changes["has_sections"])
            if flip_to != bool(form.get("has_sections")):
                # Flipping would orphan whichever list the form stops using
                if flip_to and form.get("questions"):
                    raise ValidationError("Form has questions; remove them before enabling sections")
                if not flip_to and form.get("sections"):
                    raise ValidationError("Form has sections; remove them before disabling sections")

        updated = await self.forms.update({"_id": form["_id"]}, changes)
        if updated is None:
            raise NotFoundError("Form Does Not Exist!")
        self.ctx.audit.track(
            audit.FORM_UPDATE,
            actor,
            f"Updated form {updated['title']}",
            diff=audit.diff_documents(form, updated),
        )
        return updated

    async def delete(self, actor: Actor, form_id: str) -> Dict[str, Any]:
        ensure_permitted(self.ctx.permissions, actor, Action.UPDATE)
        form, report = await self.ctx.graph.cascade_delete_form(form_id)
        self.ctx.audit.track(audit.FORM_REMOVE, actor, f"Removed form {form.get('title')}")
        return {"deleted": form, "cascade": report.to_dict()}


__all__ = ["FormService"]
