"""Referential graph manager for forms, sections and questions.

Forms, sections and questions are stored independently; ownership is
expressed only through reference lists (`form.questions`, `form.sections`,
`section.questions`, `question.sub_questions`). This module is the single
place that writes those lists, and it does so in an order that keeps the
graph readable when a step fails:

- creation inserts the child first, then appends it to its container, inside
  a saga whose compensation deletes the child again;
- deletion removes children before parents, so no surviving record ever
  references a parent that is already gone;
- cascades are not rolled back. A failure raises `PartialCascadeFailure`
  with a report of what was already removed; children found missing are
  skipped, so re-running a failed cascade completes it.

Every question stores its container as a tagged value
(`{"kind": "FORM" | "SECTION" | "QUESTION", "id": ...}`), which makes
"exactly one container" a property of the record rather than of the call
sites.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from form_admin.logic.entity_store import Document, EntityStore, Stores
from form_admin.logic.errors import (
    ContainerInvalidError,
    ContainerNotFoundError,
    MissingContainerContextError,
    NotFoundError,
    PartialCascadeFailure,
)
from form_admin.logic.saga import Saga, record_incomplete
from form_admin.models.enums import ContainerKind, QuestionType

logger = logging.getLogger(__name__)

# Guard against malformed parent chains when walking up to the owning form
_MAX_NESTING = 16


@dataclass(frozen=True)
class Container:
    kind: str
    id: str

    @classmethod
    def form(cls, form_id: str) -> "Container":
        return cls(ContainerKind.FORM, str(form_id))

    @classmethod
    def section(cls, section_id: str) -> "Container":
        return cls(ContainerKind.SECTION, str(section_id))

    @classmethod
    def question(cls, question_id: str) -> "Container":
        return cls(ContainerKind.QUESTION, str(question_id))

    @classmethod
    def from_document(cls, value: Any) -> Optional["Container"]:
        if not isinstance(value, Mapping):
            return None
        kind, ident = value.get("kind"), value.get("id")
        if kind not in ContainerKind.ALL or not ident:
            return None
        return cls(str(kind), str(ident))

    def to_document(self) -> Dict[str, str]:
        return {"kind": self.kind, "id": self.id}

    @property
    def child_field(self) -> str:
        return "sub_questions" if self.kind == ContainerKind.QUESTION else "questions"


@dataclass
class ResolvedContainer:
    container: Container
    entity: Document
    form: Document


@dataclass
class CascadeReport:
    """What a delete cascade did, in order, and where it stopped."""

    root_kind: str
    root_id: str
    deleted: Dict[str, List[str]] = field(
        default_factory=lambda: {"questions": [], "sections": [], "forms": []}
    )
    missing: List[Dict[str, str]] = field(default_factory=list)
    detached: List[Dict[str, str]] = field(default_factory=list)
    step: Optional[str] = None
    failed_step: Optional[str] = None
    error: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.failed_step is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": {"kind": self.root_kind, "id": self.root_id},
            "complete": self.complete,
            "deleted": {k: list(v) for k, v in self.deleted.items()},
            "missing": list(self.missing),
            "detached": list(self.detached),
            "failed_step": self.failed_step,
            "error": self.error,
        }


class ReferentialGraph:
    def __init__(self, stores: Stores, *, cascade_sub_questions: bool = True) -> None:
        self.stores = stores
        self.cascade_sub_questions = cascade_sub_questions

    def _store_for(self, container: Container) -> EntityStore:
        if container.kind == ContainerKind.FORM:
            return self.stores.forms
        if container.kind == ContainerKind.SECTION:
            return self.stores.sections
        return self.stores.questions

    async def load_container(self, container: Container) -> Document:
        entity = await self._store_for(container).get({"_id": container.id})
        if entity is None:
            raise ContainerNotFoundError(f"{container.kind.title()} {container.id} Does Not Exist")
        return entity

    # -- resolution ----------------------------------------------------------

    async def owning_form_id(self, question: Mapping[str, Any]) -> Optional[str]:
        """Walk container references up to the form that ultimately owns a question."""
        current: Optional[Mapping[str, Any]] = question
        for _ in range(_MAX_NESTING):
            container = Container.from_document((current or {}).get("container"))
            if container is None:
                return None
            if container.kind == ContainerKind.FORM:
                return container.id
            if container.kind == ContainerKind.SECTION:
                section = await self.stores.sections.get({"_id": container.id})
                return str(section["form"]) if section and section.get("form") else None
            current = await self.stores.questions.get({"_id": container.id})
            if current is None:
                return None
        logger.warning("graph.owning_form_depth_exceeded question=%s", question.get("_id"))
        return None

    async def resolve_container(self, request: Mapping[str, Any]) -> ResolvedContainer:
        """Pick the single container for a new question.

        Precedence: `parent_question`, then `section`, then the form itself.
        """
        form = await self.stores.forms.get({"_id": request.get("form")})
        if form is None:
            raise ContainerNotFoundError("Question Form Does Not Exist")

        parent_id = request.get("parent_question")
        section_id = request.get("section")

        if parent_id:
            parent = await self.stores.questions.get({"_id": parent_id})
            if parent is None:
                raise ContainerNotFoundError("Parent Question Does Not Exist")
            if parent.get("type") != QuestionType.GROUPED:
                raise ContainerInvalidError("Parent Question is not a GROUPED question")
            if await self.owning_form_id(parent) != form["_id"]:
                raise ContainerInvalidError("Parent Question does not belong to the Form")
            return ResolvedContainer(Container.question(parent["_id"]), parent, form)

        if section_id:
            if not form.get("has_sections"):
                raise ContainerInvalidError("Form Does Not Need Sections")
            section = await self.stores.sections.get({"_id": section_id})
            if section is None:
                raise ContainerNotFoundError("Question Section Does Not Exist")
            if section["_id"] not in (form.get("sections") or []):
                raise ContainerInvalidError("Section does not belong to the Form")
            return ResolvedContainer(Container.section(section["_id"]), section, form)

        if form.get("has_sections"):
            raise ContainerInvalidError("Form has sections; a Section reference is required")
        return ResolvedContainer(Container.form(form["_id"]), form, form)

    # -- attach / detach -----------------------------------------------------

    async def attach_question(self, question_id: str, container: Container) -> Document:
        """Append a question id to its container's child list (read-modify-write)."""
        entity = await self.load_container(container)
        children = list(entity.get(container.child_field) or [])
        if question_id in children:
            return entity
        children.append(question_id)
        updated = await self._store_for(container).update({"_id": container.id}, {container.child_field: children})
        if updated is None:
            raise ContainerNotFoundError(f"{container.kind.title()} {container.id} Does Not Exist")
        logger.info("graph.question_attached question=%s container=%s:%s", question_id, container.kind, container.id)
        return updated

    async def detach_question(self, question_id: str, container: Container) -> Optional[Document]:
        """Remove a question id from its container's child list; idempotent."""
        entity = await self._store_for(container).get({"_id": container.id})
        if entity is None:
            logger.warning("graph.detach_missing_container question=%s container=%s:%s", question_id, container.kind, container.id)
            return None
        children = list(entity.get(container.child_field) or [])
        remaining = [c for c in children if c != question_id]
        if remaining == children:
            return entity
        updated = await self._store_for(container).update({"_id": container.id}, {container.child_field: remaining})
        logger.info("graph.question_detached question=%s container=%s:%s", question_id, container.kind, container.id)
        return updated

    async def attach_section(self, section_id: str, form_id: str) -> Document:
        form = await self.stores.forms.get({"_id": form_id})
        if form is None:
            raise ContainerNotFoundError("Form Does Not Exist")
        if not form.get("has_sections"):
            raise ContainerInvalidError("Form Does Not Need Sections")
        sections = list(form.get("sections") or [])
        if section_id in sections:
            return form
        sections.append(section_id)
        updated = await self.stores.forms.update({"_id": form_id}, {"sections": sections})
        if updated is None:
            raise ContainerNotFoundError("Form Does Not Exist")
        logger.info("graph.section_attached section=%s form=%s", section_id, form_id)
        return updated

    async def detach_section(self, section_id: str, form_id: str) -> Optional[Document]:
        form = await self.stores.forms.get({"_id": form_id})
        if form is None:
            logger.warning("graph.detach_missing_form section=%s form=%s", section_id, form_id)
            return None
        sections = list(form.get("sections") or [])
        remaining = [s for s in sections if s != section_id]
        if remaining == sections:
            return form
        return await self.stores.forms.update({"_id": form_id}, {"sections": remaining})

    # -- creation sagas ------------------------------------------------------

    async def create_question(self, payload: Mapping[str, Any], resolved: ResolvedContainer) -> Document:
        """Insert a question and attach it to its resolved container."""
        container = resolved.container
        doc = dict(payload)
        doc["container"] = container.to_document()
        doc.setdefault("sub_questions", [])
        doc.setdefault("values", [])

        async def _delete_created(created: Optional[Document]) -> None:
            if created:
                await self.stores.questions.delete({"_id": created["_id"]})

        saga = Saga("create_question", context={"container": container.to_document(), "question_text": doc.get("question_text")})
        created_holder: Dict[str, Document] = {}

        async def _create() -> Document:
            created = await self.stores.questions.create(doc)
            created_holder["doc"] = created
            saga.context["question"] = created["_id"]
            return created

        async def _attach() -> Document:
            return await self.attach_question(created_holder["doc"]["_id"], container)

        saga.step("create", _create, _delete_created).step("attach", _attach)
        results = await saga.run()
        return results["create"]

    async def create_section(self, payload: Mapping[str, Any], form: Mapping[str, Any]) -> Document:
        """Insert a section and append it to `form.sections`."""
        if not form.get("has_sections"):
            raise ContainerInvalidError("Form Does Not Need Sections")
        doc = dict(payload)
        doc["form"] = form["_id"]
        doc.setdefault("questions", [])

        saga = Saga("create_section", context={"form": form["_id"], "title": doc.get("title")})
        created_holder: Dict[str, Document] = {}

        async def _create() -> Document:
            created = await self.stores.sections.create(doc)
            created_holder["doc"] = created
            saga.context["section"] = created["_id"]
            return created

        async def _delete_created(created: Optional[Document]) -> None:
            if created:
                await self.stores.sections.delete({"_id": created["_id"]})

        async def _attach() -> Document:
            return await self.attach_section(created_holder["doc"]["_id"], form["_id"])

        saga.step("create", _create, _delete_created).step("attach", _attach)
        results = await saga.run()
        return results["create"]

    # -- cascades ------------------------------------------------------------

    async def _delete_question_tree(self, question_id: str, report: CascadeReport, *, include_sub_questions: bool = True) -> None:
        report.step = f"load question {question_id}"
        question = await self.stores.questions.get({"_id": question_id})
        if question is None:
            report.missing.append({"kind": "question", "id": question_id})
            return
        if include_sub_questions:
            for sub_id in question.get("sub_questions") or []:
                await self._delete_question_tree(sub_id, report)
        elif question.get("sub_questions"):
            logger.warning(
                "graph.sub_questions_left question=%s sub_questions=%s", question_id, question.get("sub_questions")
            )
        report.step = f"delete question {question_id}"
        deleted = await self.stores.questions.delete({"_id": question_id})
        if deleted is None:
            report.missing.append({"kind": "question", "id": question_id})
        else:
            report.deleted["questions"].append(question_id)

    async def _prune_sub_questions(self, question_id: str, deleted: List[str]) -> None:
        """Drop deleted ids from the sub-question lists of a partly deleted tree."""
        question = await self.stores.questions.get({"_id": question_id})
        if question is None:
            return
        for sub_id in question.get("sub_questions") or []:
            if sub_id in deleted:
                await self.detach_question(sub_id, Container.question(question_id))
            else:
                await self._prune_sub_questions(sub_id, deleted)

    async def _delete_section_tree(self, section_id: str, report: CascadeReport) -> None:
        report.step = f"load section {section_id}"
        section = await self.stores.sections.get({"_id": section_id})
        if section is None:
            report.missing.append({"kind": "section", "id": section_id})
            return
        for question_id in section.get("questions") or []:
            await self._delete_question_tree(question_id, report)
        report.step = f"delete section {section_id}"
        deleted = await self.stores.sections.delete({"_id": section_id})
        if deleted is None:
            report.missing.append({"kind": "section", "id": section_id})
        else:
            report.deleted["sections"].append(section_id)

    def _cascade_failed(self, report: CascadeReport, exc: Exception, saga: str) -> PartialCascadeFailure:
        report.failed_step = report.step
        report.error = str(exc)
        record_incomplete(
            saga,
            failed_step=report.step or "unknown",
            error=str(exc),
            context={"root": {"kind": report.root_kind, "id": report.root_id}, "deleted": report.to_dict()["deleted"]},
        )
        return PartialCascadeFailure(
            f"Deleting {report.root_kind} {report.root_id} stopped at '{report.failed_step}': {exc}",
            report.to_dict(),
        )

    async def cascade_delete_form(self, form_id: str) -> Tuple[Document, CascadeReport]:
        """Delete a form with its questions, sections and their sub-questions."""
        form = await self.stores.forms.get({"_id": form_id})
        if form is None:
            raise NotFoundError("Form Does Not Exist!")
        report = CascadeReport("form", form["_id"])
        try:
            for question_id in form.get("questions") or []:
                await self._delete_question_tree(question_id, report)
            for section_id in form.get("sections") or []:
                await self._delete_section_tree(section_id, report)
            report.step = f"delete form {form['_id']}"
            if await self.stores.forms.delete({"_id": form["_id"]}) is None:
                report.missing.append({"kind": "form", "id": form["_id"]})
            else:
                report.deleted["forms"].append(form["_id"])
        except Exception as exc:
            logger.error("graph.cascade_form_failed form=%s step=%s", form_id, report.step, exc_info=True)
            raise self._cascade_failed(report, exc, "cascade_delete_form") from exc
        report.step = None
        logger.info("graph.form_deleted form=%s report=%s", form_id, report.to_dict()["deleted"])
        return form, report

    async def cascade_delete_section(self, section_id: str, form_id: Optional[str]) -> Tuple[Document, CascadeReport]:
        """Delete a section's questions, unlink it from its form, then delete it."""
        section = await self.stores.sections.get({"_id": section_id})
        if section is None:
            raise NotFoundError("Section Does Not Exist")
        form_id = form_id or section.get("form")
        form = await self.stores.forms.get({"_id": form_id}) if form_id else None
        if form is None:
            raise NotFoundError("Form Does Not Exist")
        if section["_id"] not in (form.get("sections") or []) and section.get("form") != form["_id"]:
            raise ContainerInvalidError("Section does not belong to the Form")

        report = CascadeReport("section", section["_id"])
        try:
            for question_id in section.get("questions") or []:
                await self._delete_question_tree(question_id, report)
            report.step = f"detach section {section['_id']} from form {form['_id']}"
            await self.detach_section(section["_id"], form["_id"])
            report.detached.append({"kind": "form", "id": form["_id"]})
            report.step = f"delete section {section['_id']}"
            if await self.stores.sections.delete({"_id": section["_id"]}) is None:
                report.missing.append({"kind": "section", "id": section["_id"]})
            else:
                report.deleted["sections"].append(section["_id"])
        except Exception as exc:
            logger.error("graph.cascade_section_failed section=%s step=%s", section_id, report.step, exc_info=True)
            raise self._cascade_failed(report, exc, "cascade_delete_section") from exc
        report.step = None
        return section, report

    # -- question deletion ---------------------------------------------------

    async def _container_for_deletion(
        self, question: Document, form_id: Optional[str], parent_question_id: Optional[str]
    ) -> Container:
        stored = Container.from_document(question.get("container"))
        qid = question["_id"]

        if parent_question_id:
            parent = await self.stores.questions.get({"_id": parent_question_id})
            if parent is None:
                raise ContainerNotFoundError("Parent Question Does Not Exist")
            expected = Container.question(parent["_id"])
            if stored is not None and stored != expected:
                raise ContainerInvalidError("Question is not a sub-question of the given parent")
            if stored is None and qid not in (parent.get("sub_questions") or []):
                raise ContainerInvalidError("Question is not a sub-question of the given parent")
            return expected

        form = await self.stores.forms.get({"_id": form_id})
        if form is None:
            raise ContainerNotFoundError("Form Does Not Exist")
        if stored is not None:
            if await self.owning_form_id(question) != form["_id"]:
                raise ContainerInvalidError("Question does not belong to the given Form")
            return stored

        # Records written before containers were stored: search the form's lists
        if qid in (form.get("questions") or []):
            return Container.form(form["_id"])
        for section_id in form.get("sections") or []:
            section = await self.stores.sections.get({"_id": section_id})
            if section and qid in (section.get("questions") or []):
                return Container.section(section_id)
        raise ContainerInvalidError("Question does not belong to the given Form")

    async def delete_question(
        self,
        question_id: str,
        *,
        form_id: Optional[str] = None,
        parent_question_id: Optional[str] = None,
    ) -> Tuple[Document, CascadeReport]:
        """Detach a question from its container, then delete it.

        The caller names exactly one container context, `form_id` or
        `parent_question_id`. If the delete fails after the detach, the
        question is attached again without the sub-questions already deleted.
        """
        if not form_id and not parent_question_id:
            raise MissingContainerContextError("Question deletion requires a form or parent_question reference")
        if form_id and parent_question_id:
            raise MissingContainerContextError("Question deletion takes either a form or a parent_question reference, not both")
        question = await self.stores.questions.get({"_id": question_id})
        if question is None:
            raise NotFoundError("Question Does not Exist!!")
        container = await self._container_for_deletion(question, form_id, parent_question_id)

        report = CascadeReport("question", question["_id"])
        include_subs = self.cascade_sub_questions and question.get("type") == QuestionType.GROUPED

        async def _detach() -> Optional[Document]:
            report.step = f"detach question {question['_id']} from {container.kind.lower()} {container.id}"
            detached = await self.detach_question(question["_id"], container)
            report.detached.append({"kind": container.kind.lower(), "id": container.id})
            return detached

        async def _reattach(_: Any) -> None:
            await self._prune_sub_questions(question["_id"], report.deleted["questions"])
            await self.attach_question(question["_id"], container)

        async def _delete() -> None:
            try:
                await self._delete_question_tree(question["_id"], report, include_sub_questions=include_subs)
            except Exception as exc:
                logger.error("graph.delete_question_failed question=%s step=%s", question_id, report.step, exc_info=True)
                raise self._cascade_failed(report, exc, "delete_question") from exc

        saga = Saga("delete_question", context={"question": question["_id"], "container": container.to_document()})
        saga.step("detach", _detach, _reattach).step("delete", _delete)
        await saga.run()
        report.step = None
        return question, report


__all__ = [
    "Container",
    "ResolvedContainer",
    "CascadeReport",
    "ReferentialGraph",
]
