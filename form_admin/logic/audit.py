"""Audit trail for viewing and mutating actions.

`AuditLogger.track` is fire-and-forget: the event is logged and kept in an
in-memory buffer that test-support routes can read back. A failure while
recording is logged and never reaches the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from form_admin.logic.entity_store import format_timestamp
from form_admin.models.actor import Actor

logger = logging.getLogger(__name__)

FORM_CREATE = "form_create"
FORM_VIEW = "view_form"
FORM_SECTIONS_VIEW = "view_form_sections"
FORM_UPDATE = "form_update"
FORM_REMOVE = "form_remove"
SECTION_CREATE = "section_create"
SECTION_VIEW = "view_section"
SECTION_UPDATE = "section_update"
SECTION_REMOVE = "remove_section"
QUESTION_CREATE = "question_create"
QUESTION_VIEW = "view_question"
QUESTION_UPDATE = "question_update"
QUESTION_REMOVE = "question_remove"

# In-memory buffer for audit events (test-support visibility)
AUDIT_BUFFER: List[Dict[str, Any]] = []


class AuditLogger:
    def track(
        self,
        event: str,
        actor: Actor,
        message: str,
        diff: Optional[Dict[str, Any]] = None,
    ) -> None:
        try:
            entry = {
                "event": event,
                "actor": actor.id,
                "message": message,
                "diff": diff or {},
                "date_created": format_timestamp(),
            }
            logger.info("audit event=%s actor=%s message=%s", event, actor.id, message)
            AUDIT_BUFFER.append(entry)
        except Exception:
            logger.error("audit_track_failed event=%s", event, exc_info=True)


def diff_documents(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Any]:
    """Field-level `{field: {"from": old, "to": new}}` for changed fields."""
    changes: Dict[str, Any] = {}
    for key in sorted(set(before) | set(after)):
        if key in {"last_modified", "date_created"}:
            continue
        if before.get(key) != after.get(key):
            changes[key] = {"from": before.get(key), "to": after.get(key)}
    return changes


def get_audit_events(clear: bool = False) -> List[Dict[str, Any]]:
    events = list(AUDIT_BUFFER)
    if clear:
        AUDIT_BUFFER.clear()
    return events


__all__ = [
    "AuditLogger",
    "AUDIT_BUFFER",
    "diff_documents",
    "get_audit_events",
]
