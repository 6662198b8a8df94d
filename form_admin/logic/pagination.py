"""Query parsing for the paginate endpoints.

`sort_by` names a single field sorted in descending order (newest first by
default). Only fields every store can sort on are accepted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from form_admin.config import PaginationConfig
from form_admin.logic.errors import ValidationError

SORTABLE_FIELDS: Dict[str, tuple] = {
    "form": ("date_created", "last_modified", "title", "type"),
    "section": ("date_created", "last_modified", "title", "number"),
    # Question numbers are dotted text and would sort lexically ("10" before "2")
    "question": ("date_created", "last_modified", "question_text", "type"),
}

DEFAULT_SORT_FIELD = "date_created"


@dataclass(frozen=True)
class PageQuery:
    page: int
    limit: int
    sort: Dict[str, int]


def parse_page_query(
    kind: str,
    config: PaginationConfig,
    *,
    page: Optional[int] = None,
    per_page: Optional[int] = None,
    sort_by: Optional[str] = None,
) -> PageQuery:
    page = 1 if page is None else page
    if page < 1:
        raise ValidationError("page must be a positive integer")
    limit = config.default_per_page if per_page is None else per_page
    if limit < 1:
        raise ValidationError("per_page must be a positive integer")
    limit = min(limit, config.max_per_page)

    field = (sort_by or DEFAULT_SORT_FIELD).strip()
    if field not in SORTABLE_FIELDS[kind]:
        raise ValidationError(f"sort_by must be one of {', '.join(SORTABLE_FIELDS[kind])}")
    return PageQuery(page=page, limit=limit, sort={field: -1})


__all__ = ["PageQuery", "SORTABLE_FIELDS", "parse_page_query"]
