"""Entity Store contract shared by the in-memory and SQL adapters.

One store instance exists per entity kind (forms, sections, questions).
Documents are plain dicts keyed by `_id`. Every call commits on its own;
nothing here spans more than one call, so multi-record consistency is the
graph manager's job.

Filters are equality matches on scalar fields. `sort` maps a field name to
-1 (descending) or 1 (ascending).
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol


Document = Dict[str, Any]


class EntityStore(Protocol):
    kind: str

    async def get(self, filters: Mapping[str, Any]) -> Optional[Document]:
        ...

    async def create(self, payload: Mapping[str, Any]) -> Document:
        ...

    async def update(self, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> Optional[Document]:
        ...

    async def delete(self, filters: Mapping[str, Any]) -> Optional[Document]:
        ...

    async def paginate(
        self,
        filters: Mapping[str, Any],
        *,
        page: int,
        limit: int,
        sort: Mapping[str, int],
    ) -> Dict[str, Any]:
        ...


@dataclass
class Stores:
    """The three per-kind stores the graph manager and services work against."""

    forms: EntityStore
    sections: EntityStore
    questions: EntityStore


def new_id() -> str:
    return uuid.uuid4().hex


def format_timestamp(dt: datetime | None = None) -> str:
    """Format an RFC3339 UTC timestamp with microseconds and trailing 'Z'.

    Microseconds keep `date_created` ordering stable for records written
    within the same second.
    """
    base = (dt or datetime.now(timezone.utc)).isoformat(timespec="microseconds")
    return base.replace("+00:00", "Z")


def drop_nulls(patch: Mapping[str, Any], fields: Iterable[str]) -> Document:
    """Copy of `patch` without explicit nulls for fields that are never stored as null."""
    fields = set(fields)
    return {k: v for k, v in patch.items() if not (v is None and k in fields)}


def page_envelope(docs: list[Document], *, total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        "docs": docs,
        "total_pages": max(1, math.ceil(total / limit)) if limit > 0 else 1,
        "total_docs_count": total,
        "current_page": page,
    }


__all__ = [
    "Document",
    "EntityStore",
    "Stores",
    "new_id",
    "format_timestamp",
    "page_envelope",
    "drop_nulls",
]
