"""In-memory Entity Store (development and tests).

Holds documents in a process-local dict per store instance. Documents are
deep-copied on the way in and out so callers never share mutable state with
the store, mirroring what a real database round-trip gives you.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional

from form_admin.logic.entity_store import Document, format_timestamp, new_id, page_envelope


def _matches(doc: Document, filters: Mapping[str, Any]) -> bool:
    return all(doc.get(k) == v for k, v in filters.items())


class InMemoryEntityStore:
    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._docs: Dict[str, Document] = {}

    def clear(self) -> None:
        self._docs.clear()

    def _find(self, filters: Mapping[str, Any]) -> Optional[Document]:
        if "_id" in filters:
            doc = self._docs.get(str(filters["_id"]))
            return doc if doc is not None and _matches(doc, filters) else None
        for doc in self._docs.values():
            if _matches(doc, filters):
                return doc
        return None

    async def get(self, filters: Mapping[str, Any]) -> Optional[Document]:
        doc = self._find(filters)
        return copy.deepcopy(doc) if doc is not None else None

    async def create(self, payload: Mapping[str, Any]) -> Document:
        doc = copy.deepcopy(dict(payload))
        doc["_id"] = str(doc.get("_id") or new_id())
        stamp = format_timestamp()
        doc["date_created"] = stamp
        doc["last_modified"] = stamp
        self._docs[doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def update(self, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> Optional[Document]:
        doc = self._find(filters)
        if doc is None:
            return None
        for key, value in patch.items():
            if key in {"_id", "date_created"}:
                continue
            doc[key] = copy.deepcopy(value)
        doc["last_modified"] = format_timestamp()
        return copy.deepcopy(doc)

    async def delete(self, filters: Mapping[str, Any]) -> Optional[Document]:
        doc = self._find(filters)
        if doc is None:
            return None
        del self._docs[doc["_id"]]
        return copy.deepcopy(doc)

    async def paginate(
        self,
        filters: Mapping[str, Any],
        *,
        page: int,
        limit: int,
        sort: Mapping[str, int],
    ) -> Dict[str, Any]:
        matched: List[Document] = [d for d in self._docs.values() if _matches(d, filters)]
        # Apply sort keys last-to-first so the first key dominates (stable sort)
        for field, direction in reversed(list(sort.items())):
            matched.sort(
                key=lambda d: (d.get(field) is None, d.get(field) if d.get(field) is not None else ""),
                reverse=direction < 0,
            )
        start = (page - 1) * limit
        docs = [copy.deepcopy(d) for d in matched[start:start + limit]]
        return page_envelope(docs, total=len(matched), page=page, limit=limit)


__all__ = ["InMemoryEntityStore"]
