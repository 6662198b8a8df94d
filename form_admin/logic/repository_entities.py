"""SQL Entity Store over SQLAlchemy Core.

Each entity kind maps to one table (see the packaged migrations). Scalar
fields are plain columns; list and object fields are JSON text. Statements
are `text()` queries with bound parameters; identifiers only ever come from
the declared table specs, never from request input.

Store calls run in a worker thread so the request coroutine suspends while
the database works.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import anyio
from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from form_admin.logic.entity_store import Document, format_timestamp, new_id, page_envelope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableSpec:
    table: str
    scalar_columns: Tuple[str, ...]
    json_columns: Tuple[str, ...] = ()
    bool_columns: Tuple[str, ...] = ()
    json_defaults: Dict[str, Any] = field(default_factory=dict)

    @property
    def columns(self) -> Tuple[str, ...]:
        return ("id",) + self.scalar_columns + self.bool_columns + self.json_columns + ("date_created", "last_modified")

    @property
    def filterable(self) -> Tuple[str, ...]:
        return ("id",) + self.scalar_columns + self.bool_columns + ("date_created", "last_modified")


FORMS_TABLE = TableSpec(
    table="forms",
    scalar_columns=("type", "title", "subtitle", "purpose", "layout", "disclaimer", "created_by"),
    bool_columns=("has_sections",),
    json_columns=("signatures", "questions", "sections"),
)

SECTIONS_TABLE = TableSpec(
    table="sections",
    scalar_columns=("title", "number", "form"),
    json_columns=("questions",),
)

QUESTIONS_TABLE = TableSpec(
    table="questions",
    scalar_columns=("question_text", "type", "number", "validation_factor", "measurement_unit", "remark"),
    bool_columns=("required", "show"),
    json_columns=("prerequisites", "options", "values", "sub_questions", "container"),
    json_defaults={"container": {}},
)


def _q(identifier: str) -> str:
    return f'"{identifier}"'


def _column_for(spec: TableSpec, key: str) -> str:
    column = "id" if key == "_id" else key
    if column not in spec.filterable:
        raise ValueError(f"{spec.table}: cannot filter or sort on {key!r}")
    return column


class SqlEntityStore:
    def __init__(self, kind: str, spec: TableSpec, engine_factory: Callable[[], Engine]) -> None:
        self.kind = kind
        self.spec = spec
        self._engine_factory = engine_factory

    # -- row mapping ---------------------------------------------------------

    def _to_row(self, doc: Mapping[str, Any]) -> Dict[str, Any]:
        row: Dict[str, Any] = {}
        for key, value in doc.items():
            column = "id" if key == "_id" else key
            if column not in self.spec.columns:
                continue
            if column in self.spec.json_columns:
                row[column] = json.dumps(value if value is not None else self.spec.json_defaults.get(column, []))
            elif column in self.spec.bool_columns:
                row[column] = bool(value)
            else:
                row[column] = value
        return row

    def _from_row(self, row: Mapping[str, Any]) -> Document:
        doc: Document = {"_id": str(row["id"])}
        for column in self.spec.columns[1:]:
            value = row.get(column)
            if column in self.spec.json_columns:
                doc[column] = json.loads(value) if value else self.spec.json_defaults.get(column, [])
            elif column in self.spec.bool_columns:
                doc[column] = bool(value)
            else:
                doc[column] = value
        return doc

    def _where(self, filters: Mapping[str, Any]) -> Tuple[str, Dict[str, Any]]:
        if not filters:
            return "", {}
        clauses: List[str] = []
        params: Dict[str, Any] = {}
        for i, (key, value) in enumerate(filters.items()):
            column = _column_for(self.spec, key)
            if column in self.spec.bool_columns:
                value = bool(value)
            clauses.append(f"{_q(column)} = :f{i}")
            params[f"f{i}"] = value
        return " WHERE " + " AND ".join(clauses), params

    # -- sync implementations (run in a worker thread) ----------------------

    def _get_sync(self, filters: Mapping[str, Any]) -> Optional[Document]:
        where, params = self._where(filters)
        with self._engine_factory().connect() as conn:
            row = conn.execute(
                sql_text(f"SELECT * FROM {_q(self.spec.table)}{where} LIMIT 1"), params
            ).mappings().fetchone()
        return self._from_row(row) if row else None

    def _create_sync(self, payload: Mapping[str, Any]) -> Document:
        doc = dict(payload)
        doc["_id"] = str(doc.get("_id") or new_id())
        stamp = format_timestamp()
        doc["date_created"] = stamp
        doc["last_modified"] = stamp
        for column in self.spec.json_columns:
            doc.setdefault(column, self.spec.json_defaults.get(column, []))
        for column in self.spec.bool_columns:
            doc.setdefault(column, False)
        row = self._to_row(doc)
        cols = list(row.keys())
        stmt = "INSERT INTO {} ({}) VALUES ({})".format(
            _q(self.spec.table),
            ", ".join(_q(c) for c in cols),
            ", ".join(f":{c}" for c in cols),
        )
        with self._engine_factory().begin() as conn:
            conn.execute(sql_text(stmt), row)
        return self._from_row(row)

    def _update_sync(self, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> Optional[Document]:
        current = self._get_sync(filters)
        if current is None:
            return None
        changes = {k: v for k, v in patch.items() if k not in {"_id", "date_created"}}
        changes["last_modified"] = format_timestamp()
        row = self._to_row(changes)
        assignments = ", ".join(f"{_q(c)} = :s_{c}" for c in row)
        params = {f"s_{c}": v for c, v in row.items()}
        params["target_id"] = current["_id"]
        with self._engine_factory().begin() as conn:
            conn.execute(
                sql_text(f"UPDATE {_q(self.spec.table)} SET {assignments} WHERE {_q('id')} = :target_id"),
                params,
            )
        return self._get_sync({"_id": current["_id"]})

    def _delete_sync(self, filters: Mapping[str, Any]) -> Optional[Document]:
        current = self._get_sync(filters)
        if current is None:
            return None
        with self._engine_factory().begin() as conn:
            conn.execute(
                sql_text(f"DELETE FROM {_q(self.spec.table)} WHERE {_q('id')} = :target_id"),
                {"target_id": current["_id"]},
            )
        return current

    def _paginate_sync(self, filters: Mapping[str, Any], page: int, limit: int, sort: Mapping[str, int]) -> Dict[str, Any]:
        where, params = self._where(filters)
        order_parts = [f"{_q(_column_for(self.spec, k))} {'DESC' if d < 0 else 'ASC'}" for k, d in sort.items()]
        order_parts.append(f"{_q('id')} ASC")
        with self._engine_factory().connect() as conn:
            total = conn.execute(
                sql_text(f"SELECT COUNT(*) FROM {_q(self.spec.table)}{where}"), params
            ).scalar_one()
            rows = conn.execute(
                sql_text(
                    f"SELECT * FROM {_q(self.spec.table)}{where} ORDER BY {', '.join(order_parts)} LIMIT :limit OFFSET :offset"
                ),
                {**params, "limit": int(limit), "offset": int((page - 1) * limit)},
            ).mappings().all()
        docs = [self._from_row(r) for r in rows]
        return page_envelope(docs, total=int(total or 0), page=page, limit=limit)

    # -- async contract ------------------------------------------------------

    async def _run(self, op: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await anyio.to_thread.run_sync(fn, *args)
        except Exception:
            logger.error("entity_store.%s failed kind=%s", op, self.kind, exc_info=True)
            raise

    async def get(self, filters: Mapping[str, Any]) -> Optional[Document]:
        return await self._run("get", self._get_sync, filters)

    async def create(self, payload: Mapping[str, Any]) -> Document:
        return await self._run("create", self._create_sync, payload)

    async def update(self, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> Optional[Document]:
        return await self._run("update", self._update_sync, filters, patch)

    async def delete(self, filters: Mapping[str, Any]) -> Optional[Document]:
        return await self._run("delete", self._delete_sync, filters)

    async def paginate(
        self,
        filters: Mapping[str, Any],
        *,
        page: int,
        limit: int,
        sort: Mapping[str, int],
    ) -> Dict[str, Any]:
        return await self._run("paginate", self._paginate_sync, filters, page, limit, sort)


__all__ = [
    "TableSpec",
    "FORMS_TABLE",
    "SECTIONS_TABLE",
    "QUESTIONS_TABLE",
    "SqlEntityStore",
]
