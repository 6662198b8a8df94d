"""SQL entity store against in-memory SQLite with the packaged migrations."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from form_admin.db.migrations_runner import apply_migrations
from form_admin.logic.repository_entities import (
    FORMS_TABLE,
    QUESTIONS_TABLE,
    SECTIONS_TABLE,
    SqlEntityStore,
)

ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Role": "admin"}


@pytest.fixture
def sql_stores(sql_engine):
    def factory():
        return sql_engine

    return (
        SqlEntityStore("form", FORMS_TABLE, factory),
        SqlEntityStore("section", SECTIONS_TABLE, factory),
        SqlEntityStore("question", QUESTIONS_TABLE, factory),
    )


def test_migrations_are_journaled(sql_engine):
    assert apply_migrations(sql_engine) == []
    with sql_engine.connect() as conn:
        names = [r[0] for r in conn.execute(text("SELECT filename FROM schema_migrations"))]
    assert names == ["001_form_admin_schema.sql"]


@pytest.mark.anyio
async def test_round_trip_preserves_lists_and_flags(sql_stores):
    forms, _, questions = sql_stores
    form = await forms.create({"type": "ACAT", "title": "A", "layout": "TWO_COLUMNS", "has_sections": False})
    assert form["questions"] == [] and form["sections"] == [] and form["signatures"] == []

    q = await questions.create(
        {
            "question_text": "Crops",
            "type": "MULTIPLE_CHOICE",
            "options": ["maize", "teff"],
            "prerequisites": [{"question": "farmer", "answer": True}],
            "validation_factor": "NONE",
            "required": True,
            "show": True,
            "container": {"kind": "FORM", "id": form["_id"]},
        }
    )
    got = await questions.get({"_id": q["_id"]})
    assert got["options"] == ["maize", "teff"]
    assert got["prerequisites"] == [{"question": "farmer", "answer": True}]
    assert got["values"] == []
    assert got["required"] is True
    assert got["container"] == {"kind": "FORM", "id": form["_id"]}


@pytest.mark.anyio
async def test_update_keeps_identity_and_creation_time(sql_stores):
    forms, _, _ = sql_stores
    form = await forms.create({"type": "ACAT", "title": "A", "layout": "TWO_COLUMNS"})
    updated = await forms.update(
        {"_id": form["_id"]}, {"_id": "other", "date_created": "never", "questions": ["q1"], "title": "B"}
    )
    assert updated["_id"] == form["_id"]
    assert updated["date_created"] == form["date_created"]
    assert updated["questions"] == ["q1"]
    assert updated["title"] == "B"
    assert await forms.update({"_id": "missing"}, {"title": "x"}) is None


@pytest.mark.anyio
async def test_delete_returns_removed_document(sql_stores):
    _, sections, _ = sql_stores
    section = await sections.create({"title": "S", "number": 1, "form": "f1"})
    removed = await sections.delete({"_id": section["_id"]})
    assert removed["title"] == "S"
    assert await sections.get({"_id": section["_id"]}) is None
    assert await sections.delete({"_id": section["_id"]}) is None


@pytest.mark.anyio
async def test_paginate_filters_and_sorts(sql_stores):
    _, sections, _ = sql_stores
    for title, form_id in [("b", "f1"), ("a", "f1"), ("c", "f1"), ("z", "f2")]:
        await sections.create({"title": title, "number": 1, "form": form_id})

    page = await sections.paginate({"form": "f1"}, page=1, limit=2, sort={"title": -1})
    assert page["total_docs_count"] == 3
    assert page["total_pages"] == 2
    assert [d["title"] for d in page["docs"]] == ["c", "b"]


@pytest.mark.anyio
async def test_filter_on_unknown_field_is_rejected(sql_stores):
    forms, _, _ = sql_stores
    with pytest.raises(ValueError):
        await forms.get({"questions": []})


def test_app_on_sql_backend(sql_engine, monkeypatch):
    from form_admin.config import load_config
    from form_admin.main import create_app

    monkeypatch.setenv("STORE_BACKEND", "sql")
    monkeypatch.setenv("AUTO_APPLY_MIGRATIONS", "1")
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")

    with TestClient(create_app(load_config())) as client:
        assert client.get("/health").json()["db"] is True
        form = client.post(
            "/api/v1/forms/create", json={"type": "ACAT", "title": "ACAT", "has_sections": True}, headers=ADMIN
        ).json()
        section = client.post(
            "/api/v1/forms/sections/create", json={"form": form["_id"], "title": "One"}, headers=ADMIN
        ).json()
        parent = client.post(
            "/api/v1/forms/questions/create/grouped",
            json={"form": form["_id"], "section": section["_id"], "question_text": "Plot"},
            headers=ADMIN,
        ).json()
        child = client.post(
            "/api/v1/forms/questions/create/fib",
            json={"form": form["_id"], "parent_question": parent["_id"], "question_text": "Area"},
            headers=ADMIN,
        )
        assert child.status_code == 201, child.text

        resp = client.delete(f"/api/v1/forms/{form['_id']}", headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json()["cascade"]["deleted"]["questions"] == [child.json()["_id"], parent["_id"]]
        assert client.get("/api/v1/forms/questions/paginate", headers=ADMIN).json()["total_docs_count"] == 0


def test_null_updates_keep_not_null_columns(sql_engine, monkeypatch):
    from form_admin.config import load_config
    from form_admin.main import create_app

    monkeypatch.setenv("STORE_BACKEND", "sql")
    monkeypatch.setenv("AUTO_APPLY_MIGRATIONS", "1")
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")

    with TestClient(create_app(load_config())) as client:
        form = client.post("/api/v1/forms/create", json={"type": "SCREENING", "title": "Screen"}, headers=ADMIN).json()
        resp = client.put(f"/api/v1/forms/{form['_id']}", json={"layout": None, "has_sections": None}, headers=ADMIN)
        assert resp.status_code == 200, resp.text
        assert resp.json()["layout"] == form["layout"]

        question = client.post(
            "/api/v1/forms/questions/create/yn",
            json={"form": form["_id"], "question_text": "Employed?"},
            headers=ADMIN,
        ).json()
        resp = client.put(
            f"/api/v1/forms/questions/{question['_id']}",
            json={"validation_factor": None, "required": None, "options": None, "remark": None},
            headers=ADMIN,
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["validation_factor"] == "NONE"
        assert resp.json()["options"] == question["options"]
