"""Functional tests for the section endpoints."""

from __future__ import annotations

import pytest

ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Role": "admin"}


@pytest.fixture
def sectioned_form(client):
    return client.post(
        "/api/v1/forms/create",
        json={"type": "SCREENING", "title": "Screening", "has_sections": True},
        headers=ADMIN,
    ).json()


def _create_section(client, form_id, title, **extra):
    return client.post(
        "/api/v1/forms/sections/create",
        json={"form": form_id, "title": title, **extra},
        headers=ADMIN,
    )


def test_create_section_attaches_to_form(client, sectioned_form):
    resp = _create_section(client, sectioned_form["_id"], "Household")
    assert resp.status_code == 201, resp.text
    section = resp.json()
    assert section["form"] == sectioned_form["_id"]
    assert section["questions"] == []
    assert section["number"] == 1

    form = client.get(f"/api/v1/forms/{sectioned_form['_id']}", headers=ADMIN).json()
    assert form["sections"] == [section["_id"]]


def test_section_numbers_default_to_position(client, sectioned_form):
    _create_section(client, sectioned_form["_id"], "First")
    second = _create_section(client, sectioned_form["_id"], "Second").json()
    explicit = _create_section(client, sectioned_form["_id"], "Third", number=9).json()
    assert second["number"] == 2
    assert explicit["number"] == 9


def test_section_requires_form_with_sections(client):
    flat = client.post("/api/v1/forms/create", json={"type": "ACAT", "title": "Flat"}, headers=ADMIN).json()
    resp = _create_section(client, flat["_id"], "Nope")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Form Does Not Need Sections"
    assert resp.json()["code"] == "CONTAINER_INVALID"


def test_section_for_missing_form_is_404(client):
    resp = _create_section(client, "missing", "Orphan")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Form Does Not Exist"


def test_duplicate_section_title_conflicts(client, sectioned_form):
    _create_section(client, sectioned_form["_id"], "Income")
    resp = _create_section(client, sectioned_form["_id"], "Income")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Section with that title already exists!!"

    form = client.get(f"/api/v1/forms/{sectioned_form['_id']}", headers=ADMIN).json()
    assert len(form["sections"]) == 1


def test_form_sections_listed_in_order(client, sectioned_form):
    ids = [_create_section(client, sectioned_form["_id"], t).json()["_id"] for t in ("A", "B", "C")]
    resp = client.get(f"/api/v1/forms/{sectioned_form['_id']}/sections", headers=ADMIN)
    assert resp.status_code == 200
    assert [s["_id"] for s in resp.json()] == ids


def test_rename_section_checks_uniqueness(client, sectioned_form):
    first = _create_section(client, sectioned_form["_id"], "Assets").json()
    second = _create_section(client, sectioned_form["_id"], "Liabilities").json()

    clash = client.put(f"/api/v1/forms/sections/{second['_id']}", json={"title": "Assets"}, headers=ADMIN)
    assert clash.status_code == 409

    same = client.put(f"/api/v1/forms/sections/{first['_id']}", json={"title": "Assets", "number": 5}, headers=ADMIN)
    assert same.status_code == 200
    assert same.json()["number"] == 5


def test_paginate_sections_by_form(client, sectioned_form):
    _create_section(client, sectioned_form["_id"], "One")
    _create_section(client, sectioned_form["_id"], "Two")
    page = client.get(
        "/api/v1/forms/sections/paginate", params={"form": sectioned_form["_id"]}, headers=ADMIN
    ).json()
    assert page["total_docs_count"] == 2
    other = client.get("/api/v1/forms/sections/paginate", params={"form": "elsewhere"}, headers=ADMIN).json()
    assert other["total_docs_count"] == 0


def test_delete_section_cascades_and_detaches(client, sectioned_form):
    keep = _create_section(client, sectioned_form["_id"], "Keep").json()
    drop = _create_section(client, sectioned_form["_id"], "Drop").json()
    q = client.post(
        "/api/v1/forms/questions/create/yn",
        json={"form": sectioned_form["_id"], "section": drop["_id"], "question_text": "Owns land?"},
        headers=ADMIN,
    ).json()

    resp = client.delete(
        f"/api/v1/forms/sections/{drop['_id']}", params={"form": sectioned_form["_id"]}, headers=ADMIN
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["deleted"]["_id"] == drop["_id"]
    assert resp.json()["cascade"]["deleted"] == {"questions": [q["_id"]], "sections": [drop["_id"]], "forms": []}

    form = client.get(f"/api/v1/forms/{sectioned_form['_id']}", headers=ADMIN).json()
    assert form["sections"] == [keep["_id"]]
    assert client.get(f"/api/v1/forms/questions/{q['_id']}", headers=ADMIN).status_code == 404

    events = [e["event"] for e in client.get("/__test__/audit-events").json()]
    assert "remove_section" in events


def test_delete_section_with_wrong_form_is_rejected(client, sectioned_form):
    section = _create_section(client, sectioned_form["_id"], "Mine").json()
    other = client.post(
        "/api/v1/forms/create",
        json={"type": "GROUP_APPLICATION", "title": "Group", "has_sections": True},
        headers=ADMIN,
    ).json()
    resp = client.delete(f"/api/v1/forms/sections/{section['_id']}", params={"form": other["_id"]}, headers=ADMIN)
    assert resp.status_code == 400
    assert client.get(f"/api/v1/forms/sections/{section['_id']}", headers=ADMIN).status_code == 200


def test_delete_missing_section_is_404(client):
    resp = client.delete("/api/v1/forms/sections/missing", params={"form": "x"}, headers=ADMIN)
    assert resp.status_code == 404
