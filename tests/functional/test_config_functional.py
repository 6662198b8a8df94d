"""Configuration loading: defaults, environment overrides and validation."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from form_admin import config as config_mod
from form_admin.config import load_config

_ENV_KEYS = (
    "TEST_DATABASE_URL",
    "DATABASE_URL",
    "STORE_BACKEND",
    "AUTO_APPLY_MIGRATIONS",
    "PAGINATION_DEFAULT_PER_PAGE",
    "PAGINATION_MAX_PER_PAGE",
    "DEFAULT_ACTOR_ROLE",
    "ROLE_PERMISSIONS",
    "CASCADE_SUB_QUESTIONS",
    "ENABLE_TEST_SUPPORT",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config_mod, "CONFIG_DIR", tmp_path / "config")
    monkeypatch.setattr(config_mod, "ROOT_CONFIG", tmp_path / "form_admin_config.json")
    return tmp_path


def test_defaults(clean_env):
    cfg = load_config()
    assert cfg.database.dsn == "sqlite+pysqlite:///:memory:"
    assert cfg.store.backend == "memory"
    assert cfg.store.auto_apply_migrations is False
    assert cfg.pagination.default_per_page == 10
    assert cfg.permissions.default_role == "viewer"
    assert cfg.permissions.roles["admin"] == ["CREATE", "UPDATE", "VIEW"]
    assert cfg.graph.cascade_sub_questions_on_delete is True
    assert cfg.enable_test_support is False


def test_env_overrides_json_file(clean_env, monkeypatch):
    (clean_env / "form_admin_config.json").write_text(
        json.dumps({"store": {"backend": "sql"}, "pagination": {"default_per_page": 25}}), encoding="utf-8"
    )
    cfg = load_config()
    assert cfg.store.backend == "sql"
    assert cfg.pagination.default_per_page == 25

    monkeypatch.setenv("STORE_BACKEND", "memory")
    monkeypatch.setenv("CASCADE_SUB_QUESTIONS", "false")
    cfg = load_config()
    assert cfg.store.backend == "memory"
    assert cfg.graph.cascade_sub_questions_on_delete is False


def test_text_file_override(clean_env):
    (clean_env / "config").mkdir()
    (clean_env / "config" / "permissions.default_role").write_text("admin\n", encoding="utf-8")
    assert load_config().permissions.default_role == "admin"


def test_role_map_from_env(clean_env, monkeypatch):
    monkeypatch.setenv("ROLE_PERMISSIONS", json.dumps({"editor": ["VIEW", "UPDATE"]}))
    assert load_config().permissions.roles == {"editor": ["VIEW", "UPDATE"]}


def test_unknown_action_is_rejected(clean_env, monkeypatch):
    monkeypatch.setenv("ROLE_PERMISSIONS", json.dumps({"editor": ["DELETE"]}))
    with pytest.raises(PydanticValidationError):
        load_config()


def test_malformed_role_json_is_rejected(clean_env, monkeypatch):
    monkeypatch.setenv("ROLE_PERMISSIONS", "{not json")
    with pytest.raises(ValueError):
        load_config()


def test_unknown_backend_is_rejected(clean_env, monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "mongo")
    with pytest.raises(PydanticValidationError):
        load_config()
