"""Configuration utilities for the Form Admin service.

This module loads application configuration with the following rules:
- Primary source: `form_admin_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from form_admin.models.enums import Action


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("form_admin_config.json")
logger = logging.getLogger(__name__)

DEFAULT_ROLE_PERMISSIONS: Dict[str, List[str]] = {
    "super": [Action.CREATE, Action.UPDATE, Action.VIEW],
    "admin": [Action.CREATE, Action.UPDATE, Action.VIEW],
    "viewer": [Action.VIEW],
}


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _is_true(value: object) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class StoreConfig(BaseModel):
    backend: str = Field(default="memory")
    auto_apply_migrations: bool = Field(default=False)

    @field_validator("backend")
    @classmethod
    def backend_must_be_allowed(cls, v: str) -> str:
        allowed = {"memory", "sql"}
        if v not in allowed:
            raise ValueError(f"store.backend must be one of {sorted(allowed)}")
        return v


class PaginationConfig(BaseModel):
    default_per_page: int = Field(default=10, gt=0)
    max_per_page: int = Field(default=100, gt=0)


class PermissionsConfig(BaseModel):
    default_role: str = Field(default="viewer")
    roles: Dict[str, List[str]] = Field(default_factory=lambda: dict(DEFAULT_ROLE_PERMISSIONS))

    @field_validator("roles")
    @classmethod
    def actions_must_be_known(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        for role, actions in v.items():
            unknown = set(actions) - set(Action.ALL)
            if unknown:
                raise ValueError(f"permissions.roles[{role}] has unknown actions {sorted(unknown)}")
        return v


class GraphConfig(BaseModel):
    # Deleting a GROUPED question also deletes the sub-questions it references
    cascade_sub_questions_on_delete: bool = Field(default=True)


class AppConfig(BaseModel):
    database: DatabaseConfig
    store: StoreConfig
    pagination: PaginationConfig
    permissions: PermissionsConfig
    graph: GraphConfig
    enable_test_support: bool = False


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:  # pragma: no cover
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) form_admin_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    # Database
    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )

    # Entity store
    backend = (_env("STORE_BACKEND") or _read_config_file("store.backend") or _base("store.backend", "memory")).strip().lower()
    auto_migrate_text = _env("AUTO_APPLY_MIGRATIONS") or _read_config_file("store.auto_apply_migrations") or _base("store.auto_apply_migrations", "false")

    # Pagination
    per_page_text = _env("PAGINATION_DEFAULT_PER_PAGE") or _read_config_file("pagination.default_per_page") or _base("pagination.default_per_page", "10")
    max_per_page_text = _env("PAGINATION_MAX_PER_PAGE") or _read_config_file("pagination.max_per_page") or _base("pagination.max_per_page", "100")

    # Permissions: role map may only come from JSON sources
    default_role = (_env("DEFAULT_ACTOR_ROLE") or _read_config_file("permissions.default_role") or _base("permissions.default_role", "viewer")).strip()
    roles_text = _env("ROLE_PERMISSIONS") or _read_config_file("permissions.roles.json")
    roles: Dict[str, List[str]] = dict(DEFAULT_ROLE_PERMISSIONS)
    if roles_text:
        try:
            roles = json.loads(roles_text)
        except json.JSONDecodeError as e:
            logger.error("Invalid ROLE_PERMISSIONS JSON: %s", e)
            raise
    elif isinstance((base.get("permissions") or {}).get("roles"), dict):
        roles = base["permissions"]["roles"]

    # Graph
    cascade_text = _env("CASCADE_SUB_QUESTIONS") or _read_config_file("graph.cascade_sub_questions") or _base("graph.cascade_sub_questions_on_delete", "true")

    test_support_text = _env("ENABLE_TEST_SUPPORT") or _read_config_file("test_support.enabled") or _base("enable_test_support", "false")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            store=StoreConfig(backend=backend, auto_apply_migrations=_is_true(auto_migrate_text)),
            pagination=PaginationConfig(
                default_per_page=int(str(per_page_text).strip()),
                max_per_page=int(str(max_per_page_text).strip()),
            ),
            permissions=PermissionsConfig(default_role=default_role, roles=roles),
            graph=GraphConfig(cascade_sub_questions_on_delete=_is_true(cascade_text)),
            enable_test_support=_is_true(test_support_text),
        )
        return cfg
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "StoreConfig",
    "PaginationConfig",
    "PermissionsConfig",
    "GraphConfig",
    "load_config",
]
