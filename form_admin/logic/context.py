"""Collaborators shared by the form, section and question services."""

from __future__ import annotations

from dataclasses import dataclass

from form_admin.config import AppConfig, PaginationConfig
from form_admin.logic.audit import AuditLogger
from form_admin.logic.entity_store import Stores
from form_admin.logic.graph import ReferentialGraph
from form_admin.logic.permissions import PermissionChecker, RolePermissionChecker


@dataclass
class ServiceContext:
    stores: Stores
    graph: ReferentialGraph
    permissions: PermissionChecker
    audit: AuditLogger
    pagination: PaginationConfig


def build_context(config: AppConfig, stores: Stores) -> ServiceContext:
    return ServiceContext(
        stores=stores,
        graph=ReferentialGraph(stores, cascade_sub_questions=config.graph.cascade_sub_questions_on_delete),
        permissions=RolePermissionChecker(config.permissions.roles),
        audit=AuditLogger(),
        pagination=config.pagination,
    )


__all__ = ["ServiceContext", "build_context"]
