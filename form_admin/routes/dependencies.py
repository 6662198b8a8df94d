"""FastAPI dependencies: configuration, acting user and services."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from form_admin.config import AppConfig
from form_admin.logic.context import ServiceContext, build_context
from form_admin.logic.form_service import FormService
from form_admin.logic.question_service import QuestionService
from form_admin.logic.section_service import SectionService
from form_admin.logic.stores import get_stores
from form_admin.models.actor import Actor

ANONYMOUS_ACTOR_ID = "anonymous"


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_actor(
    config: AppConfig = Depends(get_config),
    x_actor_id: Optional[str] = Header(default=None),
    x_actor_role: Optional[str] = Header(default=None),
) -> Actor:
    """Build the actor from headers set by the fronting auth layer."""
    return Actor(
        id=(x_actor_id or "").strip() or ANONYMOUS_ACTOR_ID,
        role=(x_actor_role or "").strip() or config.permissions.default_role,
    )


def get_context(config: AppConfig = Depends(get_config)) -> ServiceContext:
    return build_context(config, get_stores())


def get_form_service(ctx: ServiceContext = Depends(get_context)) -> FormService:
    return FormService(ctx)


def get_section_service(ctx: ServiceContext = Depends(get_context)) -> SectionService:
    return SectionService(ctx)


def get_question_service(ctx: ServiceContext = Depends(get_context)) -> QuestionService:
    return QuestionService(ctx)


__all__ = [
    "get_config",
    "get_actor",
    "get_context",
    "get_form_service",
    "get_section_service",
    "get_question_service",
]
