"""APIRouter registration for the Form Admin service."""

from __future__ import annotations

from fastapi import APIRouter

from form_admin.routes.forms import router as forms_router
from form_admin.routes.questions import router as questions_router
from form_admin.routes.sections import router as sections_router

api_router = APIRouter()
# Section and question routers first: their static paths sit under /forms/
api_router.include_router(sections_router)
api_router.include_router(questions_router)
api_router.include_router(forms_router)

__all__ = ["api_router"]
