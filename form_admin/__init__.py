"""FastAPI application package for the Form Admin service.

Exposes the application factory. Business logic lives in
`form_admin/logic/` and route handlers in `form_admin/routes/`.
"""

from __future__ import annotations

from form_admin.main import create_app

__all__ = ["create_app"]
