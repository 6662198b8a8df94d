from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from form_admin.config import AppConfig, load_config
from form_admin.db.base import get_engine
from form_admin.db.migrations_runner import apply_migrations
from form_admin.http.problem import (
    handle_form_admin_error,
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from form_admin.http.request_id import RequestIdMiddleware
from form_admin.logging_setup import configure_logging
from form_admin.logic.errors import FormAdminError
from form_admin.logic.stores import build_stores, set_stores
from form_admin.middleware.cors import apply_cors
from form_admin.routes import api_router

logger = logging.getLogger(__name__)


def _health_check(config: AppConfig) -> Callable[[], dict]:
    def check() -> dict:
        if config.store.backend != "sql":
            return {"status": "ok", "store": config.store.backend}
        try:
            with get_engine(config.database.dsn).connect() as conn:
                conn.execute(sql_text("SELECT 1"))
            return {"status": "ok", "store": "sql", "db": True}
        except SQLAlchemyError as e:
            logger.error("Health DB check failed", exc_info=True)
            return {"status": "degraded", "store": "sql", "db": False, "reason": str(e)}

    return check


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    configure_logging()
    config = config or load_config()

    app = FastAPI(title="Form Admin Service")
    app.state.config = config
    set_stores(build_stores(config))

    app.add_exception_handler(FormAdminError, handle_form_admin_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.add_middleware(RequestIdMiddleware)
    apply_cors(app)

    app.include_router(api_router, prefix="/api/v1")
    if config.enable_test_support:
        from form_admin.routes.test_support import router as test_support_router

        app.include_router(test_support_router)
        logger.info("test_support_routes_enabled")

    health_check = _health_check(config)

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return health_check()

    # Apply migrations on startup (guarded) to avoid import-time side effects
    @app.on_event("startup")
    def _apply_migrations() -> None:
        if config.store.backend != "sql":
            return
        if not config.store.auto_apply_migrations:
            logger.info("startup_migrations_disabled")
            return
        try:
            applied = apply_migrations(get_engine(config.database.dsn))
        except SQLAlchemyError:
            logger.error("startup_migrations_failed", exc_info=True)
            raise
        logger.info("startup_migrations_applied files=%s", applied)

    return app


# Intentionally do not instantiate the app at import time to prevent side effects.
