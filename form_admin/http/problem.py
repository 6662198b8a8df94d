"""Problem+JSON rendering and global exception handlers.

Every error leaves the service as an RFC7807 `application/problem+json`
body. Domain errors carry their own status and code; framework errors are
reshaped into the same envelope.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from form_admin.logic.errors import FormAdminError

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_response(problem: dict, status: int, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(jsonable_encoder(problem), status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=headers)


async def handle_form_admin_error(request: Request, exc: FormAdminError) -> JSONResponse:
    if exc.status >= 500:
        logger.error("request_failed path=%s code=%s detail=%s", request.url.path, exc.code, exc.message)
    else:
        logger.info("request_rejected path=%s code=%s detail=%s", request.url.path, exc.code, exc.message)
    return problem_response(exc.to_problem(), exc.status)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    status = int(exc.status_code or 500)
    if isinstance(exc.detail, dict):
        problem = dict(exc.detail)
        problem.setdefault("status", status)
    else:
        problem = {"title": "Error", "status": status, "detail": str(exc.detail or "")}
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return problem_response(problem, status, headers or None)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = list(exc.errors())
    # Surface the first validator message ("Form Title is Empty") as the detail
    first = errors[0].get("msg", "") if errors else ""
    problem = {
        "title": "Invalid Request",
        "status": 422,
        "detail": str(first).removeprefix("Value error, ") or "Request validation failed",
        "code": "REQUEST_VALIDATION_FAILED",
        "errors": errors,
    }
    return problem_response(problem, 422)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return problem_response({"title": "Internal Server Error", "status": 500}, 500)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_form_admin_error",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
