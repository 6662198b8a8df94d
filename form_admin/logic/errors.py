"""Domain error taxonomy for the Form Admin service.

Logic modules raise these; `form_admin.http.problem` renders them as
problem+json. Each class carries a stable `code` and the HTTP `status` it
maps to, so route handlers never pick status codes themselves.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class FormAdminError(Exception):
    """Base class for all typed failures surfaced to callers."""

    code = "FORM_ADMIN_ERROR"
    status = 500
    title = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_problem(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "status": self.status,
            "detail": self.message,
            "code": self.code,
        }


class ValidationError(FormAdminError):
    code = "VALIDATION_ERROR"
    status = 400
    title = "Invalid Request"


class InvalidOptionsError(ValidationError):
    code = "QUESTION_OPTIONS_NOT_ALLOWED"


class MissingOptionsError(ValidationError):
    code = "QUESTION_OPTIONS_MISSING"


class MissingPrerequisitesError(ValidationError):
    code = "QUESTION_PREREQUISITES_MISSING"


class ContainerInvalidError(ValidationError):
    code = "CONTAINER_INVALID"


class MissingContainerContextError(ValidationError):
    code = "CONTAINER_CONTEXT_MISSING"


class NotFoundError(FormAdminError):
    code = "NOT_FOUND"
    status = 404
    title = "Not Found"


class ContainerNotFoundError(NotFoundError):
    code = "CONTAINER_NOT_FOUND"


class ConflictError(FormAdminError):
    code = "CONFLICT"
    status = 409
    title = "Conflict"


class PermissionDeniedError(FormAdminError):
    code = "PERMISSION_DENIED"
    status = 403
    title = "Forbidden"

    def __init__(self, message: str = "You Don't have enough permissions to complete this action") -> None:
        super().__init__(message)


class PartialCascadeFailure(FormAdminError):
    """A delete cascade stopped partway; `report` lists what already happened."""

    code = "PARTIAL_CASCADE_FAILURE"
    status = 500
    title = "Partial Cascade Failure"

    def __init__(self, message: str, report: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.report = report or {}

    def to_problem(self) -> Dict[str, Any]:
        problem = super().to_problem()
        problem["cascade"] = self.report
        return problem


__all__ = [
    "FormAdminError",
    "ValidationError",
    "InvalidOptionsError",
    "MissingOptionsError",
    "MissingPrerequisitesError",
    "ContainerInvalidError",
    "MissingContainerContextError",
    "NotFoundError",
    "ContainerNotFoundError",
    "ConflictError",
    "PermissionDeniedError",
    "PartialCascadeFailure",
]
