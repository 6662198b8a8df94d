"""Permission checks for form administration actions."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Protocol

from form_admin.logic.errors import PermissionDeniedError
from form_admin.models.actor import Actor
from form_admin.models.enums import Action

logger = logging.getLogger(__name__)


class PermissionChecker(Protocol):
    def is_permitted(self, actor: Actor, action: str) -> bool: ...


class RolePermissionChecker:
    """Grants actions by the actor's role using a configured role map."""

    def __init__(self, roles: Mapping[str, Iterable[str]]) -> None:
        self._roles: Dict[str, frozenset] = {role: frozenset(actions) for role, actions in roles.items()}

    def is_permitted(self, actor: Actor, action: str) -> bool:
        return action in self._roles.get(actor.role, frozenset())


def ensure_permitted(checker: PermissionChecker, actor: Actor, action: str) -> None:
    if action not in Action.ALL:
        raise ValueError(f"unknown action {action!r}")
    if not checker.is_permitted(actor, action):
        logger.info("permission_denied actor=%s role=%s action=%s", actor.id, actor.role, action)
        raise PermissionDeniedError()


__all__ = ["PermissionChecker", "RolePermissionChecker", "ensure_permitted"]
