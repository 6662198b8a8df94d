"""Multi-step mutations with per-step compensation.

The entity store commits every call on its own, so a creation such as
"insert question, then append it to its container" can fail between steps.
A `Saga` runs its steps in order; when a step raises, the compensations of
the steps that already completed run in reverse order and the
step's error is re-raised.

A compensation that fails leaves the graph in a state nobody will fix
automatically. Such sagas are logged at ERROR and kept in
`INCOMPLETE_SAGAS` so an operator (or a repair job) can find them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from form_admin.logic.entity_store import format_timestamp

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]
Compensation = Callable[[Any], Awaitable[None]]

# Registry of sagas whose compensation could not be completed
INCOMPLETE_SAGAS: List[Dict[str, Any]] = []


@dataclass
class _Step:
    name: str
    action: Action
    compensation: Optional[Compensation]


@dataclass
class Saga:
    name: str
    context: Dict[str, Any] = field(default_factory=dict)
    _steps: List[_Step] = field(default_factory=list)

    def step(self, name: str, action: Action, compensation: Optional[Compensation] = None) -> "Saga":
        self._steps.append(_Step(name, action, compensation))
        return self

    async def run(self) -> Dict[str, Any]:
        """Run all steps and return their results keyed by step name."""
        results: Dict[str, Any] = {}
        completed: List[_Step] = []
        for st in self._steps:
            try:
                results[st.name] = await st.action()
            except Exception as exc:
                logger.warning(
                    "saga.step_failed saga=%s step=%s error=%s", self.name, st.name, exc
                )
                await self._compensate(completed, results, failed_step=st.name, error=exc)
                raise
            completed.append(st)
        logger.info("saga.completed saga=%s steps=%s", self.name, [s.name for s in completed])
        return results

    async def _compensate(
        self, completed: List[_Step], results: Dict[str, Any], *, failed_step: str, error: Exception
    ) -> None:
        for st in reversed(completed):
            if st.compensation is None:
                continue
            try:
                await st.compensation(results.get(st.name))
                logger.info("saga.compensated saga=%s step=%s", self.name, st.name)
            except Exception:
                logger.error(
                    "saga.compensation_failed saga=%s step=%s", self.name, st.name, exc_info=True
                )
                record_incomplete(
                    self.name,
                    failed_step=failed_step,
                    error=str(error),
                    uncompensated_step=st.name,
                    context=self.context,
                )
                return


def record_incomplete(saga: str, *, failed_step: str, error: str, context: Dict[str, Any], uncompensated_step: Optional[str] = None) -> None:
    entry = {
        "saga": saga,
        "failed_step": failed_step,
        "uncompensated_step": uncompensated_step,
        "error": error,
        "context": dict(context),
        "recorded_at": format_timestamp(),
    }
    INCOMPLETE_SAGAS.append(entry)
    logger.error("saga.incomplete %s", entry)


def get_incomplete_sagas(clear: bool = False) -> List[Dict[str, Any]]:
    entries = list(INCOMPLETE_SAGAS)
    if clear:
        INCOMPLETE_SAGAS.clear()
    return entries


__all__ = ["Saga", "INCOMPLETE_SAGAS", "record_incomplete", "get_incomplete_sagas"]
