"""Construction of the per-kind entity stores from configuration."""

from __future__ import annotations

import logging
from typing import Optional

from form_admin.config import AppConfig, load_config
from form_admin.logic.entity_store import Stores
from form_admin.logic.inmemory_store import InMemoryEntityStore

logger = logging.getLogger(__name__)

_STORES: Optional[Stores] = None


def build_stores(config: AppConfig) -> Stores:
    if config.store.backend == "sql":
        from form_admin.db.base import get_engine
        from form_admin.logic.repository_entities import (
            FORMS_TABLE,
            QUESTIONS_TABLE,
            SECTIONS_TABLE,
            SqlEntityStore,
        )

        dsn = config.database.dsn

        def engine_factory():
            return get_engine(dsn)

        logger.info("entity_stores_built backend=sql")
        return Stores(
            forms=SqlEntityStore("form", FORMS_TABLE, engine_factory),
            sections=SqlEntityStore("section", SECTIONS_TABLE, engine_factory),
            questions=SqlEntityStore("question", QUESTIONS_TABLE, engine_factory),
        )
    logger.info("entity_stores_built backend=memory")
    return Stores(
        forms=InMemoryEntityStore("form"),
        sections=InMemoryEntityStore("section"),
        questions=InMemoryEntityStore("question"),
    )


def get_stores() -> Stores:
    """Return the process-wide stores, building them on first use."""
    global _STORES
    if _STORES is None:
        _STORES = build_stores(load_config())
    return _STORES


def set_stores(stores: Optional[Stores]) -> None:
    """Install (or with None, drop) the process-wide stores."""
    global _STORES
    _STORES = stores


def clear_inmemory_stores() -> None:
    if _STORES is None:
        return
    for store in (_STORES.forms, _STORES.sections, _STORES.questions):
        if isinstance(store, InMemoryEntityStore):
            store.clear()


__all__ = ["build_stores", "get_stores", "set_stores", "clear_inmemory_stores"]
