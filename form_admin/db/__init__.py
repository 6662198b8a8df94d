"""Database bootstrap utilities for the SQL entity store.

Exposes engine construction and the migrations runner that applies the
packaged SQL files. Route handlers never touch the DB layer directly.
"""

from form_admin.db.base import dispose_engine, get_engine
from form_admin.db.migrations_runner import apply_migrations

__all__ = [
    "get_engine",
    "dispose_engine",
    "apply_migrations",
]
