"""Pydantic models for paginated listings and cascade delete results."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel


class Page(BaseModel):
    docs: List[Dict[str, Any]]
    total_pages: int
    total_docs_count: int
    current_page: int


class CascadeResult(BaseModel):
    """Body of a successful cascade delete: the removed record and its report."""

    deleted: Dict[str, Any]
    cascade: Dict[str, Any]


__all__ = ["Page", "CascadeResult"]
