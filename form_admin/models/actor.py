"""The acting user, passed explicitly into every service operation."""

from __future__ import annotations

from pydantic import BaseModel


class Actor(BaseModel):
    id: str
    role: str


__all__ = ["Actor"]
