"""Pydantic schemas for ticker lookups."""

from __future__ import annotations

from pydantic import BaseModel


class TickerCheckSchema(BaseModel):
    ticker: str
    exists: bool
    name: str | None = None
    error: str | None = None


__all__ = ["TickerCheckSchema"]
