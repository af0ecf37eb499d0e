"""Pydantic schemas for identity endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class UserOut(BaseModel):
    id: str
    email: str | None = None


class SignOutResponse(BaseModel):
    signed_out: bool


__all__ = ["SignOutResponse", "UserOut"]
