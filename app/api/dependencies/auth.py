"""Authentication helpers for API routes."""

from __future__ import annotations

from fastapi import Header, HTTPException, Request, status

from app.services.identity import IdentityClient, User


def bearer_token(authorization: str | None = Header(default=None)) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    return authorization.split(" ", 1)[1].strip()


async def get_current_user(request: Request, authorization: str | None = Header(default=None)) -> User:
    token = bearer_token(authorization)
    identity: IdentityClient = request.app.state.identity
    user = await identity.get_current_user(token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")
    return user


__all__ = ["bearer_token", "get_current_user"]
