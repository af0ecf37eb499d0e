"""HTTP client for the external identity/session provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.config import AppSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class User:
    id: str
    email: str | None = None


class IdentityClient:
    """Resolve bearer tokens against a GoTrue-compatible auth API.

    Sessions are owned by the provider; this client only reads the current
    user and asks the provider to end a session.
    """

    def __init__(self, base_url: str, anon_key: str | None, *, client: Any, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._client = client
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: AppSettings, client: httpx.AsyncClient) -> "IdentityClient":
        return cls(
            settings.identity_url,
            settings.identity_anon_key,
            client=client,
            timeout=settings.identity_timeout_seconds,
        )

    def _headers(self, access_token: str) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {access_token}"}
        if self._anon_key:
            headers["apikey"] = self._anon_key
        return headers

    async def get_current_user(self, access_token: str | None) -> User | None:
        if not access_token:
            return None
        url = f"{self._base_url}/auth/v1/user"
        try:
            response = await self._client.get(url, headers=self._headers(access_token), timeout=self._timeout)
        except httpx.HTTPError as exc:
            logger.warning("Identity provider unreachable: %s", exc)
            return None
        if response.status_code >= 400:
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Identity provider returned non-JSON content")
            return None
        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            return None
        return User(id=str(user_id), email=payload.get("email"))

    async def sign_out(self, access_token: str) -> bool:
        url = f"{self._base_url}/auth/v1/logout"
        try:
            response = await self._client.post(url, headers=self._headers(access_token), timeout=self._timeout)
        except httpx.HTTPError as exc:
            logger.warning("Sign-out request failed: %s", exc)
            return False
        return response.status_code < 400


__all__ = ["IdentityClient", "User"]
