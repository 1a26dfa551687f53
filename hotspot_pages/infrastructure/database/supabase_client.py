"""Shared Supabase client and bearer-token resolution.

Without Supabase settings (or with SUPABASE_DISABLED=1) there is no client:
repositories keep their rows in memory and every non-empty bearer token maps
to its own stable fake user, so separate tokens act as separate page owners.
"""
from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass

from supabase import Client, create_client

logger = logging.getLogger(__name__)

_CLIENT_SINGLETON: Client | None = None


@dataclass(slots=True)
class UserInfo:
    """Signed-in caller; ``id`` is what pages record as their owner."""

    id: str
    email: str | None


def _settings() -> tuple[str, str] | None:
    if os.getenv("SUPABASE_DISABLED", "0") == "1":
        return None
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_ANON_KEY")
    return (url, key) if url and key else None


def get_supabase_client() -> Client | None:
    global _CLIENT_SINGLETON
    settings = _settings()
    if settings is None:
        return None
    if _CLIENT_SINGLETON is None:
        _CLIENT_SINGLETON = create_client(*settings)
    return _CLIENT_SINGLETON


def offline_user_id(token: str) -> str:
    return "fake-" + hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


class SupabaseAuthAdapter:
    """Turns an access token into the user whose plan and pages count for quota."""

    def __init__(self, client: Client | None = None) -> None:
        self._client = client if client is not None else get_supabase_client()

    def validate_token(self, token: str) -> UserInfo:
        if not token:
            raise ValueError("Missing access token")
        if self._client is None:
            return UserInfo(id=offline_user_id(token), email=None)
        try:  # pragma: no cover - network
            res = self._client.auth.get_user(token)
        except Exception as exc:  # pragma: no cover - network
            logger.warning("Supabase token validation failed: %s", exc)
            raise ValueError(f"Invalid access token: {exc}") from exc
        user = res.user if res else None  # pragma: no cover - network
        if not user:  # pragma: no cover - network
            raise ValueError("Invalid access token")
        return UserInfo(id=user.id, email=user.email)  # pragma: no cover - network
