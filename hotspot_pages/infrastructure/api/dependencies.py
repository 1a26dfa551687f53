from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hotspot_pages.application.use_cases.refresh_usage import RefreshUsageUseCase
from hotspot_pages.infrastructure.database.repositories.hotspot_repository import HotspotRepository
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository
from hotspot_pages.infrastructure.database.repositories.profile_repository import ProfileRepository
from hotspot_pages.infrastructure.database.repositories.usage_repository import UsageRepository
from hotspot_pages.infrastructure.database.supabase_client import (
    SupabaseAuthAdapter,
    UserInfo,
    get_supabase_client,
)
from hotspot_pages.infrastructure.storage.supabase_storage import SupabaseStorage

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_adapter() -> SupabaseAuthAdapter:
    return SupabaseAuthAdapter()


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)] = None,
    auth: Annotated[SupabaseAuthAdapter, Depends(get_auth_adapter)] = None,
) -> UserInfo:
    if not credentials or not credentials.scheme or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = credentials.credentials
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    try:
        return auth.validate_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(_bearer_scheme)] = None,
    auth: Annotated[SupabaseAuthAdapter, Depends(get_auth_adapter)] = None,
) -> UserInfo | None:
    """Signed-in identity if a valid bearer token came along, else anonymous.

    Only feeds quota classification and page ownership, never edit rights.
    """
    if not credentials or not credentials.credentials:
        return None
    try:
        return auth.validate_token(credentials.credentials)
    except ValueError as exc:
        logger.info("Ignoring invalid bearer token, treating caller as anonymous: %s", exc)
        return None


def get_edit_token(
    x_edit_token: Annotated[str | None, Header(description="Secret edit token of the page")] = None,
) -> str | None:
    return x_edit_token or None


def get_storage() -> SupabaseStorage:
    return SupabaseStorage(get_supabase_client())


def get_page_repo() -> PageRepository:
    return PageRepository(get_supabase_client())


def get_hotspot_repo() -> HotspotRepository:
    return HotspotRepository(get_supabase_client())


def get_profile_repo() -> ProfileRepository:
    return ProfileRepository(get_supabase_client())


def get_usage_repo() -> UsageRepository:
    return UsageRepository(get_supabase_client())


def get_usage_refresher(
    pages: Annotated[PageRepository, Depends(get_page_repo)],
    hotspots: Annotated[HotspotRepository, Depends(get_hotspot_repo)],
    usage: Annotated[UsageRepository, Depends(get_usage_repo)],
) -> RefreshUsageUseCase:
    return RefreshUsageUseCase(page_repo=pages, hotspot_repo=hotspots, usage_repo=usage)
