from __future__ import annotations

from fastapi import APIRouter, Depends, status

from hotspot_pages.application.dtos.common_dto import ErrorResponse, QuotaErrorResponse
from hotspot_pages.application.dtos.hotspot_dto import (
    CreateHotspotRequest,
    DeleteHotspotResponse,
    HotspotItem,
    UpdateHotspotRequest,
)
from hotspot_pages.application.use_cases.create_hotspot import CreateHotspotUseCase
from hotspot_pages.application.use_cases.delete_hotspot import DeleteHotspotUseCase
from hotspot_pages.application.use_cases.refresh_usage import RefreshUsageUseCase
from hotspot_pages.application.use_cases.update_hotspot import UpdateHotspotUseCase
from hotspot_pages.infrastructure.api.dependencies import (
    get_edit_token,
    get_hotspot_repo,
    get_optional_user,
    get_page_repo,
    get_profile_repo,
    get_usage_refresher,
)
from hotspot_pages.infrastructure.database.repositories.hotspot_repository import HotspotRepository
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository
from hotspot_pages.infrastructure.database.repositories.profile_repository import ProfileRepository

router = APIRouter(
    prefix="/hotspot",
    tags=["Hotspots"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Invalid request data"},
        401: {"model": ErrorResponse, "description": "Unauthorized - Missing edit token"},
        403: {"model": ErrorResponse, "description": "Forbidden - Invalid edit token or target not found"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
)


@router.post(
    "",
    response_model=HotspotItem,
    status_code=status.HTTP_201_CREATED,
    summary="Create Hotspot",
    description="""
    Place a new hotspot on a page.

    **Coordinates**: `x_pct` and `y_pct` are fractions (0-1) of the image's own
    width and height, never pixels.
    **Edit token required**: Yes (`X-Edit-Token` header)
    **Bearer token**: Optional; only used to pick the quota that applies

    Quotas:
    - Anonymous callers: 10 hotspots per page
    - Signed-in free plan: 10 hotspots across all pages the user owns
    - Pro plan: unlimited
    """,
    response_description="The stored hotspot with its server-assigned id",
    responses={
        402: {"model": QuotaErrorResponse, "description": "Payment Required - Hotspot limit reached"},
    },
)
def create_hotspot(
    body: CreateHotspotRequest,
    edit_token: str | None = Depends(get_edit_token),
    user=Depends(get_optional_user),
    pages: PageRepository = Depends(get_page_repo),
    hotspots: HotspotRepository = Depends(get_hotspot_repo),
    profiles: ProfileRepository = Depends(get_profile_repo),
    usage: RefreshUsageUseCase = Depends(get_usage_refresher),
):
    """Create a hotspot after checking the edit token and quota."""
    uc = CreateHotspotUseCase(page_repo=pages, hotspot_repo=hotspots, profile_repo=profiles, usage=usage)
    entity = uc.execute(
        page_id=body.page_id,
        edit_token=edit_token,
        x_pct=body.x_pct,
        y_pct=body.y_pct,
        text=body.text,
        user=user,
    )
    return HotspotItem.from_entity(entity)


@router.patch(
    "/{hotspot_id}",
    response_model=HotspotItem,
    summary="Update Hotspot",
    description="""
    Change any subset of `text`, `x_pct`, `y_pct` and `z_index`.

    **Edit token required**: Yes (`X-Edit-Token` header)

    There is no version check: concurrent edits of one hotspot are
    last-write-wins.
    """,
    response_description="The hotspot as stored after the update",
)
def update_hotspot(
    hotspot_id: str,
    body: UpdateHotspotRequest,
    edit_token: str | None = Depends(get_edit_token),
    pages: PageRepository = Depends(get_page_repo),
    hotspots: HotspotRepository = Depends(get_hotspot_repo),
):
    """Partially update a hotspot."""
    uc = UpdateHotspotUseCase(page_repo=pages, hotspot_repo=hotspots)
    entity = uc.execute(hotspot_id, edit_token, body.changes())
    return HotspotItem.from_entity(entity)


@router.delete(
    "/{hotspot_id}",
    response_model=DeleteHotspotResponse,
    summary="Delete Hotspot",
    description="""
    Permanently remove a hotspot.

    **Edit token required**: Yes (`X-Edit-Token` header)
    """,
    response_description="Confirmation of the deletion",
)
def delete_hotspot(
    hotspot_id: str,
    edit_token: str | None = Depends(get_edit_token),
    pages: PageRepository = Depends(get_page_repo),
    hotspots: HotspotRepository = Depends(get_hotspot_repo),
    usage: RefreshUsageUseCase = Depends(get_usage_refresher),
):
    """Delete a hotspot."""
    uc = DeleteHotspotUseCase(page_repo=pages, hotspot_repo=hotspots, usage=usage)
    uc.execute(hotspot_id, edit_token)
    return DeleteHotspotResponse(success=True)
