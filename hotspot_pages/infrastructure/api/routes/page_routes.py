from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from hotspot_pages.application.dtos.common_dto import ErrorResponse
from hotspot_pages.application.dtos.hotspot_dto import HotspotItem
from hotspot_pages.application.dtos.page_dto import (
    CreatePageRequest,
    CreatePageResponse,
    PageMetadata,
    PageWithHotspotsResponse,
    UpdatePageRequest,
    UploadImageResponse,
)
from hotspot_pages.application.use_cases.attach_image import AttachImageUseCase
from hotspot_pages.application.use_cases.create_page import CreatePageUseCase
from hotspot_pages.application.use_cases.refresh_usage import RefreshUsageUseCase
from hotspot_pages.application.use_cases.rename_page import RenamePageUseCase
from hotspot_pages.domain.errors import NotFound
from hotspot_pages.infrastructure.api.dependencies import (
    get_edit_token,
    get_hotspot_repo,
    get_optional_user,
    get_page_repo,
    get_storage,
    get_usage_refresher,
)
from hotspot_pages.infrastructure.database.repositories.hotspot_repository import HotspotRepository
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository
from hotspot_pages.infrastructure.storage.supabase_storage import SupabaseStorage

router = APIRouter(
    tags=["Pages"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - Invalid request data"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    },
)


@router.post(
    "/page",
    response_model=CreatePageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Page",
    description="""
    Start a new shareable page. The image is attached afterwards via `/upload`.

    The response contains the secret `edit_token`; it is shown once and is the
    only credential that allows editing the page. A bearer token is optional
    and, when valid, records the signed-in user as the page owner.
    """,
    response_description="Identifiers of the new page, including its edit token",
)
def create_page(
    body: CreatePageRequest,
    user=Depends(get_optional_user),
    pages: PageRepository = Depends(get_page_repo),
    usage: RefreshUsageUseCase = Depends(get_usage_refresher),
):
    """Create a page and mint its slug and edit token."""
    uc = CreatePageUseCase(page_repo=pages)
    page = uc.execute(title=body.title, owner_id=user.id if user else None)
    usage.execute_quietly(page.owner_id)
    return CreatePageResponse(id=page.id, slug=page.slug, edit_token=page.edit_token)


@router.get(
    "/page/{slug}",
    response_model=PageWithHotspotsResponse,
    summary="Get Page",
    description="""
    Public read of a page and its hotspots, ordered by `z_index` ascending.

    **Authentication required**: No. The edit token is never included.
    """,
    response_description="Page metadata and hotspots",
    responses={404: {"model": ErrorResponse, "description": "Not Found - No page with this slug"}},
)
def get_page(
    slug: str,
    pages: PageRepository = Depends(get_page_repo),
    hotspots: HotspotRepository = Depends(get_hotspot_repo),
    storage: SupabaseStorage = Depends(get_storage),
):
    """Get public page metadata plus hotspots."""
    page = pages.get_by_slug(slug)
    if page is None:
        raise NotFound("Page not found")
    items = [HotspotItem.from_entity(h) for h in hotspots.list_by_page(page.id)]
    return PageWithHotspotsResponse(
        page=PageMetadata.from_entity(page, storage.get_public_url(page.image_path)),
        hotspots=items,
    )


@router.patch(
    "/page/{slug}",
    response_model=PageMetadata,
    summary="Rename Page",
    description="""
    Change the page title. An empty title clears it.

    **Edit token required**: Yes (`X-Edit-Token` header)
    """,
    response_description="Updated public page metadata",
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized - Missing edit token"},
        403: {"model": ErrorResponse, "description": "Forbidden - Invalid edit token or page not found"},
    },
)
def rename_page(
    slug: str,
    body: UpdatePageRequest,
    edit_token: str | None = Depends(get_edit_token),
    pages: PageRepository = Depends(get_page_repo),
    storage: SupabaseStorage = Depends(get_storage),
):
    """Rename a page."""
    uc = RenamePageUseCase(page_repo=pages)
    page = uc.execute(slug, edit_token, body.title)
    return PageMetadata.from_entity(page, storage.get_public_url(page.image_path))


@router.post(
    "/upload",
    response_model=UploadImageResponse,
    summary="Upload Page Image",
    description="""
    Attach an image to a page.

    **Supported formats**: JPEG, PNG, WEBP
    **Maximum file size**: 10MB
    **Edit token required**: Yes (`X-Edit-Token` header)

    The intrinsic width and height are read from the file and stored with the
    page; hotspot fractions are relative to that image box.
    """,
    response_description="Storage location and size of the attached image",
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized - Missing edit token"},
        403: {"model": ErrorResponse, "description": "Forbidden - Invalid edit token or page not found"},
    },
)
def upload_image(
    file: UploadFile = File(..., description="Image file to upload"),
    page_id: str = Form(..., alias="pageId", description="ID of the page to attach the image to"),
    edit_token: str | None = Depends(get_edit_token),
    pages: PageRepository = Depends(get_page_repo),
    storage: SupabaseStorage = Depends(get_storage),
):
    """Upload an image and attach it to a page."""
    data = file.file.read()
    uc = AttachImageUseCase(storage=storage, page_repo=pages)
    page, stored = uc.execute(page_id, edit_token, data)
    return UploadImageResponse(
        image_path=stored.path,
        image_url=storage.get_public_url(stored.path),
        image_width=page.image_width,
        image_height=page.image_height,
    )
