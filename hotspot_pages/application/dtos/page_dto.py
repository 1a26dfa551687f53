from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from hotspot_pages.application.dtos.hotspot_dto import HotspotItem
from hotspot_pages.domain.entities.page import PageEntity

MAX_TITLE_LENGTH = 200


class CreatePageRequest(BaseModel):
    """Request model for starting a new page."""
    title: Optional[str] = Field(None, description="Optional page title", examples=["Our kitchen"], max_length=MAX_TITLE_LENGTH)


class CreatePageResponse(BaseModel):
    """Identifiers of a freshly created page, including its secret edit token."""
    id: str = Field(..., description="Unique identifier of the page")
    slug: str = Field(..., description="Public lookup key used in share links", examples=["k3v9x2qa"])
    edit_token: str = Field(..., description="Secret capability granting edit rights; keep private")


class PageMetadata(BaseModel):
    """Public page metadata. Never carries the edit token."""
    id: str = Field(..., description="Unique identifier of the page")
    slug: str = Field(..., description="Public lookup key")
    title: Optional[str] = Field(None, description="Page title")
    image_path: Optional[str] = Field(None, description="Storage path of the page image")
    image_url: Optional[str] = Field(None, description="Public URL of the page image")
    image_width: Optional[int] = Field(None, description="Intrinsic image width in pixels", gt=0)
    image_height: Optional[int] = Field(None, description="Intrinsic image height in pixels", gt=0)
    created_at: datetime = Field(..., description="ISO timestamp when the page was created")
    updated_at: datetime = Field(..., description="ISO timestamp of the last change")

    @classmethod
    def from_entity(cls, entity: PageEntity, image_url: Optional[str] = None) -> "PageMetadata":
        return cls(
            id=entity.id,
            slug=entity.slug,
            title=entity.title,
            image_path=entity.image_path,
            image_url=image_url,
            image_width=entity.image_width,
            image_height=entity.image_height,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )


class PageWithHotspotsResponse(BaseModel):
    """A page and its hotspots in stacking order."""
    page: PageMetadata = Field(..., description="Public page metadata")
    hotspots: list[HotspotItem] = Field(default_factory=list, description="Hotspots ordered by z_index ascending")


class UpdatePageRequest(BaseModel):
    """Request model for renaming a page."""
    title: Optional[str] = Field(None, description="New title; empty or missing clears it", max_length=MAX_TITLE_LENGTH)


class UploadImageResponse(BaseModel):
    """Image attached to a page."""
    image_path: str = Field(..., description="Storage path of the uploaded image")
    image_url: Optional[str] = Field(None, description="Public URL of the uploaded image")
    image_width: Optional[int] = Field(None, description="Intrinsic width in pixels", examples=[1920])
    image_height: Optional[int] = Field(None, description="Intrinsic height in pixels", examples=[1080])
