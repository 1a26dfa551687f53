from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from hotspot_pages.domain.entities.hotspot import HotspotEntity

MAX_TEXT_LENGTH = 1000


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError("Tooltip text cannot be empty")
    return value


class HotspotItem(BaseModel):
    """A hotspot as returned by the API."""
    id: str = Field(..., description="Unique identifier of the hotspot")
    page_id: str = Field(..., description="ID of the owning page")
    x_pct: float = Field(..., description="Horizontal position as a fraction of image width", examples=[0.5], ge=0.0, le=1.0)
    y_pct: float = Field(..., description="Vertical position as a fraction of image height", examples=[0.25], ge=0.0, le=1.0)
    text: str = Field(..., description="Tooltip text", examples=["Espresso machine"])
    z_index: int = Field(0, description="Stacking order, ascending")
    created_at: datetime = Field(..., description="ISO timestamp when the hotspot was created")
    updated_at: datetime = Field(..., description="ISO timestamp of the last change")

    @classmethod
    def from_entity(cls, entity: HotspotEntity) -> "HotspotItem":
        return cls(
            id=entity.id,
            page_id=entity.page_id,
            x_pct=entity.x_pct,
            y_pct=entity.y_pct,
            text=entity.text,
            z_index=entity.z_index,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )


class CreateHotspotRequest(BaseModel):
    """Request model for placing a new hotspot."""
    page_id: str = Field(..., description="ID of the page the hotspot belongs to", min_length=1)
    x_pct: float = Field(..., description="Horizontal position, fraction of image width", examples=[0.5], ge=0.0, le=1.0)
    y_pct: float = Field(..., description="Vertical position, fraction of image height", examples=[0.5], ge=0.0, le=1.0)
    text: str = Field(..., description="Tooltip text", examples=["Hello"], min_length=1, max_length=MAX_TEXT_LENGTH)

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        return _clean_text(value)


class UpdateHotspotRequest(BaseModel):
    """Any subset of the editable hotspot fields; at least one is required."""
    text: Optional[str] = Field(None, description="New tooltip text", min_length=1, max_length=MAX_TEXT_LENGTH)
    x_pct: Optional[float] = Field(None, description="New horizontal position", ge=0.0, le=1.0)
    y_pct: Optional[float] = Field(None, description="New vertical position", ge=0.0, le=1.0)
    z_index: Optional[int] = Field(None, description="New stacking order")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return _clean_text(value)

    @model_validator(mode="after")
    def at_least_one_field(self) -> "UpdateHotspotRequest":
        if not self.changes():
            raise ValueError("No fields to update")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class DeleteHotspotResponse(BaseModel):
    """Response model for hotspot deletion."""
    success: bool = Field(True, description="Indicates whether the deletion was successful")
