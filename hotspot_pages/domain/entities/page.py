from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class PageEntity:
    id: str
    slug: str  # public lookup key, immutable
    edit_token: str  # capability secret, never returned by public reads
    created_at: datetime
    updated_at: datetime
    title: str | None = None
    image_path: str | None = None  # storage path {page_id}/{millis}.{ext}
    image_width: int | None = None
    image_height: int | None = None
    owner_id: str | None = None
