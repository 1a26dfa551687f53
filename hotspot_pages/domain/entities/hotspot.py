from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class HotspotEntity:
    id: str
    page_id: str
    x_pct: float  # fraction of image width, 0..1
    y_pct: float  # fraction of image height, 0..1
    text: str
    created_at: datetime
    updated_at: datetime
    z_index: int = 0
