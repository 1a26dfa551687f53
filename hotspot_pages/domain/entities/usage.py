from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UsageEntity:
    """Cached per-user counters. Derived data; may be stale or missing."""

    user_id: str
    total_hotspots: int
    total_pages: int
    last_updated: datetime | None = None
