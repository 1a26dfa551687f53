from __future__ import annotations

import logging
from dataclasses import dataclass

from hotspot_pages.domain.entities.usage import UsageEntity
from hotspot_pages.infrastructure.database.repositories.hotspot_repository import HotspotRepository
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository
from hotspot_pages.infrastructure.database.repositories.usage_repository import UsageRepository

logger = logging.getLogger(__name__)


@dataclass
class RefreshUsageUseCase:
    """
    Rebuild a user's cached usage counters from a direct count.

    The cache is never the source of truth for quota decisions; it only saves
    clients a round trip.
    """

    page_repo: PageRepository
    hotspot_repo: HotspotRepository
    usage_repo: UsageRepository

    def execute(self, user_id: str) -> UsageEntity:
        total_pages = self.page_repo.count_by_owner(user_id)
        total_hotspots = self.hotspot_repo.count_by_owner(user_id)
        return self.usage_repo.save(user_id, total_hotspots=total_hotspots, total_pages=total_pages)

    def execute_quietly(self, user_id: str | None) -> UsageEntity | None:
        """Best-effort refresh after a mutation; failures are logged, not raised."""
        if not user_id:
            return None
        try:
            return self.execute(user_id)
        except RuntimeError as exc:
            logger.warning("Usage refresh for %s failed: %s", user_id, exc)
            return None

    def current(self, user_id: str) -> UsageEntity:
        """Cached counters, or zeros when no cache entry exists yet."""
        cached = self.usage_repo.get(user_id)
        if cached is None:
            return UsageEntity(user_id=user_id, total_hotspots=0, total_pages=0)
        return cached
