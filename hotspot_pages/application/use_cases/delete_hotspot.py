from __future__ import annotations

import logging
from dataclasses import dataclass

from hotspot_pages.application.use_cases.refresh_usage import RefreshUsageUseCase
from hotspot_pages.domain.services.authorization import ensure_authorized
from hotspot_pages.infrastructure.database.repositories.hotspot_repository import HotspotRepository
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository

logger = logging.getLogger(__name__)


@dataclass
class DeleteHotspotUseCase:
    page_repo: PageRepository
    hotspot_repo: HotspotRepository
    usage: RefreshUsageUseCase | None = None

    def execute(self, hotspot_id: str, edit_token: str | None) -> bool:
        hotspot = self.hotspot_repo.get(hotspot_id)
        page = self.page_repo.get(hotspot.page_id) if hotspot else None
        page = ensure_authorized(page, edit_token)

        ok = self.hotspot_repo.delete(hotspot_id)
        logger.info("Deleted hotspot %s from page %s", hotspot_id, page.id)
        if self.usage is not None:
            self.usage.execute_quietly(page.owner_id)
        return ok
