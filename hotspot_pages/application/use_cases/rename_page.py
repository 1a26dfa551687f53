from __future__ import annotations

import logging
from dataclasses import dataclass

from hotspot_pages.domain.entities.page import PageEntity
from hotspot_pages.domain.errors import Forbidden
from hotspot_pages.domain.services.authorization import ensure_authorized
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository

logger = logging.getLogger(__name__)


@dataclass
class RenamePageUseCase:
    page_repo: PageRepository

    def execute(self, slug: str, edit_token: str | None, title: str | None) -> PageEntity:
        page = ensure_authorized(self.page_repo.get_by_slug(slug), edit_token)
        title = title.strip() if title else None
        updated = self.page_repo.update_title(page.id, title or None)
        if updated is None:
            raise Forbidden()
        logger.info("Renamed page %s", page.id)
        return updated
