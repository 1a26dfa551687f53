from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from hotspot_pages.domain.entities.hotspot import HotspotEntity
from hotspot_pages.domain.errors import Forbidden, ValidationError
from hotspot_pages.domain.services.authorization import ensure_authorized
from hotspot_pages.domain.services.coordinates import is_valid_fraction
from hotspot_pages.infrastructure.database.repositories.hotspot_repository import HotspotRepository
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("text", "x_pct", "y_pct", "z_index")


@dataclass
class UpdateHotspotUseCase:
    page_repo: PageRepository
    hotspot_repo: HotspotRepository

    def execute(self, hotspot_id: str, edit_token: str | None, changes: dict[str, Any]) -> HotspotEntity:
        """
        Apply a partial update to a hotspot.

        A hotspot that does not exist is reported exactly like a wrong token.
        Concurrent edits from two token holders are last-write-wins.
        """
        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        if not changes:
            raise ValidationError("No fields to update")
        for key in ("x_pct", "y_pct"):
            if key in changes and not is_valid_fraction(changes[key]):
                raise ValidationError(f"{key} must be between 0 and 1")

        hotspot = self.hotspot_repo.get(hotspot_id)
        page = self.page_repo.get(hotspot.page_id) if hotspot else None
        ensure_authorized(page, edit_token)

        updated = self.hotspot_repo.update(hotspot_id, changes)
        if updated is None:
            # deleted between the lookup and the write
            raise Forbidden()
        logger.info("Updated hotspot %s fields=%s", hotspot_id, sorted(changes))
        return updated
