from __future__ import annotations

import logging
from dataclasses import dataclass

from hotspot_pages.domain.entities.page import PageEntity
from hotspot_pages.domain.errors import ValidationError
from hotspot_pages.domain.services.authorization import ensure_authorized
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository
from hotspot_pages.infrastructure.storage.supabase_storage import StorageResult, SupabaseStorage

logger = logging.getLogger(__name__)


@dataclass
class AttachImageUseCase:
    storage: SupabaseStorage
    page_repo: PageRepository

    def execute(
        self, page_id: str, edit_token: str | None, data: bytes
    ) -> tuple[PageEntity, StorageResult]:
        """
        Store an uploaded image and point the page at it.

        If the page row cannot be updated the stored object is removed again.
        """
        page = ensure_authorized(self.page_repo.get(page_id), edit_token)
        try:
            stored = self.storage.upload_page_image(page.id, data)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        try:
            updated = self.page_repo.set_image(page.id, stored.path, stored.width, stored.height)
        except RuntimeError:
            logger.exception("Attaching image to page %s failed, removing %s", page.id, stored.path)
            self.storage.delete(stored.path)
            raise
        if updated is None:
            self.storage.delete(stored.path)
            raise RuntimeError(f"Page {page.id} vanished during upload")
        logger.info("Attached image %s (%dx%d) to page %s", stored.path, stored.width, stored.height, page.id)
        return updated, stored
