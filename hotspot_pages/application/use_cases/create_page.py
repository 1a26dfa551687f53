from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

from hotspot_pages.domain.entities.page import PageEntity
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository

logger = logging.getLogger(__name__)

SLUG_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
SLUG_LENGTH = 8
MAX_SLUG_ATTEMPTS = 5


def generate_slug() -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(SLUG_LENGTH))


def generate_edit_token() -> str:
    return secrets.token_urlsafe(32)


@dataclass
class CreatePageUseCase:
    page_repo: PageRepository

    def execute(self, title: str | None = None, owner_id: str | None = None) -> PageEntity:
        """
        Start a new page before its image is uploaded.

        The slug is regenerated on collision; the edit token is minted once
        here and never rotated.
        """
        title = title.strip() if title else None
        for _ in range(MAX_SLUG_ATTEMPTS):
            slug = generate_slug()
            if self.page_repo.slug_exists(slug):
                continue
            page = self.page_repo.create(
                slug=slug,
                edit_token=generate_edit_token(),
                title=title or None,
                owner_id=owner_id,
            )
            logger.info("Created page %s (slug=%s, owner=%s)", page.id, page.slug, owner_id or "-")
            return page
        raise RuntimeError("Could not allocate a unique slug")
