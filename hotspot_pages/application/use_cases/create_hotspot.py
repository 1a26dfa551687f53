from __future__ import annotations

import logging
from dataclasses import dataclass

from hotspot_pages.application.use_cases.refresh_usage import RefreshUsageUseCase
from hotspot_pages.domain.entities.hotspot import HotspotEntity
from hotspot_pages.domain.errors import QuotaExceeded
from hotspot_pages.domain.services.authorization import ensure_authorized
from hotspot_pages.domain.services.quota_policy import (
    HOTSPOT_LIMIT,
    REASON_ANONYMOUS_LIMIT,
    REASON_FREE_PLAN_LIMIT,
    ActorClass,
    classify,
)
from hotspot_pages.infrastructure.database.repositories.hotspot_repository import (
    SCOPE_OWNER,
    SCOPE_PAGE,
    HotspotRepository,
)
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository
from hotspot_pages.infrastructure.database.repositories.profile_repository import ProfileRepository
from hotspot_pages.infrastructure.database.supabase_client import UserInfo

logger = logging.getLogger(__name__)


@dataclass
class CreateHotspotUseCase:
    page_repo: PageRepository
    hotspot_repo: HotspotRepository
    profile_repo: ProfileRepository
    usage: RefreshUsageUseCase | None = None

    def classify_actor(self, user: UserInfo | None) -> ActorClass:
        if user is None:
            return ActorClass.ANONYMOUS
        profile = self.profile_repo.get(user.id)
        return classify(user.id, profile.plan_type if profile else None)

    def execute(
        self,
        page_id: str,
        edit_token: str | None,
        x_pct: float,
        y_pct: float,
        text: str,
        user: UserInfo | None = None,
    ) -> HotspotEntity:
        """
        Create a hotspot after checking the edit token and the actor's quota.

        Anonymous actors are limited per page, free actors across the pages
        they own, pro actors not at all. The count and the insert happen as one
        step in the repository.

        Raises:
            Unauthorized, Forbidden: Missing or wrong edit token.
            QuotaExceeded: The actor is at or above the hotspot limit.
        """
        page = ensure_authorized(self.page_repo.get(page_id), edit_token)
        actor = self.classify_actor(user)

        if actor is ActorClass.ANONYMOUS:
            scope, scope_id, limit = SCOPE_PAGE, page.id, HOTSPOT_LIMIT
        elif actor is ActorClass.SIGNED_IN_FREE:
            scope, scope_id, limit = SCOPE_OWNER, user.id, HOTSPOT_LIMIT
        else:
            scope, scope_id, limit = SCOPE_PAGE, page.id, None

        created, current = self.hotspot_repo.create_checked(
            page.id,
            x_pct,
            y_pct,
            text,
            scope=scope,
            scope_id=scope_id,
            limit=limit,
        )
        if created is None:
            reason = (
                REASON_ANONYMOUS_LIMIT if actor is ActorClass.ANONYMOUS else REASON_FREE_PLAN_LIMIT
            )
            logger.info("Quota refused hotspot on page %s (%s, %d/%d)", page.id, reason, current, limit)
            raise QuotaExceeded(reason=reason, limit=limit, current=current)

        logger.info("Created hotspot %s on page %s", created.id, page.id)
        if self.usage is not None:
            self.usage.execute_quietly(page.owner_id)
        return created
