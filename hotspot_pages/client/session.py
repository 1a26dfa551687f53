from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hotspot_pages.domain.errors import HotspotPagesError
from hotspot_pages.domain.services.quota_policy import ActorClass, QuotaDecision, classify, evaluate

logger = logging.getLogger(__name__)


@dataclass
class UsageSnapshot:
    total_hotspots: int = 0
    total_pages: int = 0


@dataclass
class ActorSession:
    """Who is editing, on which plan, and how much of the quota is used.

    The cached usage is only a hint for the client-side pre-check. The
    server decides on every create.
    """

    access_token: str | None = None
    user_id: str | None = None
    email: str | None = None
    plan_type: str = "free"
    subscription_status: str | None = None
    usage: UsageSnapshot | None = None
    initialized: bool = field(default=False, init=False)

    @property
    def signed_in(self) -> bool:
        return self.user_id is not None

    async def initialize(self, store) -> None:
        """Load profile and usage for the bearer token, if any.

        A rejected or unreachable profile lookup leaves the session anonymous.
        """
        self.initialized = True
        if not self.access_token:
            return
        try:
            me = await store.get_me()
        except HotspotPagesError as exc:
            logger.info("Profile lookup failed, continuing anonymously: %s", exc)
            self.clear()
            return
        self._apply_profile(me)

    def _apply_profile(self, me: dict) -> None:
        self.user_id = me.get("id")
        self.email = me.get("email")
        self.plan_type = me.get("plan_type") or "free"
        self.subscription_status = me.get("subscription_status")
        usage = me.get("usage")
        if usage is None:
            self.usage = None
        else:
            self.usage = UsageSnapshot(
                total_hotspots=int(usage.get("total_hotspots") or 0),
                total_pages=int(usage.get("total_pages") or 0),
            )

    def clear(self) -> None:
        self.access_token = None
        self.user_id = None
        self.email = None
        self.plan_type = "free"
        self.subscription_status = None
        self.usage = None

    def sign_out(self) -> None:
        logger.info("Signing out %s", self.user_id)
        self.clear()

    def actor_class(self) -> ActorClass:
        return classify(self.user_id, self.plan_type)

    def quota_decision(self, page_hotspot_count: int) -> QuotaDecision:
        actor = self.actor_class()
        if actor is ActorClass.SIGNED_IN_FREE:
            current = self.usage.total_hotspots if self.usage else 0
        else:
            current = page_hotspot_count
        return evaluate(actor, current)

    def can_create_hotspot(self, page_hotspot_count: int) -> bool:
        return self.quota_decision(page_hotspot_count).allowed

    def remaining_hotspots(self, page_hotspot_count: int) -> int | None:
        return self.quota_decision(page_hotspot_count).remaining

    def record_created(self) -> None:
        if not self.signed_in:
            return
        if self.usage is None:
            self.usage = UsageSnapshot()
        self.usage.total_hotspots += 1

    def record_deleted(self) -> None:
        if not self.signed_in or self.usage is None:
            return
        self.usage.total_hotspots = max(0, self.usage.total_hotspots - 1)
