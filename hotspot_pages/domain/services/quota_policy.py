from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

HOTSPOT_LIMIT = 10

REASON_ANONYMOUS_LIMIT = "anonymous_limit"
REASON_FREE_PLAN_LIMIT = "free_plan_limit"


class ActorClass(str, Enum):
    ANONYMOUS = "anonymous"
    SIGNED_IN_FREE = "signed_in_free"
    SIGNED_IN_PRO = "signed_in_pro"


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    actor: ActorClass
    current: int
    limit: int | None
    reason: str | None = None

    @property
    def remaining(self) -> int | None:
        if self.limit is None:
            return None
        return max(0, self.limit - self.current)


def classify(user_id: str | None, plan_type: str | None) -> ActorClass:
    if not user_id:
        return ActorClass.ANONYMOUS
    if plan_type == "pro":
        return ActorClass.SIGNED_IN_PRO
    return ActorClass.SIGNED_IN_FREE


def evaluate(actor: ActorClass, current_count: int | None) -> QuotaDecision:
    """Decide whether one more hotspot may be created.

    ``current_count`` is the page's hotspot count for anonymous actors and the
    count across the user's own pages for free actors. ``None`` (no usage
    known yet) counts as zero.
    """
    current = max(0, current_count or 0)
    if actor is ActorClass.SIGNED_IN_PRO:
        return QuotaDecision(allowed=True, actor=actor, current=current, limit=None)
    reason = (
        REASON_ANONYMOUS_LIMIT if actor is ActorClass.ANONYMOUS else REASON_FREE_PLAN_LIMIT
    )
    allowed = current < HOTSPOT_LIMIT
    return QuotaDecision(
        allowed=allowed,
        actor=actor,
        current=current,
        limit=HOTSPOT_LIMIT,
        reason=None if allowed else reason,
    )
