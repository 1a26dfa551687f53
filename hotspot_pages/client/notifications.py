from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from hotspot_pages.domain.services.quota_policy import REASON_ANONYMOUS_LIMIT


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    UPGRADE = "upgrade"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: str
    reason: str | None = None


def upgrade_message(reason: str | None) -> str:
    if reason == REASON_ANONYMOUS_LIMIT:
        return "You've reached the 10 hotspot limit. Sign up to keep adding hotspots."
    return "You've used all 10 free hotspots. Upgrade to Pro for unlimited hotspots."


class Notifier:
    """Collects user-visible notifications and forwards them to a listener."""

    def __init__(self, listener: Callable[[Notification], None] | None = None) -> None:
        self.listener = listener
        self.history: list[Notification] = []

    def notify(self, kind: NotificationKind, message: str, reason: str | None = None) -> Notification:
        note = Notification(kind=kind, message=message, reason=reason)
        self.history.append(note)
        if self.listener is not None:
            self.listener(note)
        return note

    def success(self, message: str) -> Notification:
        return self.notify(NotificationKind.SUCCESS, message)

    def error(self, message: str) -> Notification:
        return self.notify(NotificationKind.ERROR, message)

    def upgrade(self, reason: str | None) -> Notification:
        return self.notify(NotificationKind.UPGRADE, upgrade_message(reason), reason=reason)

    @property
    def last(self) -> Notification | None:
        return self.history[-1] if self.history else None


@dataclass(frozen=True)
class VariantStyle:
    icon: str
    icon_background: str
    confirm_button: str


class ConfirmVariant(str, Enum):
    DEFAULT = "default"
    WARNING = "warning"
    DANGER = "danger"

    @property
    def style(self) -> VariantStyle:
        return _VARIANT_STYLES[self]


_VARIANT_STYLES = {
    ConfirmVariant.DEFAULT: VariantStyle(icon="info", icon_background="blue", confirm_button="primary"),
    ConfirmVariant.WARNING: VariantStyle(icon="alert-triangle", icon_background="yellow", confirm_button="warning"),
    ConfirmVariant.DANGER: VariantStyle(icon="alert-triangle", icon_background="red", confirm_button="danger"),
}


@dataclass(frozen=True)
class ConfirmDialog:
    title: str
    message: str
    confirm_text: str = "Confirm"
    cancel_text: str = "Cancel"
    variant: ConfirmVariant = ConfirmVariant.DEFAULT
