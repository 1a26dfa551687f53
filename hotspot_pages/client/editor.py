"""Optimistic editing of one page's hotspots.

Every mutation changes the displayed collection first and then asks the store.
A failed create removes its provisional record; a failed update or delete
reloads the whole page from the store. Each failure produces exactly one
notification and never raises out of the editor.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from hotspot_pages.client.notifications import Notifier
from hotspot_pages.client.session import ActorSession
from hotspot_pages.client.store_client import HotspotStoreClient
from hotspot_pages.application.dtos.page_dto import PageMetadata
from hotspot_pages.domain.entities.hotspot import HotspotEntity
from hotspot_pages.domain.errors import (
    HotspotPagesError,
    NotFound,
    QuotaExceeded,
    ValidationError,
)
from hotspot_pages.domain.services.coordinates import is_valid_fraction

logger = logging.getLogger(__name__)

TEMP_ID_PREFIX = "tmp_"
EDITABLE_FIELDS = {"text", "x_pct", "y_pct", "z_index"}


def is_provisional(hotspot_id: str) -> bool:
    return hotspot_id.startswith(TEMP_ID_PREFIX)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RENAME = "rename"


class MutationState(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


@dataclass
class MutationRecord:
    kind: MutationKind
    target_id: str
    state: MutationState = MutationState.PENDING
    server_id: str | None = None
    error: HotspotPagesError | None = None

    def confirm(self, server_id: str | None = None) -> None:
        self.state = MutationState.CONFIRMED
        self.server_id = server_id

    def roll_back(self, error: HotspotPagesError) -> None:
        self.state = MutationState.ROLLED_BACK
        self.error = error


class HotspotEditor:
    def __init__(
        self,
        store: HotspotStoreClient,
        slug: str,
        *,
        session: ActorSession | None = None,
        notifier: Notifier | None = None,
        on_change: Callable[[list[HotspotEntity]], Any] | None = None,
    ) -> None:
        self.store = store
        self.slug = slug
        self.session = session or ActorSession()
        self.notifier = notifier or Notifier()
        self.on_change = on_change
        self.page: PageMetadata | None = None
        self.hotspots: list[HotspotEntity] = []
        self.mutations: list[MutationRecord] = []
        self.closed = False
        self._locks: dict[str, asyncio.Lock] = {}
        self._pending_deletes: set[str] = set()

    # state helpers

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(list(self.hotspots))

    def _index(self, hotspot_id: str) -> int | None:
        for i, h in enumerate(self.hotspots):
            if h.id == hotspot_id:
                return i
        return None

    def get(self, hotspot_id: str) -> HotspotEntity | None:
        idx = self._index(hotspot_id)
        return None if idx is None else self.hotspots[idx]

    def _lock_for(self, hotspot_id: str) -> asyncio.Lock:
        lock = self._locks.get(hotspot_id)
        if lock is None:
            lock = self._locks[hotspot_id] = asyncio.Lock()
        return lock

    def _start(self, kind: MutationKind, target_id: str) -> MutationRecord:
        if self.closed:
            raise RuntimeError("Editor is closed")
        record = MutationRecord(kind=kind, target_id=target_id)
        self.mutations.append(record)
        return record

    def _refuse(self, record: MutationRecord, error: HotspotPagesError, message: str) -> MutationRecord:
        record.roll_back(error)
        self.notifier.error(message)
        return record

    # loading

    async def load(self) -> bool:
        """Initial load of the page. Notifies and returns False on failure."""
        try:
            await self._reload()
        except HotspotPagesError as exc:
            if not self.closed:
                logger.warning("Loading page %s failed: %s", self.slug, exc)
                self.notifier.error("Page not found" if isinstance(exc, NotFound) else "Failed to load page")
            return False
        return True

    async def _reload(self) -> None:
        snapshot = await self.store.get_page(self.slug)
        if self.closed:
            return
        provisional = [h for h in self.hotspots if is_provisional(h.id)]
        self.page = snapshot.page
        self.hotspots = [h for h in snapshot.hotspots if h.id not in self._pending_deletes] + provisional
        self._changed()

    async def _reload_quietly(self) -> None:
        try:
            await self._reload()
        except HotspotPagesError as exc:
            logger.warning("Reload of page %s failed: %s", self.slug, exc)

    # mutations

    async def create_hotspot(self, x_pct: float, y_pct: float, text: str) -> MutationRecord:
        if self.page is None:
            raise RuntimeError("Page not loaded")
        temp_id = f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"
        record = self._start(MutationKind.CREATE, temp_id)

        text = text.strip()
        if not text or not (is_valid_fraction(x_pct) and is_valid_fraction(y_pct)):
            return self._refuse(record, ValidationError(), "Failed to create hotspot")

        decision = self.session.quota_decision(len(self.hotspots))
        if not decision.allowed:
            logger.info("Create refused locally: %s", decision.reason)
            record.roll_back(QuotaExceeded(decision.reason or "", decision.limit or 0, decision.current))
            self.notifier.upgrade(decision.reason)
            return record

        now = _now()
        provisional = HotspotEntity(
            id=temp_id,
            page_id=self.page.id,
            x_pct=x_pct,
            y_pct=y_pct,
            text=text,
            created_at=now,
            updated_at=now,
        )
        self.hotspots.append(provisional)
        self._changed()

        try:
            created = await self.store.create_hotspot(self.page.id, x_pct, y_pct, text)
        except HotspotPagesError as exc:
            record.roll_back(exc)
            if self.closed:
                return record
            logger.warning("Create failed, removing provisional %s: %s", temp_id, exc)
            self.hotspots = [h for h in self.hotspots if h.id != temp_id]
            self._changed()
            if isinstance(exc, QuotaExceeded):
                self.notifier.upgrade(exc.reason)
            else:
                self.notifier.error("Failed to create hotspot")
            return record

        record.confirm(created.id)
        if self.closed:
            return record
        idx = self._index(temp_id)
        if self._index(created.id) is not None:
            # a reload already brought in the stored record
            if idx is not None:
                del self.hotspots[idx]
        elif idx is not None:
            self.hotspots[idx] = created
        else:
            self.hotspots.append(created)
        self.session.record_created()
        self._changed()
        return record

    async def update_hotspot(self, hotspot_id: str, **changes: Any) -> MutationRecord:
        record = self._start(MutationKind.UPDATE, hotspot_id)
        if is_provisional(hotspot_id):
            return self._refuse(record, ValidationError("Hotspot is still being saved"), "Hotspot is still being saved")
        if not changes or not set(changes) <= EDITABLE_FIELDS:
            return self._refuse(record, ValidationError("No fields to update"), "Failed to update hotspot")
        if any(value is None for value in changes.values()):
            return self._refuse(record, ValidationError("Missing field value"), "Failed to update hotspot")
        if "text" in changes:
            changes["text"] = changes["text"].strip()
            if not changes["text"]:
                return self._refuse(record, ValidationError("Text cannot be empty"), "Failed to update hotspot")
        if not all(is_valid_fraction(changes[axis]) for axis in ("x_pct", "y_pct") if axis in changes):
            return self._refuse(
                record, ValidationError("Coordinates must be between 0 and 1"), "Failed to update hotspot"
            )

        async with self._lock_for(hotspot_id):
            if self.closed:
                return record
            idx = self._index(hotspot_id)
            if idx is None:
                return self._refuse(record, NotFound("Hotspot not found"), "Failed to update hotspot")
            self.hotspots[idx] = replace(self.hotspots[idx], updated_at=_now(), **changes)
            self._changed()

            try:
                updated = await self.store.update_hotspot(hotspot_id, changes)
            except HotspotPagesError as exc:
                record.roll_back(exc)
                if self.closed:
                    return record
                logger.warning("Update of %s failed, reloading: %s", hotspot_id, exc)
                await self._reload_quietly()
                self.notifier.error("Failed to update hotspot")
                return record

            record.confirm(updated.id)
            if self.closed:
                return record
            idx = self._index(hotspot_id)
            if idx is not None:
                self.hotspots[idx] = updated
                self._changed()
            return record

    async def delete_hotspot(self, hotspot_id: str) -> MutationRecord:
        record = self._start(MutationKind.DELETE, hotspot_id)
        if is_provisional(hotspot_id):
            return self._refuse(record, ValidationError("Hotspot is still being saved"), "Hotspot is still being saved")

        async with self._lock_for(hotspot_id):
            if self.closed:
                return record
            self.hotspots = [h for h in self.hotspots if h.id != hotspot_id]
            self._pending_deletes.add(hotspot_id)
            self._changed()
            try:
                await self.store.delete_hotspot(hotspot_id)
            except HotspotPagesError as exc:
                record.roll_back(exc)
                self._pending_deletes.discard(hotspot_id)
                if self.closed:
                    return record
                logger.warning("Delete of %s failed, reloading: %s", hotspot_id, exc)
                await self._reload_quietly()
                self.notifier.error("Failed to delete hotspot")
                return record

            self._pending_deletes.discard(hotspot_id)
            record.confirm(hotspot_id)
            if self.closed:
                return record
            self.session.record_deleted()
            self.notifier.success("Hotspot deleted")
            return record

    async def rename_page(self, title: str | None) -> MutationRecord:
        record = self._start(MutationKind.RENAME, self.slug)
        cleaned = (title or "").strip() or None
        try:
            page = await self.store.rename_page(self.slug, cleaned)
        except HotspotPagesError as exc:
            record.roll_back(exc)
            if not self.closed:
                logger.warning("Rename of %s failed: %s", self.slug, exc)
                self.notifier.error("Failed to update title")
            return record
        record.confirm(page.id)
        if not self.closed:
            self.page = page
            self.notifier.success("Title updated")
        return record

    def close(self) -> None:
        """Stop applying responses; in-flight requests finish unobserved."""
        self.closed = True
        self.on_change = None
