from __future__ import annotations

import json
import os
import threading
import uuid
import weakref
from contextlib import ExitStack
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from supabase import Client

from hotspot_pages.domain.entities.hotspot import HotspotEntity
from hotspot_pages.infrastructure.database.postgres_client import get_postgres_client
from hotspot_pages.infrastructure.database.repositories.page_repository import _MEM_PAGES

SCOPE_PAGE = "page"
SCOPE_OWNER = "owner"

# module-level in-memory store for disabled mode
_MEM_HOTSPOTS: dict[str, HotspotEntity] = {}
_MEM_LOCK = threading.Lock()
# count-then-insert locks keyed "page:<id>" / "owner:<id>", dropped once unused
_SCOPE_LOCKS: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()


def _scope_lock(key: str) -> threading.Lock:
    with _MEM_LOCK:
        lock = _SCOPE_LOCKS.get(key)
        if lock is None:
            lock = _SCOPE_LOCKS[key] = threading.Lock()
        return lock


def _lock_keys(page_id: str, scope: str, scope_id: str) -> list[str]:
    """Locks a create must hold, owner before page so callers never cross."""
    keys = [f"page:{page_id}"]
    if scope == SCOPE_OWNER:
        keys.insert(0, f"owner:{scope_id}")
    return keys


def _mem_count_by_page(page_id: str) -> int:
    with _MEM_LOCK:
        return sum(1 for h in _MEM_HOTSPOTS.values() if h.page_id == page_id)


def _mem_count_by_owner(owner_id: str) -> int:
    page_ids = {p.id for p in list(_MEM_PAGES.values()) if p.owner_id == owner_id}
    with _MEM_LOCK:
        return sum(1 for h in _MEM_HOTSPOTS.values() if h.page_id in page_ids)


class HotspotRepository:
    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = get_postgres_client() if self.use_local_db else None

    def _row_to_entity(self, row: dict) -> HotspotEntity:
        created_at = row["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        updated_at = row.get("updated_at") or created_at
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        return HotspotEntity(
            id=str(row["id"]),
            page_id=str(row["page_id"]),
            x_pct=float(row["x_pct"]),
            y_pct=float(row["y_pct"]),
            text=row["text"],
            created_at=created_at,
            updated_at=updated_at,
            z_index=int(row.get("z_index") or 0),
        )

    def list_by_page(self, page_id: str) -> list[HotspotEntity]:
        """Hotspots of a page ordered by stacking order, oldest first on ties."""
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = """
                SELECT * FROM hotspot WHERE page_id::text = %s
                ORDER BY z_index ASC, created_at ASC
            """
            rows = self.pg_client.execute_many(query, (page_id,))
            return [self._row_to_entity(row) for row in rows]

        # In-memory mode
        if self.disabled or self.client is None:
            with _MEM_LOCK:
                items = [h for h in _MEM_HOTSPOTS.values() if h.page_id == page_id]
            return sorted(items, key=lambda h: (h.z_index, h.created_at))

        # Supabase mode
        try:  # pragma: no cover - network
            res = (
                self.client.table("hotspot")
                .select("*")
                .eq("page_id", page_id)
                .order("z_index")
                .order("created_at")
                .execute()
            )
            return [self._row_to_entity(row) for row in res.data or []]
        except Exception as exc:
            raise RuntimeError(f"DB list hotspots failed: {exc}") from exc

    def get(self, hotspot_id: str) -> HotspotEntity | None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            row = self.pg_client.execute_one(
                "SELECT * FROM hotspot WHERE id::text = %s", (hotspot_id,)
            )
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            return _MEM_HOTSPOTS.get(hotspot_id)

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table("hotspot").select("*").eq("id", hotspot_id).limit(1).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise RuntimeError(f"DB get hotspot failed: {exc}") from exc

    def count_by_page(self, page_id: str) -> int:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            row = self.pg_client.execute_one(
                "SELECT count(*) AS n FROM hotspot WHERE page_id::text = %s", (page_id,)
            )
            return int(row["n"]) if row else 0

        # In-memory mode
        if self.disabled or self.client is None:
            return _mem_count_by_page(page_id)

        # Supabase mode
        try:  # pragma: no cover - network
            res = (
                self.client.table("hotspot")
                .select("id", count="exact")
                .eq("page_id", page_id)
                .execute()
            )
            return int(res.count or 0)
        except Exception as exc:
            raise RuntimeError(f"DB count hotspots failed: {exc}") from exc

    def count_by_owner(self, owner_id: str) -> int:
        """Direct recount of hotspots across every page owned by ``owner_id``."""
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            query = """
                SELECT count(*) AS n FROM hotspot h
                JOIN page p ON p.id = h.page_id
                WHERE p.owner_id = %s
            """
            row = self.pg_client.execute_one(query, (owner_id,))
            return int(row["n"]) if row else 0

        # In-memory mode
        if self.disabled or self.client is None:
            return _mem_count_by_owner(owner_id)

        # Supabase mode
        try:  # pragma: no cover - network
            pages = self.client.table("page").select("id").eq("owner_id", owner_id).execute()
            page_ids = [row["id"] for row in pages.data or []]
            if not page_ids:
                return 0
            res = (
                self.client.table("hotspot")
                .select("id", count="exact")
                .in_("page_id", page_ids)
                .execute()
            )
            return int(res.count or 0)
        except Exception as exc:
            raise RuntimeError(f"DB count owner hotspots failed: {exc}") from exc

    def create_checked(
        self,
        page_id: str,
        x_pct: float,
        y_pct: float,
        text: str,
        *,
        scope: str,
        scope_id: str,
        limit: int | None,
        z_index: int = 0,
    ) -> tuple[HotspotEntity | None, int]:
        """Insert a hotspot unless the scope already holds ``limit`` of them.

        The count and the insert run under the page lock, and the owner lock
        as well for owner scope, so two concurrent calls touching the same
        page or owner cannot both pass the check. Returns the created
        entity (or ``None`` when refused) and the count seen before insert.
        """
        now = datetime.now(UTC)

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            try:
                with self.pg_client.get_cursor() as cursor:
                    for key in _lock_keys(page_id, scope, scope_id):
                        cursor.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (key,))
                    current = 0
                    if limit is not None:
                        if scope == SCOPE_OWNER:
                            cursor.execute(
                                """
                                SELECT count(*) AS n FROM hotspot h
                                JOIN page p ON p.id = h.page_id
                                WHERE p.owner_id = %s
                                """,
                                (scope_id,),
                            )
                        else:
                            cursor.execute(
                                "SELECT count(*) AS n FROM hotspot WHERE page_id::text = %s",
                                (page_id,),
                            )
                        current = int(cursor.fetchone()["n"])
                        if current >= limit:
                            return None, current
                    cursor.execute(
                        """
                        INSERT INTO hotspot (page_id, x_pct, y_pct, text, z_index, created_at, updated_at)
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        RETURNING *
                        """,
                        (page_id, x_pct, y_pct, text, z_index, now, now),
                    )
                    return self._row_to_entity(dict(cursor.fetchone())), current
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL insert hotspot failed: {exc}") from exc

        # In-memory mode
        if self.disabled or self.client is None:
            with ExitStack() as held:
                for key in _lock_keys(page_id, scope, scope_id):
                    held.enter_context(_scope_lock(key))
                current = 0
                if limit is not None:
                    if scope == SCOPE_OWNER:
                        current = _mem_count_by_owner(scope_id)
                    else:
                        current = _mem_count_by_page(page_id)
                    if current >= limit:
                        return None, current
                entity = HotspotEntity(
                    id=str(uuid.uuid4()),
                    page_id=page_id,
                    x_pct=x_pct,
                    y_pct=y_pct,
                    text=text,
                    created_at=now,
                    updated_at=now,
                    z_index=z_index,
                )
                with _MEM_LOCK:
                    _MEM_HOTSPOTS[entity.id] = entity
                return entity, current

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.rpc(
                "create_hotspot_checked",
                {
                    "p_page_id": page_id,
                    "p_x_pct": x_pct,
                    "p_y_pct": y_pct,
                    "p_text": text,
                    "p_z_index": z_index,
                    "p_scope": scope,
                    "p_scope_id": scope_id,
                    "p_limit": limit,
                },
            ).execute()
            result: Any = res.data
            if isinstance(result, str):
                result = json.loads(result)
            current = int(result.get("current", 0))
            if not result.get("ok"):
                return None, current
            return self._row_to_entity(result["hotspot"]), current
        except Exception as exc:
            raise RuntimeError(f"DB insert hotspot failed: {exc}") from exc

    def update(self, hotspot_id: str, changes: dict[str, Any]) -> HotspotEntity | None:
        now = datetime.now(UTC)

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            columns = ", ".join(f"{name} = %s" for name in changes)
            query = f"UPDATE hotspot SET {columns}, updated_at = %s WHERE id::text = %s RETURNING *"
            try:
                row = self.pg_client.execute_one(query, (*changes.values(), now, hotspot_id))
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL update hotspot failed: {exc}") from exc
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            with _MEM_LOCK:
                current = _MEM_HOTSPOTS.get(hotspot_id)
                if current is None:
                    return None
                updated = replace(current, **changes, updated_at=now)
                _MEM_HOTSPOTS[hotspot_id] = updated
            return updated

        # Supabase mode
        try:  # pragma: no cover - network
            data = {**changes, "updated_at": now.isoformat()}
            res = self.client.table("hotspot").update(data).eq("id", hotspot_id).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise RuntimeError(f"DB update hotspot failed: {exc}") from exc

    def delete(self, hotspot_id: str) -> bool:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            affected = self.pg_client.execute_update(
                "DELETE FROM hotspot WHERE id::text = %s", (hotspot_id,)
            )
            return affected > 0

        # In-memory mode
        if self.disabled or self.client is None:
            with _MEM_LOCK:
                return _MEM_HOTSPOTS.pop(hotspot_id, None) is not None

        # Supabase mode
        try:  # pragma: no cover - network
            self.client.table("hotspot").delete().eq("id", hotspot_id).execute()
            return True
        except Exception as exc:
            raise RuntimeError(f"DB delete hotspot failed: {exc}") from exc
