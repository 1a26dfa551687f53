from __future__ import annotations

import os
from datetime import UTC, datetime

from supabase import Client

from hotspot_pages.domain.entities.usage import UsageEntity
from hotspot_pages.infrastructure.database.postgres_client import get_postgres_client

# module-level in-memory store for disabled mode
_MEM_USAGE: dict[str, UsageEntity] = {}


class UsageRepository:
    """Cached usage counters. Reads may return ``None``; that means zero usage."""

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = get_postgres_client() if self.use_local_db else None

    def _row_to_entity(self, row: dict) -> UsageEntity:
        last_updated = row.get("last_updated")
        if isinstance(last_updated, str):
            last_updated = datetime.fromisoformat(last_updated)
        return UsageEntity(
            user_id=row["user_id"],
            total_hotspots=int(row.get("total_hotspots") or 0),
            total_pages=int(row.get("total_pages") or 0),
            last_updated=last_updated,
        )

    def get(self, user_id: str) -> UsageEntity | None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            row = self.pg_client.execute_one("SELECT * FROM user_usage WHERE user_id = %s", (user_id,))
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            return _MEM_USAGE.get(user_id)

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table("user_usage").select("*").eq("user_id", user_id).limit(1).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise RuntimeError(f"DB get usage failed: {exc}") from exc

    def save(self, user_id: str, total_hotspots: int, total_pages: int) -> UsageEntity:
        now = datetime.now(UTC)

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            try:
                query = """
                    INSERT INTO user_usage (user_id, total_hotspots, total_pages, last_updated)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (user_id) DO UPDATE SET
                        total_hotspots = EXCLUDED.total_hotspots,
                        total_pages = EXCLUDED.total_pages,
                        last_updated = EXCLUDED.last_updated
                    RETURNING *
                """
                row = self.pg_client.execute_insert(query, (user_id, total_hotspots, total_pages, now))
                return self._row_to_entity(row)
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL upsert usage failed: {exc}") from exc

        # In-memory mode
        if self.disabled or self.client is None:
            entity = UsageEntity(
                user_id=user_id,
                total_hotspots=total_hotspots,
                total_pages=total_pages,
                last_updated=now,
            )
            _MEM_USAGE[user_id] = entity
            return entity

        # Supabase mode
        try:  # pragma: no cover - network
            data = {
                "user_id": user_id,
                "total_hotspots": total_hotspots,
                "total_pages": total_pages,
                "last_updated": now.isoformat(),
            }
            res = self.client.table("user_usage").upsert(data, on_conflict="user_id").execute()
            return self._row_to_entity(res.data[0])
        except Exception as exc:
            raise RuntimeError(f"DB upsert usage failed: {exc}") from exc
