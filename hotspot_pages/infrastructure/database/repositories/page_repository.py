from __future__ import annotations

import os
import threading
import uuid
from dataclasses import replace
from datetime import UTC, datetime

from supabase import Client

from hotspot_pages.domain.entities.page import PageEntity
from hotspot_pages.infrastructure.database.postgres_client import get_postgres_client

# module-level in-memory store for disabled mode
_MEM_PAGES: dict[str, PageEntity] = {}
_MEM_LOCK = threading.Lock()


def _parse_ts(value) -> datetime | None:
    # PostgreSQL returns datetime objects, Supabase returns ISO strings
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


class PageRepository:
    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = get_postgres_client() if self.use_local_db else None

    def _row_to_entity(self, row: dict) -> PageEntity:
        return PageEntity(
            id=str(row["id"]),
            slug=row["slug"],
            edit_token=row["edit_token"],
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row.get("updated_at") or row["created_at"]),
            title=row.get("title"),
            image_path=row.get("image_path"),
            image_width=row.get("image_width"),
            image_height=row.get("image_height"),
            owner_id=row.get("owner_id"),
        )

    def create(
        self,
        slug: str,
        edit_token: str,
        title: str | None = None,
        owner_id: str | None = None,
    ) -> PageEntity:
        now = datetime.now(UTC)

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            try:
                query = """
                    INSERT INTO page (slug, edit_token, title, owner_id, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING *
                """
                row = self.pg_client.execute_insert(
                    query, (slug, edit_token, title, owner_id, now, now)
                )
                return self._row_to_entity(row)
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL insert page failed: {exc}") from exc

        # In-memory mode
        if self.disabled or self.client is None:
            entity = PageEntity(
                id=str(uuid.uuid4()),
                slug=slug,
                edit_token=edit_token,
                created_at=now,
                updated_at=now,
                title=title,
                owner_id=owner_id,
            )
            with _MEM_LOCK:
                if any(p.slug == slug for p in _MEM_PAGES.values()):
                    raise RuntimeError(f"Slug already taken: {slug}")
                _MEM_PAGES[entity.id] = entity
            return entity

        # Supabase mode
        try:  # pragma: no cover - network
            data = {
                "slug": slug,
                "edit_token": edit_token,
                "title": title,
                "owner_id": owner_id,
                "created_at": now.isoformat(),
                "updated_at": now.isoformat(),
            }
            res = self.client.table("page").insert(data).execute()
            return self._row_to_entity(res.data[0])
        except Exception as exc:
            raise RuntimeError(f"DB insert page failed: {exc}") from exc

    def get(self, page_id: str) -> PageEntity | None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            row = self.pg_client.execute_one("SELECT * FROM page WHERE id::text = %s", (page_id,))
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            return _MEM_PAGES.get(page_id)

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table("page").select("*").eq("id", page_id).limit(1).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise RuntimeError(f"DB get page failed: {exc}") from exc

    def get_by_slug(self, slug: str) -> PageEntity | None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            row = self.pg_client.execute_one("SELECT * FROM page WHERE slug = %s", (slug,))
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            return next((p for p in _MEM_PAGES.values() if p.slug == slug), None)

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table("page").select("*").eq("slug", slug).limit(1).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise RuntimeError(f"DB get page by slug failed: {exc}") from exc

    def slug_exists(self, slug: str) -> bool:
        return self.get_by_slug(slug) is not None

    def _update(self, page_id: str, changes: dict) -> PageEntity | None:
        now = datetime.now(UTC)

        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            columns = ", ".join(f"{name} = %s" for name in changes)
            query = f"UPDATE page SET {columns}, updated_at = %s WHERE id::text = %s RETURNING *"
            try:
                row = self.pg_client.execute_one(query, (*changes.values(), now, page_id))
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL update page failed: {exc}") from exc
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            with _MEM_LOCK:
                current = _MEM_PAGES.get(page_id)
                if current is None:
                    return None
                updated = replace(current, **changes, updated_at=now)
                _MEM_PAGES[page_id] = updated
            return updated

        # Supabase mode
        try:  # pragma: no cover - network
            data = {**changes, "updated_at": now.isoformat()}
            res = self.client.table("page").update(data).eq("id", page_id).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise RuntimeError(f"DB update page failed: {exc}") from exc

    def set_image(
        self,
        page_id: str,
        image_path: str,
        image_width: int | None,
        image_height: int | None,
    ) -> PageEntity | None:
        return self._update(
            page_id,
            {"image_path": image_path, "image_width": image_width, "image_height": image_height},
        )

    def update_title(self, page_id: str, title: str | None) -> PageEntity | None:
        return self._update(page_id, {"title": title})

    def list_ids_by_owner(self, owner_id: str) -> list[str]:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            rows = self.pg_client.execute_many(
                "SELECT id::text AS id FROM page WHERE owner_id = %s", (owner_id,)
            )
            return [row["id"] for row in rows]

        # In-memory mode
        if self.disabled or self.client is None:
            return [p.id for p in _MEM_PAGES.values() if p.owner_id == owner_id]

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table("page").select("id").eq("owner_id", owner_id).execute()
            return [str(row["id"]) for row in res.data or []]
        except Exception as exc:
            raise RuntimeError(f"DB list pages failed: {exc}") from exc

    def count_by_owner(self, owner_id: str) -> int:
        return len(self.list_ids_by_owner(owner_id))
