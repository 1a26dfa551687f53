from __future__ import annotations

import os
from dataclasses import replace
from datetime import UTC, datetime

from supabase import Client

from hotspot_pages.domain.entities.profile import ProfileEntity
from hotspot_pages.infrastructure.database.postgres_client import get_postgres_client

PLAN_TYPES = ("free", "pro")

# module-level in-memory store for disabled mode
_MEM_PROFILES: dict[str, ProfileEntity] = {}


class ProfileRepository:
    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.use_local_db = os.getenv("USE_LOCAL_DB", "0") == "1"
        self.pg_client = get_postgres_client() if self.use_local_db else None

    def _row_to_entity(self, row: dict) -> ProfileEntity:
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return ProfileEntity(
            id=row["id"],
            email=row.get("email"),
            created_at=created_at,
            plan_type=row.get("plan_type") or "free",
            subscription_status=row.get("subscription_status"),
        )

    def get(self, user_id: str) -> ProfileEntity | None:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            row = self.pg_client.execute_one("SELECT * FROM user_profiles WHERE id = %s", (user_id,))
            return self._row_to_entity(row) if row else None

        # In-memory mode
        if self.disabled or self.client is None:
            return _MEM_PROFILES.get(user_id)

        # Supabase mode
        try:  # pragma: no cover - network
            res = self.client.table("user_profiles").select("*").eq("id", user_id).limit(1).execute()
            rows = res.data or []
            return self._row_to_entity(rows[0]) if rows else None
        except Exception as exc:
            raise RuntimeError(f"DB get profile failed: {exc}") from exc

    def upsert(self, user_id: str, email: str | None) -> ProfileEntity:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            try:
                query = """
                    INSERT INTO user_profiles (id, email, created_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (id) DO UPDATE SET email = COALESCE(EXCLUDED.email, user_profiles.email)
                    RETURNING *
                """
                row = self.pg_client.execute_insert(query, (user_id, email))
                return self._row_to_entity(row)
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL upsert profile failed: {exc}") from exc

        # In-memory mode
        if self.disabled or self.client is None:
            current = _MEM_PROFILES.get(user_id)
            if current is None:
                entity = ProfileEntity(id=user_id, email=email, created_at=datetime.now(UTC))
            else:
                entity = replace(current, email=email or current.email)
            _MEM_PROFILES[user_id] = entity
            return entity

        # Supabase mode
        try:  # pragma: no cover - network
            data = {"id": user_id}
            if email:
                data["email"] = email
            self.client.table("user_profiles").upsert(data, on_conflict="id").execute()
            res = self.client.table("user_profiles").select("*").eq("id", user_id).single().execute()
            return self._row_to_entity(res.data)
        except Exception as exc:
            raise RuntimeError(f"DB upsert profile failed: {exc}") from exc

    def set_plan(
        self, user_id: str, plan_type: str, subscription_status: str | None = None
    ) -> ProfileEntity:
        """Record the plan the billing side settled on for this user."""
        if plan_type not in PLAN_TYPES:
            raise ValueError(f"Unknown plan type: {plan_type}")
        return self._update(
            user_id, {"plan_type": plan_type, "subscription_status": subscription_status}
        )

    def _update(self, user_id: str, changes: dict) -> ProfileEntity:
        # PostgreSQL mode
        if self.use_local_db and self.pg_client:
            columns = ", ".join(f"{name} = %s" for name in changes)
            try:
                row = self.pg_client.execute_insert(
                    f"UPDATE user_profiles SET {columns} WHERE id = %s RETURNING *",
                    (*changes.values(), user_id),
                )
                return self._row_to_entity(row)
            except Exception as exc:
                raise RuntimeError(f"PostgreSQL update profile failed: {exc}") from exc

        # In-memory mode
        if self.disabled or self.client is None:
            current = _MEM_PROFILES.get(user_id) or ProfileEntity(
                id=user_id, email=None, created_at=datetime.now(UTC)
            )
            updated = replace(current, **changes)
            _MEM_PROFILES[user_id] = updated
            return updated

        # Supabase mode
        try:  # pragma: no cover - network
            self.client.table("user_profiles").update(changes).eq("id", user_id).execute()
            res = self.client.table("user_profiles").select("*").eq("id", user_id).single().execute()
            return self._row_to_entity(res.data)
        except Exception as exc:
            raise RuntimeError(f"DB update profile failed: {exc}") from exc
