"""Async HTTP client for the hotspot pages API.

Every failure comes back as one of the ``hotspot_pages.domain.errors`` classes
so callers only ever deal with that taxonomy.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from hotspot_pages.application.dtos.hotspot_dto import HotspotItem
from hotspot_pages.application.dtos.page_dto import CreatePageResponse, PageMetadata
from hotspot_pages.domain.entities.hotspot import HotspotEntity
from hotspot_pages.domain.errors import Transient, error_from_response

logger = logging.getLogger(__name__)

EDIT_TOKEN_HEADER = "X-Edit-Token"


@dataclass(frozen=True)
class PageSnapshot:
    page: PageMetadata
    hotspots: list[HotspotEntity]


def hotspot_from_payload(payload: dict[str, Any]) -> HotspotEntity:
    item = HotspotItem.model_validate(payload)
    return HotspotEntity(
        id=item.id,
        page_id=item.page_id,
        x_pct=item.x_pct,
        y_pct=item.y_pct,
        text=item.text,
        created_at=item.created_at,
        updated_at=item.updated_at,
        z_index=item.z_index,
    )


class HotspotStoreClient:
    def __init__(
        self,
        base_url: str,
        edit_token: str | None = None,
        access_token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.edit_token = edit_token
        self.access_token = access_token
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "HotspotStoreClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self, with_token: bool) -> dict[str, str]:
        headers: dict[str, str] = {}
        if with_token and self.edit_token:
            headers[EDIT_TOKEN_HEADER] = self.edit_token
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _request(self, method: str, url: str, *, with_token: bool = False, **kwargs) -> Any:
        try:
            response = await self._http.request(method, url, headers=self._headers(with_token), **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise Transient(f"Network error: {exc}") from exc
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if response.is_success:
            return payload
        raise error_from_response(response.status_code, payload if isinstance(payload, dict) else None)

    async def get_page(self, slug: str) -> PageSnapshot:
        data = await self._request("GET", f"/page/{slug}")
        return PageSnapshot(
            page=PageMetadata.model_validate(data["page"]),
            hotspots=[hotspot_from_payload(h) for h in data.get("hotspots", [])],
        )

    async def create_page(self, title: str | None = None) -> CreatePageResponse:
        data = await self._request("POST", "/page", json={"title": title})
        return CreatePageResponse.model_validate(data)

    async def rename_page(self, slug: str, title: str | None) -> PageMetadata:
        data = await self._request("PATCH", f"/page/{slug}", with_token=True, json={"title": title})
        return PageMetadata.model_validate(data)

    async def create_hotspot(self, page_id: str, x_pct: float, y_pct: float, text: str) -> HotspotEntity:
        body = {"page_id": page_id, "x_pct": x_pct, "y_pct": y_pct, "text": text}
        data = await self._request("POST", "/hotspot", with_token=True, json=body)
        return hotspot_from_payload(data)

    async def update_hotspot(self, hotspot_id: str, changes: dict[str, Any]) -> HotspotEntity:
        data = await self._request("PATCH", f"/hotspot/{hotspot_id}", with_token=True, json=changes)
        return hotspot_from_payload(data)

    async def delete_hotspot(self, hotspot_id: str) -> None:
        await self._request("DELETE", f"/hotspot/{hotspot_id}", with_token=True)

    async def get_me(self) -> dict[str, Any]:
        return await self._request("GET", "/auth/me")
