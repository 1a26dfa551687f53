from __future__ import annotations

import os

import httpx


def site_url() -> str:
    return os.getenv("PUBLIC_SITE_URL", "http://localhost:3000").rstrip("/")


def share_url(slug: str) -> str:
    """Public view link; safe to hand out."""
    return f"{site_url()}/{slug}"


def edit_url(slug: str, edit_token: str) -> str:
    """Editor link. Anyone holding it can change the page."""
    return str(httpx.URL(f"{site_url()}/edit/{slug}", params={"token": edit_token}))


def parse_edit_link(link: str) -> tuple[str, str | None]:
    """Return ``(slug, edit_token)`` from an editor or share link."""
    url = httpx.URL(link)
    parts = [p for p in url.path.split("/") if p]
    if parts[:1] == ["edit"]:
        parts = parts[1:]
    if len(parts) != 1:
        raise ValueError(f"Not a page link: {link}")
    return parts[0], url.params.get("token")
