from datetime import UTC, datetime

import pytest

from hotspot_pages.domain.entities.page import PageEntity
from hotspot_pages.domain.errors import Forbidden, Unauthorized
from hotspot_pages.domain.services.authorization import (
    AuthorizationResult,
    authorize,
    ensure_authorized,
)
from hotspot_pages.infrastructure.database.supabase_client import SupabaseAuthAdapter, get_supabase_client


def _page(token="s3cret-Token"):
    now = datetime.now(UTC)
    return PageEntity(id="p1", slug="abcd1234", edit_token=token, created_at=now, updated_at=now)


def test_exact_token_is_authorized():
    assert authorize(_page(), "s3cret-Token") is AuthorizationResult.AUTHORIZED


@pytest.mark.parametrize("presented", ["s3cret-token", "S3CRET-TOKEN", "s3cret", "s3cret-Token ", "", None])
def test_anything_else_is_denied(presented):
    assert authorize(_page(), presented) is AuthorizationResult.DENIED


def test_missing_page_is_denied():
    assert authorize(None, "s3cret-Token") is AuthorizationResult.DENIED


def test_ensure_authorized_distinguishes_missing_from_wrong():
    with pytest.raises(Unauthorized):
        ensure_authorized(_page(), None)
    with pytest.raises(Forbidden) as wrong:
        ensure_authorized(_page(), "nope")
    with pytest.raises(Forbidden) as missing:
        ensure_authorized(None, "s3cret-Token")
    assert wrong.value.to_payload() == missing.value.to_payload()


def test_ensure_authorized_returns_page():
    page = _page()
    assert ensure_authorized(page, "s3cret-Token") is page


def test_offline_tokens_resolve_to_stable_distinct_users():
    assert get_supabase_client() is None
    auth = SupabaseAuthAdapter()
    first = auth.validate_token("token-a")
    assert first == auth.validate_token("token-a")
    assert first.id != auth.validate_token("token-b").id
    assert first.id.startswith("fake-")
    with pytest.raises(ValueError):
        auth.validate_token("")
