"""
Tests for the hotspot and page use cases.
"""
from __future__ import annotations

import gc
import threading
import uuid
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

from hotspot_pages.application.use_cases.create_hotspot import CreateHotspotUseCase
from hotspot_pages.application.use_cases.create_page import CreatePageUseCase
from hotspot_pages.application.use_cases.delete_hotspot import DeleteHotspotUseCase
from hotspot_pages.application.use_cases.refresh_usage import RefreshUsageUseCase
from hotspot_pages.application.use_cases.update_hotspot import UpdateHotspotUseCase
from hotspot_pages.domain.entities.hotspot import HotspotEntity
from hotspot_pages.domain.entities.page import PageEntity
from hotspot_pages.domain.entities.profile import ProfileEntity
from hotspot_pages.domain.errors import Forbidden, QuotaExceeded, Unauthorized, ValidationError
from hotspot_pages.infrastructure.database.repositories.hotspot_repository import (
    _SCOPE_LOCKS,
    SCOPE_OWNER,
    SCOPE_PAGE,
    HotspotRepository,
    _scope_lock,
)
from hotspot_pages.infrastructure.database.repositories.page_repository import PageRepository
from hotspot_pages.infrastructure.database.repositories.profile_repository import ProfileRepository
from hotspot_pages.infrastructure.database.supabase_client import UserInfo

TOKEN = "edit-token-123"


def _page(page_id="page_1", owner_id=None):
    now = datetime.now(UTC)
    return PageEntity(
        id=page_id, slug="abcd1234", edit_token=TOKEN, created_at=now, updated_at=now, owner_id=owner_id
    )


def _hotspot(hotspot_id="h1", page_id="page_1", text="Hello"):
    now = datetime.now(UTC)
    return HotspotEntity(
        id=hotspot_id, page_id=page_id, x_pct=0.5, y_pct=0.5, text=text, created_at=now, updated_at=now
    )


@pytest.fixture
def mock_repos():
    page_repo = Mock()
    hotspot_repo = Mock()
    profile_repo = Mock()
    page_repo.get.return_value = _page()
    profile_repo.get.return_value = None
    return page_repo, hotspot_repo, profile_repo


class TestCreateHotspotUseCase:
    """Quota scope selection and authorization for hotspot creation."""

    def test_anonymous_uses_page_scope(self, mock_repos):
        page_repo, hotspot_repo, profile_repo = mock_repos
        hotspot_repo.create_checked.return_value = (_hotspot(), 3)

        uc = CreateHotspotUseCase(page_repo, hotspot_repo, profile_repo)
        result = uc.execute("page_1", TOKEN, 0.5, 0.5, "Hello")

        assert result.id == "h1"
        kwargs = hotspot_repo.create_checked.call_args.kwargs
        assert kwargs["scope"] == SCOPE_PAGE
        assert kwargs["scope_id"] == "page_1"
        assert kwargs["limit"] == 10

    def test_free_user_uses_owner_scope(self, mock_repos):
        page_repo, hotspot_repo, profile_repo = mock_repos
        profile_repo.get.return_value = ProfileEntity(id="u1", email=None, plan_type="free")
        hotspot_repo.create_checked.return_value = (_hotspot(), 0)

        uc = CreateHotspotUseCase(page_repo, hotspot_repo, profile_repo)
        uc.execute("page_1", TOKEN, 0.5, 0.5, "Hello", user=UserInfo(id="u1", email=None))

        kwargs = hotspot_repo.create_checked.call_args.kwargs
        assert kwargs["scope"] == SCOPE_OWNER
        assert kwargs["scope_id"] == "u1"
        assert kwargs["limit"] == 10

    def test_pro_user_is_unlimited(self, mock_repos):
        page_repo, hotspot_repo, profile_repo = mock_repos
        profile_repo.get.return_value = ProfileEntity(id="u1", email=None, plan_type="pro")
        hotspot_repo.create_checked.return_value = (_hotspot(), 50)

        uc = CreateHotspotUseCase(page_repo, hotspot_repo, profile_repo)
        uc.execute("page_1", TOKEN, 0.5, 0.5, "Hello", user=UserInfo(id="u1", email=None))

        assert hotspot_repo.create_checked.call_args.kwargs["limit"] is None

    def test_refusal_raises_quota_exceeded(self, mock_repos):
        page_repo, hotspot_repo, profile_repo = mock_repos
        hotspot_repo.create_checked.return_value = (None, 10)

        uc = CreateHotspotUseCase(page_repo, hotspot_repo, profile_repo)
        with pytest.raises(QuotaExceeded) as err:
            uc.execute("page_1", TOKEN, 0.5, 0.5, "Hello")

        assert err.value.reason == "anonymous_limit"
        assert err.value.to_payload() == {
            "detail": "Hotspot limit reached",
            "reason": "anonymous_limit",
            "limit": 10,
            "current": 10,
        }

    def test_wrong_token_never_reaches_store(self, mock_repos):
        page_repo, hotspot_repo, profile_repo = mock_repos
        uc = CreateHotspotUseCase(page_repo, hotspot_repo, profile_repo)

        with pytest.raises(Forbidden):
            uc.execute("page_1", "wrong", 0.5, 0.5, "Hello")
        with pytest.raises(Unauthorized):
            uc.execute("page_1", None, 0.5, 0.5, "Hello")
        hotspot_repo.create_checked.assert_not_called()

    def test_usage_is_refreshed_for_page_owner(self, mock_repos):
        page_repo, hotspot_repo, profile_repo = mock_repos
        page_repo.get.return_value = _page(owner_id="owner_9")
        hotspot_repo.create_checked.return_value = (_hotspot(), 0)
        usage = Mock()

        uc = CreateHotspotUseCase(page_repo, hotspot_repo, profile_repo, usage=usage)
        uc.execute("page_1", TOKEN, 0.5, 0.5, "Hello")

        usage.execute_quietly.assert_called_once_with("owner_9")


class TestUpdateAndDelete:
    def test_update_filters_fields_and_checks_fractions(self, mock_repos):
        page_repo, hotspot_repo, _ = mock_repos
        hotspot_repo.get.return_value = _hotspot()
        hotspot_repo.update.return_value = _hotspot(text="New")

        uc = UpdateHotspotUseCase(page_repo, hotspot_repo)
        uc.execute("h1", TOKEN, {"text": "New", "page_id": "other", "z_index": None})
        hotspot_repo.update.assert_called_once_with("h1", {"text": "New"})

        with pytest.raises(ValidationError):
            uc.execute("h1", TOKEN, {"x_pct": 1.2})
        with pytest.raises(ValidationError):
            uc.execute("h1", TOKEN, {})

    def test_missing_hotspot_is_forbidden(self, mock_repos):
        page_repo, hotspot_repo, _ = mock_repos
        hotspot_repo.get.return_value = None

        with pytest.raises(Forbidden):
            UpdateHotspotUseCase(page_repo, hotspot_repo).execute("nope", TOKEN, {"text": "x"})
        with pytest.raises(Forbidden):
            DeleteHotspotUseCase(page_repo, hotspot_repo).execute("nope", TOKEN)
        hotspot_repo.update.assert_not_called()
        hotspot_repo.delete.assert_not_called()

    def test_delete_checks_token_of_owning_page(self, mock_repos):
        page_repo, hotspot_repo, _ = mock_repos
        hotspot_repo.get.return_value = _hotspot()
        hotspot_repo.delete.return_value = True

        uc = DeleteHotspotUseCase(page_repo, hotspot_repo)
        with pytest.raises(Forbidden):
            uc.execute("h1", "other-page-token")
        assert uc.execute("h1", TOKEN) is True
        page_repo.get.assert_called_with("page_1")


class TestCreatePageUseCase:
    def test_slug_collision_is_retried(self):
        page_repo = Mock()
        page_repo.slug_exists.side_effect = [True, True, False]
        page_repo.create.side_effect = lambda **kw: _page()

        CreatePageUseCase(page_repo).execute(title="  Hall  ")

        assert page_repo.slug_exists.call_count == 3
        kwargs = page_repo.create.call_args.kwargs
        assert kwargs["title"] == "Hall"
        assert len(kwargs["slug"]) == 8
        assert kwargs["slug"].isalnum() and kwargs["slug"] == kwargs["slug"].lower()
        assert len(kwargs["edit_token"]) >= 32

    def test_gives_up_after_repeated_collisions(self):
        page_repo = Mock()
        page_repo.slug_exists.return_value = True
        with pytest.raises(RuntimeError):
            CreatePageUseCase(page_repo).execute()
        page_repo.create.assert_not_called()


class TestRefreshUsage:
    def test_missing_cache_reads_as_zero(self):
        usage_repo = Mock()
        usage_repo.get.return_value = None
        uc = RefreshUsageUseCase(Mock(), Mock(), usage_repo)
        current = uc.current("u1")
        assert (current.total_hotspots, current.total_pages) == (0, 0)

    def test_quiet_refresh_swallows_store_errors(self):
        page_repo = Mock()
        page_repo.count_by_owner.side_effect = RuntimeError("db down")
        uc = RefreshUsageUseCase(page_repo, Mock(), Mock())
        assert uc.execute_quietly("u1") is None
        assert uc.execute_quietly(None) is None


def test_concurrent_creates_never_exceed_limit():
    """Nine stored hotspots and eight racing creates: exactly one gets in."""
    pages = PageRepository(None)
    hotspots = HotspotRepository(None)
    page = pages.create(slug="race0001", edit_token=TOKEN)
    for i in range(9):
        created, _ = hotspots.create_checked(
            page.id, 0.1, 0.1, f"h{i}", scope=SCOPE_PAGE, scope_id=page.id, limit=10
        )
        assert created is not None

    uc = CreateHotspotUseCase(pages, hotspots, ProfileRepository(None))
    results: list[str] = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        try:
            uc.execute(page.id, TOKEN, 0.5, 0.5, "racer")
            results.append("ok")
        except QuotaExceeded:
            results.append("refused")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count("ok") == 1
    assert results.count("refused") == 7
    assert hotspots.count_by_page(page.id) == 10


def _owned_page_with(hotspots, owner_id, count):
    page = PageRepository(None).create(slug=uuid.uuid4().hex[:8], edit_token=TOKEN, owner_id=owner_id)
    for i in range(count):
        hotspots.create_checked(page.id, 0.1, 0.1, f"h{i}", scope=SCOPE_PAGE, scope_id=page.id, limit=None)
    return page


def test_page_and_owner_scopes_share_the_page_lock():
    """An anonymous and an owner create on one page cannot both pass at nine."""
    hotspots = HotspotRepository(None)
    owner_id = f"owner_{uuid.uuid4().hex}"
    page = _owned_page_with(hotspots, owner_id, 9)
    results: list[bool] = []
    barrier = threading.Barrier(2)

    def worker(scope, scope_id):
        barrier.wait()
        created, _ = hotspots.create_checked(
            page.id, 0.5, 0.5, "racer", scope=scope, scope_id=scope_id, limit=10
        )
        results.append(created is not None)

    threads = [
        threading.Thread(target=worker, args=(SCOPE_PAGE, page.id)),
        threading.Thread(target=worker, args=(SCOPE_OWNER, owner_id)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == [False, True]
    assert hotspots.count_by_page(page.id) == 10


def test_owner_scope_create_waits_for_page_lock():
    hotspots = HotspotRepository(None)
    owner_id = f"owner_{uuid.uuid4().hex}"
    page = _owned_page_with(hotspots, owner_id, 0)
    done = threading.Event()

    def worker():
        hotspots.create_checked(page.id, 0.5, 0.5, "late", scope=SCOPE_OWNER, scope_id=owner_id, limit=10)
        done.set()

    held = _scope_lock(f"page:{page.id}")
    with held:
        thread = threading.Thread(target=worker)
        thread.start()
        assert not done.wait(0.2)
    thread.join()
    assert done.is_set()
    assert hotspots.count_by_page(page.id) == 1


def test_scope_locks_are_released_after_use():
    hotspots = HotspotRepository(None)
    owner_id = f"owner_{uuid.uuid4().hex}"
    page = _owned_page_with(hotspots, owner_id, 0)
    hotspots.create_checked(page.id, 0.5, 0.5, "x", scope=SCOPE_OWNER, scope_id=owner_id, limit=10)
    gc.collect()
    assert f"page:{page.id}" not in _SCOPE_LOCKS
    assert f"owner:{owner_id}" not in _SCOPE_LOCKS
