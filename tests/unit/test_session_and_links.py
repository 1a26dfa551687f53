import pytest

from hotspot_pages.client.links import edit_url, parse_edit_link, share_url
from hotspot_pages.client.notifications import NotificationKind, Notifier
from hotspot_pages.client.session import ActorSession, UsageSnapshot
from hotspot_pages.domain.errors import Unauthorized
from hotspot_pages.domain.services.quota_policy import ActorClass

pytestmark = pytest.mark.anyio


class FakeProfileStore:
    def __init__(self, me=None, error=None):
        self.me = me
        self.error = error
        self.calls = 0

    async def get_me(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.me


async def test_anonymous_session_skips_profile_lookup():
    store = FakeProfileStore()
    session = ActorSession()
    await session.initialize(store)
    assert store.calls == 0
    assert session.actor_class() is ActorClass.ANONYMOUS
    assert session.can_create_hotspot(9)
    assert not session.can_create_hotspot(10)
    assert session.remaining_hotspots(4) == 6


async def test_free_session_counts_usage_not_page():
    me = {"id": "u1", "email": "a@b.c", "plan_type": "free", "usage": {"total_hotspots": 10, "total_pages": 3}}
    session = ActorSession(access_token="tok")
    await session.initialize(FakeProfileStore(me))
    assert session.actor_class() is ActorClass.SIGNED_IN_FREE
    assert not session.can_create_hotspot(0)
    session.record_deleted()
    assert session.can_create_hotspot(50)
    assert session.remaining_hotspots(50) == 1


async def test_missing_usage_counts_as_zero():
    session = ActorSession(access_token="tok")
    await session.initialize(FakeProfileStore({"id": "u1", "plan_type": "free", "usage": None}))
    assert session.usage is None
    assert session.remaining_hotspots(0) == 10
    session.record_created()
    assert session.usage == UsageSnapshot(total_hotspots=1)


async def test_pro_session_is_unlimited():
    session = ActorSession(access_token="tok")
    await session.initialize(FakeProfileStore({"id": "u1", "plan_type": "pro", "usage": {"total_hotspots": 99}}))
    assert session.actor_class() is ActorClass.SIGNED_IN_PRO
    assert session.can_create_hotspot(1000)
    assert session.remaining_hotspots(1000) is None


async def test_rejected_token_falls_back_to_anonymous():
    session = ActorSession(access_token="expired")
    await session.initialize(FakeProfileStore(error=Unauthorized("Invalid access token")))
    assert session.access_token is None
    assert session.actor_class() is ActorClass.ANONYMOUS


async def test_sign_out_tears_down():
    session = ActorSession(access_token="tok")
    await session.initialize(FakeProfileStore({"id": "u1", "plan_type": "pro", "usage": {}}))
    session.sign_out()
    assert not session.signed_in
    assert session.plan_type == "free"
    assert session.actor_class() is ActorClass.ANONYMOUS


def test_links_round_trip(monkeypatch):
    monkeypatch.setenv("PUBLIC_SITE_URL", "https://pages.example.com/")
    assert share_url("abcd1234") == "https://pages.example.com/abcd1234"
    link = edit_url("abcd1234", "tok-_en")
    assert link.startswith("https://pages.example.com/edit/abcd1234?token=")
    assert parse_edit_link(link) == ("abcd1234", "tok-_en")
    assert parse_edit_link(share_url("abcd1234")) == ("abcd1234", None)
    with pytest.raises(ValueError):
        parse_edit_link("https://pages.example.com/")


def test_notifier_forwards_to_listener():
    seen = []
    notifier = Notifier(listener=seen.append)
    notifier.upgrade("anonymous_limit")
    notifier.upgrade("free_plan_limit")
    assert [n.kind for n in seen] == [NotificationKind.UPGRADE, NotificationKind.UPGRADE]
    assert "Sign up" in seen[0].message
    assert "Pro" in seen[1].message
    assert notifier.last is seen[-1]
