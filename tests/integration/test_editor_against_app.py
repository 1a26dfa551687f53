import uuid

import httpx
import pytest

from hotspot_pages.client.canvas import CanvasMode, CanvasProjection, ClickEvent, ClickTarget
from hotspot_pages.client.editor import HotspotEditor, MutationState
from hotspot_pages.client.notifications import NotificationKind, Notifier
from hotspot_pages.client.session import ActorSession
from hotspot_pages.client.store_client import HotspotStoreClient
from hotspot_pages.domain.errors import Forbidden, NotFound, Unauthorized
from hotspot_pages.domain.services.coordinates import ImageBox

pytestmark = pytest.mark.anyio


@pytest.fixture
def transport(app):
    return httpx.ASGITransport(app=app)


async def _new_page(transport, access_token=None):
    async with HotspotStoreClient("http://test", access_token=access_token, transport=transport) as store:
        return await store.create_page(title="Living room")


async def test_editor_round_trip(transport):
    created = await _new_page(transport)
    async with HotspotStoreClient("http://test", edit_token=created.edit_token, transport=transport) as store:
        canvas = CanvasProjection(CanvasMode.EDIT)
        editor = HotspotEditor(store, created.slug, notifier=Notifier(), on_change=canvas.hotspots_changed)
        assert await editor.load()
        canvas.image_loaded(ImageBox(400, 300))

        placement = canvas.click(ClickEvent(ClickTarget.IMAGE, x=100, y=150))
        x_pct, y_pct, text = canvas.submit_placement("  Sofa  ")
        assert (x_pct, y_pct) == (placement.x_pct, placement.y_pct) == (0.25, 0.5)

        record = await editor.create_hotspot(x_pct, y_pct, text)
        assert record.state is MutationState.CONFIRMED
        [marker] = canvas.markers
        assert marker.hotspot_id == record.server_id
        assert (marker.center_x, marker.center_y) == (100, 150)

        await editor.update_hotspot(record.server_id, text="Couch")
        await editor.rename_page("Lounge")
        snapshot = await store.get_page(created.slug)
        assert [h.text for h in snapshot.hotspots] == ["Couch"]
        assert snapshot.page.title == "Lounge"

        await editor.delete_hotspot(record.server_id)
        assert (await store.get_page(created.slug)).hotspots == []
        assert canvas.markers == []
        assert all(n.kind is NotificationKind.SUCCESS for n in editor.notifier.history)


async def test_editor_with_wrong_token_rolls_back(transport):
    created = await _new_page(transport)
    async with HotspotStoreClient("http://test", edit_token="not-the-token", transport=transport) as store:
        editor = HotspotEditor(store, created.slug, notifier=Notifier())
        assert await editor.load()
        record = await editor.create_hotspot(0.5, 0.5, "nope")
        assert record.state is MutationState.ROLLED_BACK
        assert isinstance(record.error, Forbidden)
        assert editor.hotspots == []
        assert [n.kind for n in editor.notifier.history] == [NotificationKind.ERROR]


async def test_store_client_maps_errors(transport):
    async with HotspotStoreClient("http://test", transport=transport) as store:
        with pytest.raises(NotFound):
            await store.get_page("missing0")
        with pytest.raises(Unauthorized):
            await store.update_hotspot("whatever", {"text": "x"})


async def test_server_quota_reaches_editor_as_upgrade_prompt(transport):
    created = await _new_page(transport)
    async with HotspotStoreClient("http://test", edit_token=created.edit_token, transport=transport) as store:
        # a second editor fills the page behind this one's back
        stale = HotspotEditor(store, created.slug, notifier=Notifier())
        await stale.load()
        filler = HotspotEditor(store, created.slug, notifier=Notifier())
        await filler.load()
        for i in range(10):
            assert (await filler.create_hotspot(0.1, 0.1, f"h{i}")).state is MutationState.CONFIRMED

        record = await stale.create_hotspot(0.5, 0.5, "eleventh")
        assert record.state is MutationState.ROLLED_BACK
        assert stale.hotspots == []
        assert stale.notifier.last.kind is NotificationKind.UPGRADE
        assert stale.notifier.last.reason == "anonymous_limit"


async def test_signed_in_session_loads_usage(transport):
    token = f"test-{uuid.uuid4().hex}"
    created = await _new_page(transport, access_token=token)
    async with HotspotStoreClient(
        "http://test", edit_token=created.edit_token, access_token=token, transport=transport
    ) as store:
        session = ActorSession(access_token=token)
        await session.initialize(store)
        assert session.signed_in
        assert session.usage.total_pages == 1
        assert session.remaining_hotspots(0) == 10

        editor = HotspotEditor(store, created.slug, session=session, notifier=Notifier())
        await editor.load()
        await editor.create_hotspot(0.5, 0.5, "mine")
        assert session.usage.total_hotspots == 1
