import io
import os
import sys
import uuid
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'hotspot_pages' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage")


@pytest.fixture(scope="session")
def app():
    # lazy import after env configured
    from hotspot_pages.main import create_app

    return create_app()


@pytest.fixture(scope="session")
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def auth_header() -> dict[str, str]:
    # any token is accepted in disabled mode; a fresh one is a fresh user
    return {"Authorization": f"Bearer test-{uuid.uuid4().hex}"}


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def png_bytes():
    def make_png_bytes(w=4, h=4, color=(128, 64, 32)) -> bytes:
        arr = np.zeros((h, w, 3), dtype=np.uint8)
        arr[:, :] = color
        img = Image.fromarray(arr)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    return make_png_bytes


@pytest.fixture()
def new_page(client):
    """Create a page (optionally owned) and return its create response."""

    def _create(title=None, headers=None) -> dict:
        r = client.post("/page", json={"title": title}, headers=headers or {})
        assert r.status_code == 201, r.text
        return r.json()

    return _create
