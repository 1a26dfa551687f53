from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from supabase import Client

logger = logging.getLogger(__name__)

EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}
ALLOWED_MIME_TYPES = set(EXTENSIONS)
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


@dataclass
class StorageResult:
    path: str
    width: int
    height: int
    content_type: str
    size: int


def inspect_image(data: bytes) -> tuple[int, int, str]:
    """Return (width, height, mime type) of an encoded image.

    Raises:
        ValueError: If the bytes are not a JPEG, PNG or WebP image.
    """
    try:
        with Image.open(BytesIO(data)) as img:
            width, height = img.size
            mime = Image.MIME.get(img.format or "", "")
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"Invalid image file: {exc}") from exc
    if mime not in ALLOWED_MIME_TYPES:
        raise ValueError("Invalid file type. Only JPEG, PNG, and WebP are allowed.")
    return width, height, mime


class SupabaseStorage:
    """Storage adapter for Supabase Storage with a local fake fallback."""

    def __init__(self, client: Client | None) -> None:
        self.client = client
        self.bucket = os.getenv("SUPABASE_STORAGE_BUCKET", "images")
        self.disabled = os.getenv("SUPABASE_DISABLED", "0") == "1"
        self.local_dir = Path(os.getenv("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage"))
        if self.disabled:
            self.local_dir.mkdir(parents=True, exist_ok=True)

    def upload_page_image(self, page_id: str, data: bytes) -> StorageResult:
        """Store under `{page_id}/{millis}.{ext}`, ext taken from the decoded format."""
        if len(data) > MAX_FILE_SIZE:
            raise ValueError("File size too large. Maximum 10MB allowed.")
        width, height, content_type = inspect_image(data)
        storage_path = f"{page_id}/{int(time.time() * 1000)}.{EXTENSIONS[content_type]}"
        if self.disabled or self.client is None:
            full_path = self.local_dir / storage_path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(data)
            return StorageResult(
                path=storage_path, width=width, height=height, content_type=content_type, size=len(data)
            )
        try:  # pragma: no cover - network
            self.client.storage.from_(self.bucket).upload(
                path=storage_path,
                file=data,
                file_options={"content-type": content_type, "upsert": "false"},
            )
            return StorageResult(
                path=storage_path, width=width, height=height, content_type=content_type, size=len(data)
            )
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Storage upload failed: {exc}") from exc

    def get_public_url(self, path: str | None) -> str | None:
        if not path:
            return None
        if self.disabled or self.client is None:
            return f"/local-storage/{path}"
        try:  # pragma: no cover - network
            return self.client.storage.from_(self.bucket).get_public_url(path)
        except Exception as exc:
            logger.warning("Could not resolve public URL for %s: %s", path, exc)
            return None

    def delete(self, path: str) -> None:
        if self.disabled or self.client is None:
            full_path = self.local_dir / path
            if full_path.exists():
                full_path.unlink()
            return
        try:  # pragma: no cover - network
            self.client.storage.from_(self.bucket).remove([path])
        except Exception as exc:
            raise RuntimeError(f"Storage delete failed: {exc}") from exc
