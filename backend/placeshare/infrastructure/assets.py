"""Local Asset Store: writes uploaded images to disk and releases them on request.

Invariants:
    - Accepted content types: image/png, image/jpeg, image/jpg
    - Files larger than max_bytes are rejected before anything is written
    - Stored file names are uuid4 + extension; client file names are never used
    - store() raises ValidationError for bad input and AssetError for disk failures
    - release() raises AssetError on failure; callers decide whether it is fatal

Design Decisions:
    - Blocking file IO runs in a worker thread (asyncio.to_thread)
"""

import asyncio
import logging
import os
import uuid

from placeshare.core.errors import AssetError, ValidationError

logger = logging.getLogger(__name__)

MIME_TYPE_MAP = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
}


class LocalAssetStore:
    """Asset store rooted at a local upload directory."""

    def __init__(self, upload_dir: str, max_bytes: int = 500_000):
        self.upload_dir = upload_dir
        self.max_bytes = max_bytes

    async def store(self, data: bytes, content_type: str) -> str:
        extension = MIME_TYPE_MAP.get(content_type)
        if extension is None:
            raise ValidationError("Invalid mime type.", "image")
        if len(data) > self.max_bytes:
            raise ValidationError(
                f"File exceeds the {self.max_bytes} byte limit.", "image",
            )
        path = os.path.join(self.upload_dir, f"{uuid.uuid4()}.{extension}")
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            raise AssetError(str(e), path)
        logger.debug(f"Stored asset {path} ({len(data)} bytes)")
        return path

    async def release(self, path: str) -> None:
        try:
            await asyncio.to_thread(os.remove, path)
        except OSError as e:
            raise AssetError(str(e), path)
        logger.debug(f"Released asset {path}")

    def _write(self, path: str, data: bytes) -> None:
        os.makedirs(self.upload_dir, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
