"""Supabase Storage helpers for student avatars and category icons."""
from __future__ import annotations

import logging
import mimetypes
import time
from typing import Dict, Iterable, List, Optional

from class_finance.supabase_client import StoreError, SupabaseClient

LOGGER = logging.getLogger(__name__)

AVATAR_FOLDER = "avatars"
CATEGORY_ICON_FOLDER = "category-icons"


class StorageClient:
    """Upload, list and remove objects in one storage bucket."""

    def __init__(self, client: SupabaseClient, *, bucket: str = "avatars") -> None:
        self._client = client
        self.bucket = bucket

    def public_url(self, path: str) -> str:
        return f"{self._client.base_url}/storage/v1/object/public/{self.bucket}/{path.lstrip('/')}"

    def upload(self, path: str, content: bytes, *, content_type: Optional[str] = None) -> str:
        """Store ``content`` at ``path`` (overwriting) and return its public URL."""

        guessed = content_type or mimetypes.guess_type(path)[0] or "application/octet-stream"
        self._client.request(
            "POST",
            f"object/{self.bucket}/{path}",
            data=content,
            headers={"Content-Type": guessed, "cache-control": "3600", "x-upsert": "true"},
            api="storage",
        )
        LOGGER.info("Uploaded %s (%d bytes) to bucket %s", path, len(content), self.bucket)
        return self.public_url(path)

    def remove(self, paths: Iterable[str]) -> None:
        prefixes = [p for p in paths if p]
        if not prefixes:
            return
        self._client.request("DELETE", f"object/{self.bucket}", json={"prefixes": prefixes}, api="storage")
        LOGGER.info("Removed %d object(s) from bucket %s", len(prefixes), self.bucket)

    def list(self, prefix: str = "", *, limit: int = 100) -> List[Dict]:
        return self._client.request(
            "POST",
            f"object/list/{self.bucket}",
            json={"prefix": prefix, "limit": limit, "offset": 0},
            api="storage",
        ) or []

    def upload_student_avatar(self, student_id: str, filename: str, content: bytes) -> str:
        return self.upload(_object_path(AVATAR_FOLDER, student_id, filename), content)

    def delete_student_avatar(self, avatar_url: str) -> None:
        if not avatar_url:
            LOGGER.warning("delete_student_avatar called with empty URL")
            return
        path = path_from_url(avatar_url, AVATAR_FOLDER)
        if not path:
            LOGGER.error("Could not extract filename from avatar URL: %s", avatar_url)
            return
        self.remove([path])

    def upload_category_icon(self, category_id: str, filename: str, content: bytes) -> str:
        return self.upload(_object_path(CATEGORY_ICON_FOLDER, category_id, filename), content)

    def delete_category_icon(self, icon_url: str) -> None:
        """Remove a category icon. Failures are logged, never raised."""

        if not icon_url:
            return
        path = path_from_url(icon_url, CATEGORY_ICON_FOLDER)
        if not path:
            LOGGER.warning("Could not extract filename from icon URL: %s", icon_url)
            return
        try:
            self.remove([path])
        except StoreError:
            LOGGER.exception("Failed deleting category icon %s", path)


def path_from_url(url: str, folder: str) -> Optional[str]:
    filename = url.rstrip("/").rsplit("/", 1)[-1].split("?", 1)[0]
    if not filename:
        return None
    return f"{folder}/{filename}"


def _object_path(folder: str, owner_id: str, filename: str) -> str:
    _, dot, ext = filename.rpartition(".")
    suffix = f".{ext}" if dot and ext else ""
    return f"{folder}/{owner_id}-{int(time.time() * 1000)}{suffix}"
