"""Media storage for uploaded images: the worker fetches bytes back by reference.

An imageRef is either a handle produced by a store's upload() or a plain
http(s) URL (e.g. an image already hosted on a CDN).
"""

import mimetypes
import os
import shutil
import tempfile
import time
import uuid
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from supabase import create_client

from chivecut.errors import ImageFetchError

LOCAL_SCHEME = "local:"
SUPABASE_SCHEME = "supabase:"


class MediaStore(ABC):
    """Upload(bytes, mimeType) -> imageRef and Fetch(imageRef) -> bytes."""

    def __init__(self, fetch_timeout: float = 30.0):
        self._fetch_timeout = fetch_timeout

    @abstractmethod
    def upload(self, data: bytes, mime_type: str) -> str:
        ...

    @abstractmethod
    def _fetch_own(self, ref: str) -> bytes:
        ...

    def fetch(self, ref: str) -> bytes:
        if ref.startswith(("http://", "https://")):
            return self._fetch_url(ref)
        return self._fetch_own(ref)

    def _fetch_url(self, url: str) -> bytes:
        try:
            response = httpx.get(url, timeout=self._fetch_timeout, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise ImageFetchError(f"Failed to fetch image: {exc}") from exc
        if response.status_code >= 400:
            raise ImageFetchError(
                f"Failed to fetch image: {response.status_code} {response.reason_phrase}"
            )
        return response.content


def _object_name(mime_type: str) -> str:
    ext = mimetypes.guess_extension(mime_type) or ".bin"
    return f"{uuid.uuid4().hex}{ext}"


class LocalMediaStore(MediaStore):
    """Files in a temp directory with TTL-based cleanup.

    Only works when the API and the worker share a filesystem.
    """

    def __init__(self, base_dir: Optional[str] = None, ttl_hours: int = 2, **kwargs):
        super().__init__(**kwargs)
        if base_dir:
            self._base_dir = base_dir
        else:
            self._base_dir = os.path.join(tempfile.gettempdir(), "chivecut_uploads")
        os.makedirs(self._base_dir, exist_ok=True)
        self._ttl_seconds = ttl_hours * 3600

    def upload(self, data: bytes, mime_type: str) -> str:
        name = _object_name(mime_type)
        with open(os.path.join(self._base_dir, name), "wb") as dst:
            dst.write(data)
        return f"{LOCAL_SCHEME}{name}"

    def _fetch_own(self, ref: str) -> bytes:
        if not ref.startswith(LOCAL_SCHEME):
            raise ImageFetchError(f"Unsupported image reference: {ref}")
        name = os.path.basename(ref[len(LOCAL_SCHEME):])
        path = os.path.join(self._base_dir, name)
        try:
            with open(path, "rb") as src:
                return src.read()
        except OSError as exc:
            raise ImageFetchError(f"Failed to fetch image: {exc}") from exc

    def cleanup_expired(self) -> int:
        """Remove uploads older than TTL. Returns count of removed entries."""
        now = time.time()
        removed = 0
        if not os.path.exists(self._base_dir):
            return 0
        for entry in os.listdir(self._base_dir):
            path = os.path.join(self._base_dir, entry)
            if now - os.path.getmtime(path) <= self._ttl_seconds:
                continue
            if os.path.isdir(path):
                shutil.rmtree(path, ignore_errors=True)
            else:
                os.remove(path)
            removed += 1
        return removed


class SupabaseMediaStore(MediaStore):
    """Objects in a Supabase Storage bucket, read back with the service role."""

    def __init__(self, client, bucket: str, prefix: str = "uploads", **kwargs):
        super().__init__(**kwargs)
        self._client = client
        self._bucket = bucket
        self._prefix = prefix

    @classmethod
    def from_settings(cls, settings) -> "SupabaseMediaStore":
        """Connect with the service role key from settings."""
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        client = create_client(settings.supabase_url, settings.supabase_service_role_key)
        return cls(client, bucket=settings.supabase_bucket)

    def upload(self, data: bytes, mime_type: str) -> str:
        path = f"{self._prefix}/{_object_name(mime_type)}"
        self._client.storage.from_(self._bucket).upload(
            path, data, {"content-type": mime_type}
        )
        return f"{SUPABASE_SCHEME}{path}"

    def _fetch_own(self, ref: str) -> bytes:
        if not ref.startswith(SUPABASE_SCHEME):
            raise ImageFetchError(f"Unsupported image reference: {ref}")
        path = ref[len(SUPABASE_SCHEME):]
        try:
            return self._client.storage.from_(self._bucket).download(path)
        except Exception as exc:
            raise ImageFetchError(f"Failed to fetch image: {exc}") from exc
