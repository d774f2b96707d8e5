"""Object store backed by a Supabase Storage bucket."""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import UpstreamUnavailable
from ..ocr.images import guess_mime_type
from . import ObjectStore

logger = logging.getLogger(__name__)


class SupabaseObjectStore(ObjectStore):
    """Receipt images in a private bucket, read through signed URLs."""

    def __init__(self, client, bucket: str = "receipts-original") -> None:
        self._client = client
        self._bucket = bucket

    def resolve_readable_url(self, key: str, expires_in: int = 300) -> str:
        try:
            result = self._client.storage.from_(self._bucket).create_signed_url(
                key, expires_in
            )
        except Exception as e:
            raise UpstreamUnavailable(f"Failed to get image URL for {key!r}: {e}") from e

        url = result.get("signedURL") or result.get("signedUrl")
        if not url:
            raise UpstreamUnavailable(f"Failed to get image URL for {key!r}")
        return url

    def upload(self, local_path: str | Path, key: str) -> str:
        path = Path(local_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        try:
            self._client.storage.from_(self._bucket).upload(
                key,
                path.read_bytes(),
                {"content-type": guess_mime_type(path.name)},
            )
        except Exception as e:
            raise UpstreamUnavailable(f"Upload of {key!r} failed: {e}") from e
        logger.info("Uploaded %s to %s/%s", path.name, self._bucket, key)
        return key
