"""Fetching receipt images from readable URLs."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from ..errors import UpstreamUnavailable


def guess_mime_type(name: str) -> str:
    return mimetypes.guess_type(name)[0] or "image/jpeg"


async def fetch_image(url: str) -> tuple[bytes, str]:
    """Download an image and return ``(data, mime_type)``.

    ``file://`` URLs (issued by the local object store) are read from disk.

    Raises:
        UpstreamUnavailable: If the image cannot be retrieved.
    """
    parsed = urlparse(url)
    if parsed.scheme == "file":
        path = Path(url2pathname(parsed.path))
        try:
            data = path.read_bytes()
        except OSError as e:
            raise UpstreamUnavailable(f"Cannot read receipt image {path}: {e}") from e
        return data, guess_mime_type(path.name)

    try:
        import httpx
    except ImportError:
        raise ImportError("httpx is required: pip install httpx") from None

    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Cannot download receipt image: {e}") from e

    content_type = response.headers.get("content-type", "")
    mime_type = content_type.split(";")[0].strip() or guess_mime_type(parsed.path)
    return response.content, mime_type
