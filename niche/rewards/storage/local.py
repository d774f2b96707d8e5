"""Object store backed by a local directory."""

from __future__ import annotations

import shutil
from pathlib import Path

from ..errors import UpstreamUnavailable
from . import ObjectStore


class LocalObjectStore(ObjectStore):
    """Keeps receipt images under a root directory.

    Readable URLs are ``file://`` URIs. They do not expire, so
    ``expires_in`` is accepted and ignored.
    """

    def __init__(self, root: str | Path = "~/.local/share/niche-rewards/receipts") -> None:
        self._root = Path(root).expanduser()

    def _path_for(self, key: str) -> Path:
        root = self._root.resolve()
        path = (root / key).resolve()
        if not key or not path.is_relative_to(root):
            raise UpstreamUnavailable(f"Invalid storage key: {key!r}")
        return path

    def resolve_readable_url(self, key: str, expires_in: int = 300) -> str:
        path = self._path_for(key)
        if not path.is_file():
            raise UpstreamUnavailable(f"Receipt image not found: {key}")
        return path.as_uri()

    def upload(self, local_path: str | Path, key: str) -> str:
        src = Path(local_path)
        if not src.exists():
            raise FileNotFoundError(f"File not found: {src}")
        dest = self._path_for(key)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dest)
        return key
