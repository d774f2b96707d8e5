"""Object store base class, image keys, and factory."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import RewardsConfig


def make_image_key(user_id: str, now_ms: int | None = None) -> str:
    """Return the storage key for a new receipt upload.

    Uploads live under the user's prefix: ``{user_id}/receipt_{epoch_ms}.jpg``.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{user_id}/receipt_{now_ms}.jpg"


class ObjectStore(ABC):
    """Holds uploaded receipt images."""

    @abstractmethod
    def resolve_readable_url(self, key: str, expires_in: int = 300) -> str:
        """Exchange a storage key for a time-limited readable URL.

        Raises:
            UpstreamUnavailable: If the key does not exist or the store
                cannot be reached.
        """
        ...

    @abstractmethod
    def upload(self, local_path: str | Path, key: str) -> str:
        """Store a local image file under ``key`` and return the key."""
        ...


def create_object_store(config: RewardsConfig) -> ObjectStore:
    """Create an object store based on configuration."""
    backend_name = config.storage.backend

    match backend_name:
        case "local":
            from .local import LocalObjectStore

            return LocalObjectStore(root=config.storage.root)
        case "supabase":
            from ..supabase_client import create_supabase_client
            from .supabase_bucket import SupabaseObjectStore

            client = create_supabase_client(config.supabase.url, config.supabase.key)
            return SupabaseObjectStore(client, bucket=config.storage.bucket)
        case _:
            raise ValueError(
                f"Unknown storage backend: {backend_name!r}  "
                f"(choose local or supabase)"
            )
