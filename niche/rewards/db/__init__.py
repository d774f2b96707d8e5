"""Receipt and points ledger persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import ReceiptStore
from .schema import ensure_schema
from .sqlite_store import SQLiteReceiptStore

if TYPE_CHECKING:
    from ..config import RewardsConfig

__all__ = [
    "ReceiptStore",
    "SQLiteReceiptStore",
    "create_store",
    "ensure_schema",
]


def create_store(config: RewardsConfig) -> ReceiptStore:
    """Create a receipt store based on configuration."""
    backend_name = config.database.backend

    match backend_name:
        case "sqlite":
            return SQLiteReceiptStore(config.database.path)
        case "supabase":
            from ..supabase_client import create_supabase_client
            from .supabase_store import SupabaseReceiptStore

            client = create_supabase_client(config.supabase.url, config.supabase.key)
            return SupabaseReceiptStore(client)
        case _:
            raise ValueError(
                f"Unknown database backend: {backend_name!r}  "
                f"(choose sqlite or supabase)"
            )
