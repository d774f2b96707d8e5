"""Shared Supabase client construction."""

from __future__ import annotations


def create_supabase_client(url: str, key: str):
    """Create a Supabase client with the service-role key.

    Raises:
        ValueError: If the URL or key is missing.
        ImportError: If the supabase package is not installed.
    """
    if not url or not key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set "
            "in the config file or the environment"
        )
    try:
        from supabase import create_client
    except ImportError:
        raise ImportError(
            "supabase is required: pip install 'niche-rewards[supabase]'"
        ) from None
    return create_client(url, key)
