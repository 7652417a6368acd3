"""
Supabase client initialization.

This module contains *only* the database connection setup. The client is
built on first use so that importing repositories (and running the test suite
against in-memory stores) does not require credentials.

Environment variables required when the client is built:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

# The dependency is `supabase` (supabase-py): `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

from config import Settings, get_settings


def create_supabase_client(settings: Optional[Settings] = None) -> Client:
    """Create a Supabase client from settings (defaults to the environment)."""

    settings = settings or get_settings()

    if not settings.supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not settings.supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    return create_client(settings.supabase_url, settings.supabase_key)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Process-wide Supabase client."""
    return create_supabase_client()


__all__ = ["create_supabase_client", "get_supabase"]
