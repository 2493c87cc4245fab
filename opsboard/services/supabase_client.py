"""
Supabase Client

Creates the Supabase client used by the metrics row source.
Reads credentials from the environment; a missing URL or key means the
dashboard runs in degraded (all-zero) mode instead of failing.
"""

import logging
import os
from typing import Optional, Tuple

from supabase import Client, create_client

from opsboard.exceptions import DataSourceUnavailable

logger = logging.getLogger(__name__)

# Checked in order, first one set wins
SUPABASE_KEY_VARS = ("SUPABASE_SERVICE_KEY", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_KEY")


def get_supabase_credentials() -> Tuple[Optional[str], Optional[str]]:
    """Return (url, key) from the environment; either may be None."""
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = None
    for var in SUPABASE_KEY_VARS:
        supabase_key = os.getenv(var)
        if supabase_key:
            break
    return supabase_url, supabase_key


def is_supabase_configured() -> bool:
    url, key = get_supabase_credentials()
    return bool(url and key)


def create_supabase_client() -> Client:
    """
    Create a Supabase client from environment credentials.

    Raises:
        DataSourceUnavailable: credentials missing or rejected by the client
    """
    supabase_url, supabase_key = get_supabase_credentials()

    if not supabase_url or not supabase_key:
        raise DataSourceUnavailable(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY (or SUPABASE_KEY) must be set"
        )

    try:
        return create_client(supabase_url, supabase_key)
    except Exception as e:
        logger.error(f"[Supabase] Could not create client: {e}")
        raise DataSourceUnavailable(f"Could not create Supabase client: {e}") from e


# Singleton instance
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create the shared Supabase client"""
    global _client
    if _client is None:
        _client = create_supabase_client()
    return _client


def reset_supabase_client() -> None:
    """Drop the cached client (credentials changed, tests)"""
    global _client
    _client = None
