from functools import lru_cache
import os

from dotenv import load_dotenv
from realtime import AsyncRealtimeClient
from supabase import create_client, Client

load_dotenv()

PLACEHOLDER_MARKERS = ("your-project-ref", "your-anon-key", "your-service-key")

IGNORABLE_ERROR_MARKERS = (
    "not configured",
    "auth session missing",
    "invalid jwt",
    "jwt expired",
    "failed to fetch",
    "connection refused",
)


def _credentials(key_var: str) -> tuple[str | None, str | None]:
    return os.getenv("SUPABASE_URL"), os.getenv(key_var)


def is_supabase_configured(key_var: str = "SUPABASE_SERVICE_KEY") -> bool:
    """Return True when the Supabase URL and key are set to real values."""
    url, key = _credentials(key_var)
    if not url or not key:
        return False
    return not any(marker in url or marker in key for marker in PLACEHOLDER_MARKERS)


def is_ignorable_backend_error(error: BaseException) -> bool:
    """Errors that mean "backend unavailable" rather than a real bug."""
    message = str(error).lower()
    return any(marker in message for marker in IGNORABLE_ERROR_MARKERS)


@lru_cache(maxsize=None)
def get_supabase_client(key_var: str = "SUPABASE_SERVICE_KEY") -> Client:
    """Get the process-wide Supabase client for the given key."""
    if not is_supabase_configured(key_var):
        raise ValueError(f"SUPABASE_URL and {key_var} must be set")

    url, key = _credentials(key_var)
    return create_client(url, key)


@lru_cache(maxsize=None)
def get_realtime_client(key_var: str = "SUPABASE_ANON_KEY") -> AsyncRealtimeClient:
    """Get the process-wide realtime (websocket) client."""
    if not is_supabase_configured(key_var):
        raise ValueError(f"SUPABASE_URL and {key_var} must be set")

    url, key = _credentials(key_var)
    return AsyncRealtimeClient(f"{url}/realtime/v1", key)


def reset_supabase_clients() -> None:
    """Drop cached clients (logout / process teardown)."""
    get_supabase_client.cache_clear()
    get_realtime_client.cache_clear()
