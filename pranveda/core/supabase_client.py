# pranveda/core/supabase_client.py
from supabase import create_client, Client

from pranveda.core.config import Settings


def build_supabase_client(settings: Settings) -> Client | None:
    """
    Create a Supabase client for storage access.

    Prefers the service role key (private buckets) and falls back to the
    anon key. Returns None when Supabase is not configured.

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.
    """
    key = settings.SUPABASE_SERVICE_ROLE_KEY or settings.SUPABASE_KEY
    if not settings.SUPABASE_URL or not key:
        return None
    return create_client(settings.SUPABASE_URL, key)
