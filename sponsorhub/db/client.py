"""Supabase client construction (PostgREST + Auth)."""

from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from sponsorhub.core.config import get_settings
from sponsorhub.core.exceptions import ConfigError


async def create_supabase(access_token: str | None = None) -> AsyncClient:
    """Build a client; with an access token, PostgREST evaluates RLS as that user."""
    settings = get_settings()
    if not settings.supabase_configured:
        raise ConfigError("Missing Supabase environment variables")
    options = AsyncClientOptions(auto_refresh_token=False, persist_session=False)
    if access_token:
        options.headers["Authorization"] = f"Bearer {access_token}"
    return await acreate_client(settings.supabase_url, settings.supabase_anon_key, options=options)
