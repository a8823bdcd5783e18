"""
Supabase Client

Builds the async Supabase clients once at startup. The regular client uses
the anon key (row level security applies); the admin client uses the service
role key for imports and cleanup and falls back to the regular client.
Sign-in runs on its own client so a user session never becomes the
session of the shared data client.
"""

import logging
from dataclasses import dataclass

from supabase import AsyncClient, acreate_client

from app.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class BackendClients:
    """Clients injected into services for the lifetime of the process"""
    client: AsyncClient
    admin: AsyncClient
    auth: AsyncClient


async def create_backend_clients(settings: Settings) -> BackendClients:
    """Create the regular, admin and auth Supabase clients"""
    client = await acreate_client(settings.supabase_url, settings.supabase_key)
    auth = await acreate_client(settings.supabase_url, settings.supabase_key)

    if settings.supabase_service_key:
        admin = await acreate_client(settings.supabase_url, settings.supabase_service_key)
        logger.info("[Supabase] Admin client created with service role key")
    else:
        admin = client
        logger.info("[Supabase] No service role key, admin operations use the regular client")

    return BackendClients(client=client, admin=admin, auth=auth)
