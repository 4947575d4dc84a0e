"""
Process-wide service wiring.

Everything that talks to the outside world is built once at startup and
handed to request handlers through app.state; steps receive the clients they
use as arguments instead of reaching for module globals.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from openai import AsyncOpenAI

from config import Settings, create_postgres_pool
from repositories import MemorialRepository, ProfileRepository
from services.enrichment_service import EnrichmentService
from services.memorial_extractor import MemorialExtractor
from services.search_client import SearchClient
from services.storage_client import StorageClient

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Clients and repositories shared by all requests"""
    settings: Settings
    http_client: httpx.AsyncClient
    storage: StorageClient
    memorials: Any  # MemorialRepository
    profiles: Any   # ProfileRepository
    search_client: SearchClient
    extractor: MemorialExtractor
    db_pool: Optional[Any] = None

    def enrichment(self) -> EnrichmentService:
        return EnrichmentService(
            repository=self.memorials,
            storage=self.storage,
            search_client=self.search_client,
            extractor=self.extractor,
            signed_url_ttl=self.settings.signed_url_ttl_detail_seconds,
        )

    async def close(self):
        await self.http_client.aclose()
        if self.db_pool is not None:
            await self.db_pool.close()


async def create_app_services(settings: Settings) -> AppServices:
    """Connect to Postgres and build all clients"""
    http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    db_pool = await create_postgres_pool(settings)

    storage = StorageClient(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_role_key,
        bucket=settings.storage_bucket,
        http_client=http_client,
    )

    services = AppServices(
        settings=settings,
        http_client=http_client,
        storage=storage,
        memorials=MemorialRepository(db_pool, resolve_path=storage.path_from_url),
        profiles=ProfileRepository(db_pool),
        search_client=SearchClient(settings.tavily_api_key, http_client, url=settings.tavily_url),
        extractor=MemorialExtractor(AsyncOpenAI(api_key=settings.openai_api_key), model=settings.openai_model),
        db_pool=db_pool,
    )

    logger.info(f"✅ Services ready (bucket={settings.storage_bucket}, model={settings.openai_model})")
    return services
