"""Client entry point: builds the store, the card service and the session services."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from cardsync.core.auth_context import AuthContext
from cardsync.core.config import Settings, get_settings
from cardsync.core.redis import RedisStore, create_store
from cardsync.core.store import KeyValueStore
from cardsync.services.card_service import HttpCardService, create_http_client
from cardsync.services.card_sync import CardCacheSynchronizer
from cardsync.services.onboarding import FirstRunReconciler
from cardsync.services.session import SessionCoordinator

logger = logging.getLogger(__name__)


@dataclass
class CardSyncClient:
    """Everything a running client holds on to."""

    settings: Settings
    store: KeyValueStore
    http_client: httpx.AsyncClient
    synchronizer: CardCacheSynchronizer
    reconciler: FirstRunReconciler
    session: SessionCoordinator


def build_client(
    settings: Settings,
    store: KeyValueStore,
    http_client: httpx.AsyncClient,
) -> CardSyncClient:
    """Assemble the services around one shared AuthContext."""
    auth = AuthContext()
    synchronizer = CardCacheSynchronizer(store, HttpCardService(http_client, auth), auth)
    reconciler = FirstRunReconciler(store, flow_version=settings.onboarding_flow_version)
    session = SessionCoordinator(
        auth,
        synchronizer,
        reconciler,
        evict_cache_on_sign_out=settings.evict_cache_on_sign_out,
    )
    return CardSyncClient(
        settings=settings,
        store=store,
        http_client=http_client,
        synchronizer=synchronizer,
        reconciler=reconciler,
        session=session,
    )


@asynccontextmanager
async def lifespan(settings: Settings | None = None) -> AsyncGenerator[CardSyncClient]:
    """Manage client lifespan - startup and shutdown."""
    app_settings = settings or get_settings()

    # Startup: connect the persistent store and open the HTTP client
    store = await create_store(app_settings)
    http_client = create_http_client(app_settings)
    logger.info(
        "cardsync_started environment=%s api_url=%s",
        app_settings.environment,
        app_settings.api_url,
    )

    try:
        yield build_client(app_settings, store, http_client)
    finally:
        # Shutdown: close HTTP client and store connections
        await http_client.aclose()
        if isinstance(store, RedisStore):
            await store.close()
        logger.info("cardsync_stopped")
