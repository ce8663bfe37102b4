"""Redis-backed persistent store with connection pooling."""
import logging

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from cardsync.core.config import Settings
from cardsync.core.store import KeyValueStore, MemoryStore, StoreError

logger = logging.getLogger(__name__)

# Keys fetched per SCAN round trip when listing the namespace
SCAN_BATCH_SIZE = 500


class RedisStore:
    """
    Async Redis store implementing KeyValueStore.

    Every key is stored under `namespace` so several clients (or test runs)
    can share one Redis database. `list_keys` only returns keys inside the
    namespace, with the prefix stripped.
    """

    def __init__(
        self,
        url: str,
        namespace: str = "cardsync:",
        pool_size: int = 10,
    ) -> None:
        self._url = url
        self._namespace = namespace
        self._pool_size = pool_size
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Initialize connection pool and verify the server answers."""
        try:
            self._pool = ConnectionPool.from_url(self._url, max_connections=self._pool_size)
            self._client = Redis(connection_pool=self._pool)
            await self._client.ping()
            logger.info("Redis store connected namespace=%s", self._namespace)
        except RedisError as e:
            logger.warning("Redis connection failed: %s", e)
            self._client = None
            self._pool = None

    async def close(self) -> None:
        """Close connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._pool = None
            logger.info("Redis store connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if client is connected."""
        return self._client is not None

    @property
    def namespace(self) -> str:
        """Prefix applied to every stored key."""
        return self._namespace

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        if not self._client:
            return False
        try:
            return await self._client.ping()
        except RedisError:
            return False

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    def _require_client(self, operation: str) -> Redis:
        if not self._client:
            raise StoreError(operation, "Redis store is not connected")
        return self._client

    async def get(self, key: str) -> str | None:
        """Get value, None if the key is absent."""
        client = self._require_client("get")
        try:
            value = await client.get(self._key(key))
        except RedisError as e:
            logger.warning("Redis GET failed: %s", e)
            raise StoreError("get", str(e)) from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        """Set value without expiry."""
        client = self._require_client("set")
        try:
            await client.set(self._key(key), value)
        except RedisError as e:
            logger.warning("Redis SET failed: %s", e)
            raise StoreError("set", str(e)) from e

    async def delete(self, key: str) -> None:
        """Delete a single key."""
        await self.delete_many([key])

    async def delete_many(self, keys: list[str]) -> None:
        """Delete keys with a single DEL command."""
        if not keys:
            return
        client = self._require_client("delete")
        try:
            await client.delete(*(self._key(key) for key in keys))
        except RedisError as e:
            logger.warning("Redis DELETE failed: %s", e)
            raise StoreError("delete", str(e)) from e

    async def list_keys(self) -> list[str]:
        """List every key inside the namespace, prefix stripped."""
        client = self._require_client("list_keys")
        prefix_len = len(self._namespace)
        keys = []
        try:
            async for raw in client.scan_iter(match=f"{self._namespace}*", count=SCAN_BATCH_SIZE):
                key = raw.decode("utf-8") if isinstance(raw, bytes) else raw
                keys.append(key[prefix_len:])
        except RedisError as e:
            logger.warning("Redis SCAN failed: %s", e)
            raise StoreError("list_keys", str(e)) from e
        return keys


async def create_store(settings: Settings) -> KeyValueStore:
    """
    Build the store described by settings.

    Returns a connected RedisStore when Redis is enabled, otherwise an
    in-process MemoryStore. A Redis store that fails to connect is still
    returned; its operations raise StoreError, which callers treat as
    non-fatal.
    """
    if not settings.redis_enabled:
        logger.info("Redis disabled by configuration, using in-process store")
        return MemoryStore()
    store = RedisStore(
        settings.redis_url,
        namespace=settings.store_namespace,
        pool_size=settings.redis_pool_size,
    )
    await store.connect()
    return store
