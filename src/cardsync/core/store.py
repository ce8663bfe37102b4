"""Persistent key-value store contract and the in-process implementation."""
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """
    Raised when a store operation fails.

    Store failures are never fatal to callers: the synchronizer and the
    reconciler catch this, log it, and degrade (stale view or repeated
    onboarding).
    """

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"Store {operation} failed: {message}")


class KeyValueStore(Protocol):
    """
    Namespaced string-keyed text storage.

    Single-key operations are atomic; nothing is transactional across keys.
    Every method raises StoreError on failure.
    """

    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def delete_many(self, keys: list[str]) -> None: ...
    async def list_keys(self) -> list[str]: ...


class MemoryStore:
    """
    In-process store backed by a dict.

    Used when Redis is disabled by configuration and in tests. Contents do not
    survive a restart.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        """Get value, None if the key is absent."""
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        """Set value, replacing any previous one."""
        self._data[key] = value

    async def delete(self, key: str) -> None:
        """Delete a key; absent keys are ignored."""
        self._data.pop(key, None)

    async def delete_many(self, keys: list[str]) -> None:
        """Delete several keys in one call."""
        for key in keys:
            self._data.pop(key, None)
        logger.debug("memory_store_delete_many count=%d", len(keys))

    async def list_keys(self) -> list[str]:
        """List every key currently stored."""
        return list(self._data)
