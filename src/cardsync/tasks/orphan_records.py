"""
Orphaned per-user record detection and cleanup.

Finds onboarding completion records and card caches whose owner is not one
of the accounts still signed in on this store. Such records are left behind
when an account is deleted; the first-time check only removes onboarding
records, and only when a new user signs in, so card caches in particular
accumulate.

Usage:
    python -m cardsync.tasks.orphan_records --keep USER_ID           # Report only (default)
    python -m cardsync.tasks.orphan_records --keep USER_ID --delete  # Report and delete orphans
"""
import argparse
import asyncio
import logging
from dataclasses import dataclass, field

from cardsync.core.config import get_settings
from cardsync.core.keys import CARDS_CACHE_PREFIX, ONBOARDING_COMPLETED_PREFIX, foreign_keys
from cardsync.core.redis import RedisStore, create_store
from cardsync.core.store import KeyValueStore

logger = logging.getLogger(__name__)

NAMESPACES = {
    "onboarding": ONBOARDING_COMPLETED_PREFIX,
    "cards_cache": CARDS_CACHE_PREFIX,
}


@dataclass
class OrphanStats:
    """Statistics from an orphan record cleanup run."""

    orphaned_onboarding: int = 0
    orphaned_cards_cache: int = 0
    total_deleted: int = 0
    keys: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, int]:
        """Convert to simple dict for logging/return."""
        return {
            "orphaned_onboarding": self.orphaned_onboarding,
            "orphaned_cards_cache": self.orphaned_cards_cache,
            "total_deleted": self.total_deleted,
        }


async def find_orphaned_keys(store: KeyValueStore, keep: set[str]) -> dict[str, list[str]]:
    """
    Find per-user keys whose owner is not in `keep`.

    Returns:
        Orphaned keys grouped by namespace name ("onboarding", "cards_cache").
    """
    all_keys = await store.list_keys()
    return {
        name: foreign_keys(all_keys, prefix, keep)
        for name, prefix in NAMESPACES.items()
    }


async def cleanup_orphaned_records(
    store: KeyValueStore,
    keep: set[str],
    delete: bool = False,
) -> OrphanStats:
    """
    Find and optionally delete orphaned per-user records.

    Args:
        store: Store to scan.
        keep: User ids whose records must be kept.
        delete: If True, delete orphaned records. If False (default),
                only report them.

    Returns:
        OrphanStats with breakdown of orphans found/deleted.
    """
    stats = OrphanStats()
    orphans = await find_orphaned_keys(store, keep)

    stats.orphaned_onboarding = len(orphans["onboarding"])
    stats.orphaned_cards_cache = len(orphans["cards_cache"])
    stats.keys = orphans["onboarding"] + orphans["cards_cache"]

    for name, keys in orphans.items():
        if keys:
            logger.info(
                "%s %d orphaned records namespace=%s",
                "Deleting" if delete else "Found",
                len(keys),
                name,
            )

    if delete and stats.keys:
        await store.delete_many(stats.keys)
        stats.total_deleted = len(stats.keys)

    return stats


async def run_orphan_cleanup(
    keep: set[str],
    store: KeyValueStore | None = None,
    delete: bool = False,
) -> OrphanStats:
    """
    Entry point for orphan record cleanup.

    Args:
        keep: User ids whose records must be kept.
        store: Store to scan. If None, one is created from settings.
        delete: If True, delete orphaned records.

    Returns:
        OrphanStats with results.
    """
    logger.info("Starting orphan record cleanup (delete=%s, keep=%s)", delete, sorted(keep))

    owned_store = store is None
    if store is None:
        store = await create_store(get_settings())
    try:
        stats = await cleanup_orphaned_records(store, keep, delete=delete)
    finally:
        if owned_store and isinstance(store, RedisStore):
            await store.close()

    logger.info("Orphan record cleanup complete: %s", stats.to_dict())
    return stats


def main() -> None:
    """CLI entry point with --keep and --delete flags."""
    parser = argparse.ArgumentParser(
        description="Detect and optionally remove orphaned onboarding records and card caches.",
    )
    parser.add_argument(
        "--keep",
        action="append",
        required=True,
        metavar="USER_ID",
        help="User id whose records are kept (repeatable)",
    )
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete orphaned records (default: report only)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_orphan_cleanup(set(args.keep), delete=args.delete))


if __name__ == "__main__":
    main()
