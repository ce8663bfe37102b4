"""Tests for orphaned per-user record cleanup."""
from unittest.mock import AsyncMock, patch

import pytest

from cardsync.core.keys import cards_cache_key, onboarding_key
from cardsync.core.store import MemoryStore
from cardsync.tasks.orphan_records import (
    cleanup_orphaned_records,
    find_orphaned_keys,
    main,
    run_orphan_cleanup,
)


@pytest.fixture
def populated_store() -> MemoryStore:
    """Store holding records of a kept user, two gone users and an app key."""
    return MemoryStore({
        onboarding_key("kept"): "{}",
        cards_cache_key("kept"): "[]",
        onboarding_key("gone-1"): "{}",
        onboarding_key("gone-2"): "{}",
        cards_cache_key("gone-1"): "[]",
        "theme": "dark",
    })


class TestFindOrphanedKeys:
    """Tests for find_orphaned_keys."""

    async def test__find_orphaned_keys__groups_by_namespace(
        self,
        populated_store: MemoryStore,
    ) -> None:
        orphans = await find_orphaned_keys(populated_store, keep={"kept"})

        assert sorted(orphans["onboarding"]) == [
            onboarding_key("gone-1"),
            onboarding_key("gone-2"),
        ]
        assert orphans["cards_cache"] == [cards_cache_key("gone-1")]

    async def test__find_orphaned_keys__empty_keep_means_everything(
        self,
        populated_store: MemoryStore,
    ) -> None:
        orphans = await find_orphaned_keys(populated_store, keep=set())

        assert len(orphans["onboarding"]) == 3
        assert len(orphans["cards_cache"]) == 2


class TestCleanupOrphanedRecords:
    """Tests for cleanup_orphaned_records."""

    async def test__cleanup__report_only_by_default(
        self,
        populated_store: MemoryStore,
    ) -> None:
        """Without delete nothing is removed."""
        stats = await cleanup_orphaned_records(populated_store, keep={"kept"})

        assert stats.to_dict() == {
            "orphaned_onboarding": 2,
            "orphaned_cards_cache": 1,
            "total_deleted": 0,
        }
        assert len(await populated_store.list_keys()) == 6

    async def test__cleanup__delete_removes_orphans_only(
        self,
        populated_store: MemoryStore,
    ) -> None:
        stats = await cleanup_orphaned_records(populated_store, keep={"kept"}, delete=True)

        assert stats.total_deleted == 3
        assert sorted(await populated_store.list_keys()) == sorted([
            onboarding_key("kept"),
            cards_cache_key("kept"),
            "theme",
        ])

    async def test__cleanup__delete_uses_one_bulk_call(
        self,
        populated_store: MemoryStore,
    ) -> None:
        with patch.object(
            populated_store, "delete_many", new_callable=AsyncMock,
        ) as mock_delete_many:
            await cleanup_orphaned_records(populated_store, keep={"kept"}, delete=True)

        mock_delete_many.assert_awaited_once()

    async def test__cleanup__nothing_to_delete(self) -> None:
        store = MemoryStore({onboarding_key("kept"): "{}"})

        with patch.object(store, "delete_many", new_callable=AsyncMock) as mock_delete_many:
            stats = await cleanup_orphaned_records(store, keep={"kept"}, delete=True)

        mock_delete_many.assert_not_called()
        assert stats.total_deleted == 0


class TestRunOrphanCleanup:
    """Tests for the run_orphan_cleanup entry point."""

    async def test__run_orphan_cleanup__uses_given_store(
        self,
        populated_store: MemoryStore,
    ) -> None:
        stats = await run_orphan_cleanup({"kept"}, store=populated_store, delete=True)

        assert stats.keys
        assert await populated_store.get(onboarding_key("gone-1")) is None

    async def test__run_orphan_cleanup__creates_store_from_settings(self) -> None:
        store = MemoryStore({onboarding_key("gone"): "{}"})

        with patch(
            "cardsync.tasks.orphan_records.create_store",
            new_callable=AsyncMock,
            return_value=store,
        ) as mock_create:
            stats = await run_orphan_cleanup(set())

        mock_create.assert_awaited_once()
        assert stats.orphaned_onboarding == 1
        assert stats.total_deleted == 0


class TestMain:
    """Tests for the command-line entry point."""

    def test__main__requires_keep(self) -> None:
        """Without --keep every user's records would be orphans."""
        with (
            patch("sys.argv", ["cardsync-orphans", "--delete"]),
            patch(
                "cardsync.tasks.orphan_records.run_orphan_cleanup",
                new_callable=AsyncMock,
            ) as mock_run,
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 2
        mock_run.assert_not_called()

    def test__main__passes_keep_and_delete(self) -> None:
        with (
            patch("sys.argv", ["cardsync-orphans", "--keep", "a", "--keep", "b", "--delete"]),
            patch(
                "cardsync.tasks.orphan_records.run_orphan_cleanup",
                new_callable=AsyncMock,
            ) as mock_run,
        ):
            main()

        mock_run.assert_awaited_once_with({"a", "b"}, delete=True)
