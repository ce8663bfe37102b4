"""Tests for store key naming."""
import pytest

from cardsync.core.keys import (
    CARDS_CACHE_PREFIX,
    ONBOARDING_COMPLETED_PREFIX,
    cards_cache_key,
    foreign_keys,
    key_owner,
    onboarding_key,
)


class TestKeyConstruction:
    """Tests for per-user key builders."""

    def test__cards_cache_key__format(self) -> None:
        assert cards_cache_key("42") == "cards_cache_42"

    def test__onboarding_key__format(self) -> None:
        assert onboarding_key("42") == "onboarding_completed_42"

    def test__keys__distinct_per_user(self) -> None:
        assert cards_cache_key("a") != cards_cache_key("b")

    @pytest.mark.parametrize("builder", [cards_cache_key, onboarding_key])
    def test__keys__require_user_id(self, builder) -> None:  # noqa: ANN001
        with pytest.raises(ValueError, match="user_id is required"):
            builder("")


class TestKeyOwnership:
    """Tests for namespace ownership helpers."""

    def test__key_owner__inside_namespace(self) -> None:
        assert key_owner("onboarding_completed_u1", ONBOARDING_COMPLETED_PREFIX) == "u1"

    def test__key_owner__outside_namespace(self) -> None:
        assert key_owner("cards_cache_u1", ONBOARDING_COMPLETED_PREFIX) is None

    def test__key_owner__builders_round_trip(self) -> None:
        assert key_owner(cards_cache_key("u-7"), CARDS_CACHE_PREFIX) == "u-7"

    def test__foreign_keys__selects_other_owners_only(self) -> None:
        keys = [
            "onboarding_completed_a",
            "onboarding_completed_c",
            "cards_cache_a",
            "onboarding_completed_b",
            "settings",
        ]

        selected = foreign_keys(keys, ONBOARDING_COMPLETED_PREFIX, keep={"c"})

        assert selected == ["onboarding_completed_a", "onboarding_completed_b"]

    def test__foreign_keys__bare_prefix_is_foreign(self) -> None:
        """A key with an empty owner never belongs to a kept user."""
        assert foreign_keys(["onboarding_completed_"], ONBOARDING_COMPLETED_PREFIX, {"c"}) == [
            "onboarding_completed_",
        ]

    def test__foreign_keys__similar_user_ids_not_confused(self) -> None:
        """Owner match is exact, not a prefix match."""
        keys = ["onboarding_completed_user1", "onboarding_completed_user10"]

        selected = foreign_keys(keys, ONBOARDING_COMPLETED_PREFIX, keep={"user1"})

        assert selected == ["onboarding_completed_user10"]
