"""Pytest fixtures for testing."""
import asyncio
from typing import Any

import pytest

from cardsync.core.auth_context import AuthContext
from cardsync.core.store import MemoryStore
from cardsync.schemas.card import Card, parse_cards
from cardsync.services.card_sync import CardCacheSynchronizer, Notice
from cardsync.services.exceptions import CardServiceError
from cardsync.services.onboarding import FirstRunReconciler


class FakeCardService:
    """
    In-memory CardService.

    Set `cards` for successful fetches or `error` to make every call fail.
    Setting `gate` holds get_user_cards until the event is set.
    """

    def __init__(self, cards: list[Card] | None = None) -> None:
        self.cards: list[Card] = list(cards or [])
        self.error: CardServiceError | None = None
        self.gate: asyncio.Event | None = None
        self.fetch_count = 0
        self.mutations: list[tuple[str, Any]] = []

    async def get_user_cards(self) -> list[Card]:
        self.fetch_count += 1
        snapshot = list(self.cards)
        error = self.error
        gate = self.gate
        if gate is not None:
            await gate.wait()
        if error is not None:
            raise error
        return snapshot

    async def create_card(self, fields: dict[str, Any]) -> Card:
        if self.error is not None:
            raise self.error
        card = Card.model_validate({"id": f"card-{len(self.cards) + 1}", **fields})
        self.cards.append(card)
        self.mutations.append(("create", fields))
        return card

    async def update_card(self, card_id: str, fields: dict[str, Any]) -> Card:
        if self.error is not None:
            raise self.error
        self.mutations.append(("update", card_id))
        for index, card in enumerate(self.cards):
            if card.id == card_id:
                self.cards[index] = Card.model_validate({**card.model_dump(), **fields})
                return self.cards[index]
        raise CardServiceError("not_found", f"Card '{card_id}' not found")

    async def delete_card(self, card_id: str) -> None:
        if self.error is not None:
            raise self.error
        self.mutations.append(("delete", card_id))
        self.cards = [card for card in self.cards if card.id != card_id]

    async def set_primary_card(self, card_id: str) -> None:
        if self.error is not None:
            raise self.error
        self.mutations.append(("set_primary", card_id))
        self.cards = [
            card.model_copy(update={"is_primary": card.id == card_id}) for card in self.cards
        ]


def make_cards(count: int, prefix: str = "card") -> list[Card]:
    """Build `count` cards, the first one primary."""
    return parse_cards([
        {
            "id": f"{prefix}-{i}",
            "is_primary": i == 1,
            "name": f"Card {i}",
            "title": "Engineer",
            "company": "Acme",
            "email": f"{prefix}{i}@example.com",
        }
        for i in range(1, count + 1)
    ])


@pytest.fixture
def memory_store() -> MemoryStore:
    """Empty in-process store."""
    return MemoryStore()


@pytest.fixture
def auth() -> AuthContext:
    """Settled session for user X."""
    return AuthContext(user_id="user-x", access_token="token-x")


@pytest.fixture
def card_service() -> FakeCardService:
    """Card service returning three cards."""
    return FakeCardService(make_cards(3))


@pytest.fixture
def synchronizer(
    memory_store: MemoryStore,
    card_service: FakeCardService,
    auth: AuthContext,
) -> CardCacheSynchronizer:
    """Synchronizer wired to the memory store and the fake service."""
    return CardCacheSynchronizer(memory_store, card_service, auth)


@pytest.fixture
def notices(synchronizer: CardCacheSynchronizer) -> list[Notice]:
    """Notices raised by the synchronizer during the test."""
    received: list[Notice] = []
    synchronizer.on_notice(received.append)
    return received


@pytest.fixture
def reconciler(memory_store: MemoryStore) -> FirstRunReconciler:
    """Reconciler over the memory store."""
    return FirstRunReconciler(memory_store)
