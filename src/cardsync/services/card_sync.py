"""
Stale-while-revalidate synchronization of the signed-in user's cards.

The synchronizer publishes the cached card list as soon as it is read, then
asks the remote card service for the authoritative list and replaces both the
published state and the cache with it. Failures never drop data that is
already on screen.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from cardsync.core.auth_context import AuthContext
from cardsync.core.keys import cards_cache_key
from cardsync.core.store import KeyValueStore, StoreError
from cardsync.schemas.card import Card, decode_cards, encode_cards
from cardsync.services.card_service import CardService
from cardsync.services.exceptions import CardServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """Recoverable, user-visible message raised by the synchronizer."""

    title: str
    message: str


CONNECTION_NOTICE = Notice(
    title="Connection Issue",
    message="Unable to load latest cards. Using cached data.",
)

CardsListener = Callable[[list[Card]], None]
NoticeListener = Callable[[Notice], None]


def _unsubscriber(listeners: list, listener: Callable) -> Callable[[], None]:
    """Build an idempotent unsubscribe callable."""
    def unsubscribe() -> None:
        if listener in listeners:
            listeners.remove(listener)
    return unsubscribe


class CardCacheSynchronizer:
    """
    Owns the published card list of the current user and its cache entry.

    Overlapping loads are independent fetches. Each fetch takes a ticket when
    it starts; a response is applied only if no later-started fetch has been
    applied already, and a cache read is not published once any fetch
    response landed while it was reading.
    """

    def __init__(
        self,
        store: KeyValueStore,
        service: CardService,
        auth: AuthContext,
    ) -> None:
        self._store = store
        self._service = service
        self._auth = auth
        self._cards: list[Card] = []
        self._listeners: list[CardsListener] = []
        self._notice_listeners: list[NoticeListener] = []
        self._issued = 0
        self._applied = 0
        self.loading = True
        self.refreshing = False

    @property
    def cards(self) -> list[Card]:
        """Currently published cards (a copy)."""
        return list(self._cards)

    def subscribe(self, listener: CardsListener) -> Callable[[], None]:
        """Register a listener for published card lists; returns an unsubscribe callable."""
        self._listeners.append(listener)
        return _unsubscriber(self._listeners, listener)

    def on_notice(self, listener: NoticeListener) -> Callable[[], None]:
        """Register a listener for notices; returns an unsubscribe callable."""
        self._notice_listeners.append(listener)
        return _unsubscriber(self._notice_listeners, listener)

    def reset(self) -> None:
        """Forget published state, e.g. when the signed-in user changes."""
        self._applied = self._issued
        self._cards = []
        self.loading = True
        self.refreshing = False
        for listener in list(self._listeners):
            listener([])

    def _publish(self, cards: list[Card]) -> None:
        self._cards = list(cards)
        for listener in list(self._listeners):
            listener(self.cards)

    def _notify(self, notice: Notice) -> None:
        logger.info("card_sync_notice title=%s", notice.title)
        for listener in list(self._notice_listeners):
            listener(notice)

    async def load_cards(self, force_refresh: bool = False) -> None:
        """
        Publish cached cards, then revalidate against the card service.

        No-op while auth is resolving or when nobody is signed in. `loading`
        is a single flag, not a counter: when loads overlap, the first one to
        finish clears it while the others are still in flight.

        Args:
            force_refresh: Skip the cache read and go straight to the service.
        """
        if not self._auth.is_ready:
            self.loading = False
            return

        user_id = self._auth.user_id
        if force_refresh:
            self.loading = True
        try:
            if not force_refresh:
                await self._load_from_cache(user_id)
            await self._fetch_fresh(user_id)
        finally:
            self.loading = False

    async def refresh(self) -> None:
        """Pull-to-refresh: forced load with the refreshing flag raised."""
        self.refreshing = True
        try:
            await self.load_cards(force_refresh=True)
        finally:
            self.refreshing = False

    async def revalidate(self) -> None:
        """Quiet revalidation: fetch only, no cache read, no indicators."""
        if not self._auth.is_ready:
            return
        logger.debug("card_revalidate user_id=%s", self._auth.user_id)
        await self._fetch_fresh(self._auth.user_id)

    async def _load_from_cache(self, user_id: str) -> None:
        """Publish the cached card list of a user, if any."""
        key = cards_cache_key(user_id)
        applied_before = self._applied
        try:
            data = await self._store.get(key)
        except StoreError as e:
            logger.warning("card_cache_read_failed user_id=%s: %s", user_id, e)
            return
        if data is None:
            logger.debug("card_cache_miss user_id=%s", user_id)
            return
        try:
            cached = decode_cards(data)
        except ValidationError as e:
            logger.warning("card_cache_corrupt user_id=%s: %s", user_id, e)
            return

        if self._applied != applied_before or self._auth.user_id != user_id:
            logger.debug("card_cache_superseded user_id=%s", user_id)
            return
        logger.debug("card_cache_hit user_id=%s count=%d", user_id, len(cached))
        self._publish(cached)

    async def _save_to_cache(self, user_id: str, cards: list[Card]) -> None:
        """Replace the cached card list of a user."""
        try:
            await self._store.set(cards_cache_key(user_id), encode_cards(cards))
        except StoreError as e:
            logger.warning("card_cache_write_failed user_id=%s: %s", user_id, e)
            return
        logger.debug("card_cache_set user_id=%s count=%d", user_id, len(cards))

    async def _fetch_fresh(self, user_id: str) -> list[Card] | None:
        """
        Fetch the authoritative list and apply it.

        Returns:
            The applied card list, or None if the fetch failed or was superseded.
        """
        self._issued += 1
        ticket = self._issued
        try:
            fresh = await self._service.get_user_cards()
        except CardServiceError as e:
            if self._auth.user_id != user_id or ticket < self._applied:
                logger.debug(
                    "card_fetch_failure_discarded user_id=%s ticket=%d: %s",
                    user_id,
                    ticket,
                    e.message,
                )
                return None
            if e.is_auth_error:
                # Session is about to be invalidated by the auth layer
                logger.info("card_fetch_auth_error user_id=%s: %s", user_id, e.message)
                return None
            logger.warning(
                "card_fetch_failed user_id=%s category=%s: %s",
                user_id,
                e.category,
                e.message,
            )
            if not self._cards:
                self._notify(CONNECTION_NOTICE)
            return None

        if self._auth.user_id != user_id:
            logger.debug("card_fetch_discarded user_id=%s reason=user_changed", user_id)
            return None
        if ticket < self._applied:
            logger.debug("card_fetch_discarded user_id=%s reason=stale ticket=%d", user_id, ticket)
            return None

        self._applied = ticket
        logger.debug("card_fetch_ok user_id=%s count=%d", user_id, len(fresh))
        self._publish(fresh)
        await self._save_to_cache(user_id, fresh)
        return fresh

    async def evict_cache(self, user_id: str) -> bool:
        """
        Delete the card cache entry of a user.

        Returns:
            True if the delete reached the store, False on store failure.
        """
        try:
            await self._store.delete(cards_cache_key(user_id))
        except StoreError as e:
            logger.warning("card_cache_evict_failed user_id=%s: %s", user_id, e)
            return False
        logger.info("card_cache_evicted user_id=%s", user_id)
        return True

    def _require_session(self) -> None:
        if not self._auth.is_ready:
            raise CardServiceError("auth", "Not signed in")

    async def create_card(self, fields: dict[str, Any]) -> Card:
        """Create a card, then reload the list from the service."""
        self._require_session()
        card = await self._service.create_card(fields)
        await self.load_cards(force_refresh=True)
        return card

    async def update_card(self, card_id: str, fields: dict[str, Any]) -> Card:
        """Update a card, then reload the list from the service."""
        self._require_session()
        card = await self._service.update_card(card_id, fields)
        await self.load_cards(force_refresh=True)
        return card

    async def delete_card(self, card_id: str) -> None:
        """Delete a card, then reload the list from the service."""
        self._require_session()
        await self._service.delete_card(card_id)
        await self.load_cards(force_refresh=True)

    async def set_primary_card(self, card_id: str) -> None:
        """Make a card primary, then reload the list from the service."""
        self._require_session()
        await self._service.set_primary_card(card_id)
        await self.load_cards(force_refresh=True)
