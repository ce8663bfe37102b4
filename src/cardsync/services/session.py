"""Wiring of auth changes and lifecycle events into the card and onboarding services."""
import logging
from enum import StrEnum

from cardsync.core.auth_context import AuthContext
from cardsync.services.card_sync import CardCacheSynchronizer
from cardsync.services.onboarding import FirstRunReconciler

logger = logging.getLogger(__name__)

CARDS_SCREEN = "cards"


class AppState(StrEnum):
    """Application lifecycle states reported by the platform."""

    ACTIVE = "active"
    BACKGROUND = "background"
    INACTIVE = "inactive"


class SessionCoordinator:
    """
    Routes platform events to the synchronizer and the reconciler.

    The coordinator owns the AuthContext instance both services read, and is
    the only writer of it.
    """

    def __init__(
        self,
        auth: AuthContext,
        synchronizer: CardCacheSynchronizer,
        reconciler: FirstRunReconciler,
        evict_cache_on_sign_out: bool = False,
    ) -> None:
        self._auth = auth
        self._sync = synchronizer
        self._reconciler = reconciler
        self._evict_cache_on_sign_out = evict_cache_on_sign_out

    @property
    def auth(self) -> AuthContext:
        """The context shared with the services."""
        return self._auth

    async def on_auth_changed(
        self,
        user_id: str | None,
        access_token: str | None = None,
        loading: bool = False,
    ) -> None:
        """
        Apply a new auth state.

        The first-time check runs once per change of user id; cards are loaded
        whenever a signed-in session has finished resolving.
        """
        previous_user = self._auth.user_id
        self._auth.user_id = user_id
        self._auth.access_token = access_token
        self._auth.loading = loading

        user_changed = user_id != previous_user
        if user_changed:
            logger.info("session_user_changed previous=%s current=%s", previous_user, user_id)
            self._sync.reset()
            if previous_user and not user_id and self._evict_cache_on_sign_out:
                await self._sync.evict_cache(previous_user)
            await self._reconciler.check_first_time(user_id)

        if self._auth.is_ready:
            await self._sync.load_cards()

    async def on_app_state_changed(self, state: AppState | str) -> None:
        """Quietly revalidate cards when the app returns to the foreground."""
        try:
            app_state = AppState(state)
        except ValueError:
            logger.debug("app_state_ignored state=%s", state)
            return
        if app_state != AppState.ACTIVE:
            return
        if not self._auth.is_ready:
            return
        logger.debug("app_became_active user_id=%s", self._auth.user_id)
        await self._sync.revalidate()

    async def on_screen_focus(self, screen: str) -> None:
        """Reload cards when the card list regains focus."""
        if screen != CARDS_SCREEN:
            return
        await self._sync.load_cards()

    async def complete_onboarding(self) -> None:
        """The user finished the onboarding flow."""
        await self._reconciler.record_completion(self._auth.user_id)

    async def skip_onboarding(self) -> None:
        """The user skipped the onboarding flow; treated the same as completion."""
        await self._reconciler.record_completion(self._auth.user_id)

    async def sign_out(self) -> None:
        """Convenience for the auth layer's sign-out transition."""
        await self.on_auth_changed(None)
