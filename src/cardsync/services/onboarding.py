"""
First-run detection and cleanup of orphaned onboarding records.

Whether a user has completed onboarding is decided from the local store
alone: a well-formed `onboarding_completed_<user_id>` record means the user
is returning, anything else means first-time. When a first-time user is
detected, completion records of every other account are treated as orphans
left behind by deleted accounts and removed in one bulk delete.
"""
import logging
from enum import StrEnum

from cardsync.core.keys import ONBOARDING_COMPLETED_PREFIX, foreign_keys, onboarding_key
from cardsync.core.store import KeyValueStore, StoreError
from cardsync.schemas.onboarding import OnboardingCompletionRecord, parse_completion_record

logger = logging.getLogger(__name__)

DEFAULT_FLOW_VERSION = "onboarding-flow-v1"


class OnboardingState(StrEnum):
    """Onboarding status of the current authenticated session."""

    UNKNOWN = "unknown"
    RESOLVING = "resolving"
    FIRST_TIME = "first_time"
    RETURNING = "returning"


class FirstRunReconciler:
    """
    Tracks onboarding state for one signed-in user at a time.

    State machine: UNKNOWN -> RESOLVING -> {FIRST_TIME, RETURNING}. RESOLVING
    is entered on every user change; FIRST_TIME moves to RETURNING only
    through record_completion.
    """

    def __init__(
        self,
        store: KeyValueStore,
        flow_version: str = DEFAULT_FLOW_VERSION,
    ) -> None:
        self._store = store
        self._flow_version = flow_version
        self._user_id: str | None = None
        self.state = OnboardingState.UNKNOWN

    @property
    def is_first_time(self) -> bool:
        """Check if the current user still has to see onboarding."""
        return self.state == OnboardingState.FIRST_TIME

    @property
    def is_resolving(self) -> bool:
        """Check if a first-time check is in progress."""
        return self.state == OnboardingState.RESOLVING

    async def check_first_time(self, user_id: str | None) -> bool:
        """
        Decide whether `user_id` is seeing onboarding for the first time.

        Call once per change of signed-in user. For a first-time user, every
        other account's completion record is deleted. A store that cannot be
        read resolves to "returning" so a broken store never traps the user in
        onboarding.

        Args:
            user_id: The newly signed-in user, or None when signed out.

        Returns:
            True if the user has no well-formed completion record.
        """
        self._user_id = user_id
        if not user_id:
            self.state = OnboardingState.UNKNOWN
            return False

        self.state = OnboardingState.RESOLVING
        try:
            all_keys = await self._store.list_keys()
            raw = await self._store.get(onboarding_key(user_id))
        except StoreError as e:
            logger.error("onboarding_check_failed user_id=%s: %s", user_id, e)
            return self._resolve(user_id, first_time=False)

        if raw is not None:
            record = parse_completion_record(raw)
            if record is not None:
                logger.debug(
                    "onboarding_record_found user_id=%s debug_id=%s session_id=%s",
                    user_id,
                    record.debug_id,
                    record.session_id,
                )
                return self._resolve(user_id, first_time=False)
            logger.warning("onboarding_record_malformed user_id=%s", user_id)

        await self._delete_orphans(user_id, all_keys)
        return self._resolve(user_id, first_time=True)

    def _resolve(self, user_id: str, first_time: bool) -> bool:
        # A newer user change may have started while this check was suspended
        if self._user_id == user_id:
            self.state = OnboardingState.FIRST_TIME if first_time else OnboardingState.RETURNING
        logger.info("onboarding_resolved user_id=%s first_time=%s", user_id, first_time)
        return first_time

    async def _delete_orphans(self, user_id: str, all_keys: list[str]) -> None:
        """Bulk-delete completion records that do not belong to `user_id`."""
        orphans = foreign_keys(all_keys, ONBOARDING_COMPLETED_PREFIX, keep={user_id})
        if not orphans:
            return
        try:
            await self._store.delete_many(orphans)
        except StoreError as e:
            logger.warning("onboarding_orphan_cleanup_failed count=%d: %s", len(orphans), e)
            return
        logger.info("onboarding_orphans_deleted count=%d keys=%s", len(orphans), orphans)

    async def record_completion(self, user_id: str | None) -> OnboardingCompletionRecord | None:
        """
        Persist that `user_id` finished or skipped onboarding.

        The session leaves FIRST_TIME even if the write fails; onboarding will
        then run again on the next launch.

        Returns:
            The record written, or None when nobody is signed in or the write failed.
        """
        if not user_id:
            return None

        record = OnboardingCompletionRecord.create(self._flow_version)
        if self._user_id == user_id:
            self.state = OnboardingState.RETURNING
        try:
            await self._store.set(onboarding_key(user_id), record.to_json())
        except StoreError as e:
            logger.error("onboarding_record_write_failed user_id=%s: %s", user_id, e)
            return None
        logger.info("onboarding_completed user_id=%s session_id=%s", user_id, record.session_id)
        return record
