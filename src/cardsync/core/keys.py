"""
Store key naming shared by every reader and writer of per-user state.

All per-user keys are `<prefix><user_id>`. The same prefix constants drive
both key construction and namespace scans, so the cleanup paths can never
drift from the read paths.
"""

CARDS_CACHE_PREFIX = "cards_cache_"
ONBOARDING_COMPLETED_PREFIX = "onboarding_completed_"

USER_KEY_PREFIXES = (CARDS_CACHE_PREFIX, ONBOARDING_COMPLETED_PREFIX)


def _user_key(prefix: str, user_id: str) -> str:
    if not user_id:
        raise ValueError("user_id is required to build a store key")
    return f"{prefix}{user_id}"


def cards_cache_key(user_id: str) -> str:
    """Key holding the cached card list of a user."""
    return _user_key(CARDS_CACHE_PREFIX, user_id)


def onboarding_key(user_id: str) -> str:
    """Key holding the onboarding completion record of a user."""
    return _user_key(ONBOARDING_COMPLETED_PREFIX, user_id)


def key_owner(key: str, prefix: str) -> str | None:
    """
    Get the user id a key belongs to within a namespace.

    Args:
        key: Store key to inspect.
        prefix: Namespace prefix (one of USER_KEY_PREFIXES).

    Returns:
        The user id (empty for a bare prefix), or None if the key is outside
        the namespace.
    """
    if not key.startswith(prefix):
        return None
    return key[len(prefix):]


def foreign_keys(keys: list[str], prefix: str, keep: set[str]) -> list[str]:
    """
    Select keys in a namespace whose owner is not in `keep`.

    Keys outside the namespace are never selected. Order of `keys` is kept.
    """
    selected = []
    for key in keys:
        owner = key_owner(key, prefix)
        if owner is not None and owner not in keep:
            selected.append(key)
    return selected
