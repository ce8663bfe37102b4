"""Public web profile links for cards."""
from urllib.parse import quote

from cardsync.core.config import Settings, get_settings


def profile_url(card_id: str, settings: Settings | None = None) -> str:
    """
    Build the public web profile URL of a card.

    Args:
        card_id: ID of the card to link to.
        settings: Settings to read the base URL from; defaults to get_settings().

    Returns:
        URL such as 'https://web-profile-url.vercel.app/profile/<card_id>'.
    """
    if not card_id:
        raise ValueError("card_id is required to build a profile URL")
    base = (settings or get_settings()).web_profile_url
    return f"{base}/{quote(str(card_id), safe='')}"
