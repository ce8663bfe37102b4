"""Pydantic schemas for business cards."""
import json
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter


class Card(BaseModel):
    """
    Snapshot of a business card as returned by the remote card service.

    Only `id` and `is_primary` are interpreted here. Every other field
    (name, title, company, email, ...) is kept verbatim so a cached card
    round-trips exactly.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    is_primary: bool = False

    @property
    def headline(self) -> str:
        """Title line shown under the card name, e.g. 'CTO at Acme'."""
        extra = self.model_extra or {}
        title = extra.get("title")
        company = extra.get("company")
        if title and company:
            return f"{title} at {company}"
        return title or company or "No title"


_card_list_adapter = TypeAdapter(list[Card])


def parse_cards(raw: list[dict[str, Any]]) -> list[Card]:
    """Validate a list of card dicts into Card models."""
    return _card_list_adapter.validate_python(raw)


def encode_cards(cards: list[Card]) -> str:
    """
    Serialize cards for the card cache.

    Output is deterministic for equal input, so rewriting an unchanged list
    leaves the stored value byte-identical.
    """
    return json.dumps(
        [card.model_dump(mode="json") for card in cards],
        ensure_ascii=False,
        separators=(",", ":"),
    )


def decode_cards(data: str | bytes) -> list[Card]:
    """
    Deserialize a cached card list.

    Raises:
        pydantic.ValidationError: If the payload is not a JSON list of cards.
    """
    return _card_list_adapter.validate_json(data)
