"""Remote card service contract and its HTTP implementation."""
import logging
from typing import Any, Protocol

import httpx

from cardsync.core.auth_context import AuthContext
from cardsync.core.config import Settings
from cardsync.schemas.card import Card, parse_cards
from cardsync.services.exceptions import CardServiceError
from cardsync.shared.api_errors import (
    ParsedApiError,
    parse_error_message,
    parse_http_error,
    parse_transport_error,
)

logger = logging.getLogger(__name__)

REQUEST_SOURCE = "cardsync-mobile"


class CardService(Protocol):
    """
    Authoritative source of the signed-in user's cards.

    Every method raises CardServiceError on failure.
    """

    async def get_user_cards(self) -> list[Card]: ...
    async def create_card(self, fields: dict[str, Any]) -> Card: ...
    async def update_card(self, card_id: str, fields: dict[str, Any]) -> Card: ...
    async def delete_card(self, card_id: str) -> None: ...
    async def set_primary_card(self, card_id: str) -> None: ...


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared HTTP client for the card service."""
    return httpx.AsyncClient(
        base_url=settings.api_url,
        timeout=httpx.Timeout(settings.api_timeout),
    )


def _get_headers(token: str | None) -> dict[str, str]:
    """Get common headers for API requests."""
    headers = {"X-Request-Source": REQUEST_SOURCE}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class HttpCardService:
    """
    Card service client speaking JSON over HTTP.

    Responses use an envelope: `{"data": ...}` on success, `{"error": "..."}`
    when the backend reports a failure without an error status.
    """

    def __init__(self, client: httpx.AsyncClient, auth: AuthContext) -> None:
        self._client = client
        self._auth = auth

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        card_id: str = "",
    ) -> Any:
        """Send a request and unwrap the response envelope."""
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                headers=_get_headers(self._auth.access_token),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CardServiceError.from_parsed(parse_http_error(e, entity_name=card_id)) from e
        except httpx.TransportError as e:
            raise CardServiceError.from_parsed(parse_transport_error(e)) from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            body = response.json()
        except ValueError as e:
            raise CardServiceError("internal", "Malformed response from card service") from e

        if isinstance(body, dict) and body.get("error"):
            raise CardServiceError.from_parsed(parse_error_message(str(body["error"])))
        if isinstance(body, dict):
            return body.get("data")
        return body

    async def get_user_cards(self) -> list[Card]:
        """Fetch every card of the signed-in user, in service order."""
        data = await self._request("GET", "/cards")
        if not data:
            return []
        if not isinstance(data, list):
            raise CardServiceError("internal", "Expected a list of cards")
        return _validated(parse_cards, data)

    async def create_card(self, fields: dict[str, Any]) -> Card:
        """Create a card and return it as stored by the service."""
        data = await self._request("POST", "/cards", json=fields)
        return _validated(Card.model_validate, data)

    async def update_card(self, card_id: str, fields: dict[str, Any]) -> Card:
        """Update display fields of a card."""
        data = await self._request("PATCH", f"/cards/{card_id}", json=fields, card_id=card_id)
        return _validated(Card.model_validate, data)

    async def delete_card(self, card_id: str) -> None:
        """Delete a card."""
        await self._request("DELETE", f"/cards/{card_id}", card_id=card_id)
        logger.info("card_deleted card_id=%s", card_id)

    async def set_primary_card(self, card_id: str) -> None:
        """Mark a card as the user's primary card."""
        await self._request("POST", f"/cards/{card_id}/primary", card_id=card_id)
        logger.info("card_set_primary card_id=%s", card_id)


def _validated(parse: Any, data: Any) -> Any:
    """Run a pydantic parser, reporting schema mismatches as service errors."""
    try:
        return parse(data)
    except ValueError as e:
        info = ParsedApiError("internal", f"Unexpected card payload: {e}")
        raise CardServiceError.from_parsed(info) from e
