"""
API error parsing for the remote card service.

Failures reach the client in three shapes: HTTP status errors, transport
errors (no response at all), and `{"error": "..."}` envelopes returned with a
success status. All three are reduced to a ParsedApiError with a semantic
category so callers can tell authentication problems apart from transient
ones.
"""

from dataclasses import dataclass
from typing import Any, Literal

import httpx

ErrorCategory = Literal[
    "auth",        # 401 or auth-related error text - session invalid or expiring
    "forbidden",   # 403 - Access denied
    "not_found",   # 404 - Card not found
    "validation",  # 400/422 - Validation error
    "conflict",    # 409 - Conflicting update
    "network",     # No response: timeout, DNS, connection refused
    "internal",    # 5xx or unexpected errors
]

# Error text fragments the backend uses for expired or invalid sessions
AUTH_ERROR_MARKERS = ("auth", "unauthorized", "jwt")

AUTH_CATEGORIES: frozenset[ErrorCategory] = frozenset({"auth", "forbidden"})


@dataclass
class ParsedApiError:
    """Parsed API error with semantic category and message."""

    category: ErrorCategory
    message: str

    @property
    def is_auth_error(self) -> bool:
        """Check if the error belongs to the auth layer."""
        return self.category in AUTH_CATEGORIES


def is_auth_message(message: str) -> bool:
    """Check if error text describes an authentication failure."""
    lowered = message.lower()
    return any(marker in lowered for marker in AUTH_ERROR_MARKERS)


def parse_error_message(message: str) -> ParsedApiError:
    """Parse the text of an `{"error": ...}` envelope."""
    if is_auth_message(message):
        return ParsedApiError("auth", message)
    return ParsedApiError("internal", message)


def parse_transport_error(e: httpx.TransportError) -> ParsedApiError:
    """Parse a transport failure where no response was received."""
    if isinstance(e, httpx.TimeoutException):
        return ParsedApiError("network", "network timeout")
    return ParsedApiError("network", f"network error: {e}")


def parse_http_error(
    e: httpx.HTTPStatusError,
    entity_name: str = "",
) -> ParsedApiError:
    """
    Parse HTTP error into semantic categories.

    Args:
        e: The HTTP status error from httpx
        entity_name: Card ID for error messages

    Returns:
        ParsedApiError with category and message
    """
    status = e.response.status_code

    if status == 401:
        return ParsedApiError("auth", "Invalid or expired token")

    if status == 403:
        return ParsedApiError("forbidden", "Access denied")

    if status == 404:
        msg = f"Card '{entity_name}' not found" if entity_name else "Card not found"
        return ParsedApiError("not_found", msg)

    if status == 409:
        return ParsedApiError("conflict", _extract_message(e, "Card was modified elsewhere"))

    if status in (400, 422):
        return ParsedApiError("validation", _extract_message(e, "Validation error"))

    # Backends occasionally report expired sessions with a generic status
    message = _extract_message(e, "")
    if message and is_auth_message(message):
        return ParsedApiError("auth", message)

    return ParsedApiError("internal", f"API error {status}")


def _safe_get_body(e: httpx.HTTPStatusError) -> dict[str, Any]:
    """Safely extract a dict body from an error response."""
    try:
        body = e.response.json()
    except ValueError:
        return {}
    # Non-dict JSON body (list, string, etc.) - treat as empty
    return body if isinstance(body, dict) else {}


def _extract_message(e: httpx.HTTPStatusError, default: str) -> str:
    """Extract a human-readable message from an error response body."""
    body = _safe_get_body(e)
    for field in ("error", "message", "detail"):
        value = body.get(field)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict) and isinstance(value.get("message"), str):
            return value["message"]
    return default
