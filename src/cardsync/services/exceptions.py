"""Exceptions raised by the card service layer."""
from cardsync.shared.api_errors import ErrorCategory, ParsedApiError


class CardServiceError(Exception):
    """
    Raised when a call to the remote card service fails.

    Carries the semantic category of the failure so the synchronizer can
    suppress authentication errors (handled by the auth layer) and fall back
    to cached data for everything else.
    """

    def __init__(self, category: ErrorCategory, message: str) -> None:
        self.category = category
        self.message = message
        super().__init__(message)

    @classmethod
    def from_parsed(cls, info: ParsedApiError) -> "CardServiceError":
        """Build from a parsed API error."""
        return cls(info.category, info.message)

    @property
    def is_auth_error(self) -> bool:
        """Check if the failure belongs to the auth layer."""
        return ParsedApiError(self.category, self.message).is_auth_error
