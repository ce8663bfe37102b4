"""Authenticated-session context shared by the synchronizer and the reconciler."""
from dataclasses import dataclass


@dataclass
class AuthContext:
    """
    Current authentication state, owned by the auth layer.

    Passed explicitly to every component that needs the current user, instead
    of being read from ambient global state. The auth layer (or the session
    coordinator on its behalf) mutates it in place; components read it at
    call time.
    """

    user_id: str | None = None
    access_token: str | None = None
    loading: bool = False  # True while the auth layer is still resolving the session

    @property
    def is_authenticated(self) -> bool:
        """Check if a user is signed in."""
        return bool(self.user_id)

    @property
    def is_ready(self) -> bool:
        """Check if a signed-in session has finished resolving."""
        return self.is_authenticated and not self.loading
