"""Onboarding completion record stored per user."""
import secrets
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError


def new_session_id() -> str:
    """Generate an opaque token identifying the onboarding session."""
    return secrets.token_hex(6)


class OnboardingCompletionRecord(BaseModel):
    """
    Proof that a user finished (or skipped) the onboarding flow.

    Serialized with camelCase keys: `{"completedAt", "sessionId", "debugId"}`.
    Written once and never mutated.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    completed_at: datetime = Field(alias="completedAt")
    session_id: str = Field(alias="sessionId", min_length=1)
    debug_id: str = Field(alias="debugId")

    @classmethod
    def create(cls, flow_version: str) -> "OnboardingCompletionRecord":
        """Build a record for a flow completed now."""
        return cls(
            completed_at=datetime.now(UTC),
            session_id=new_session_id(),
            debug_id=flow_version,
        )

    def to_json(self) -> str:
        """Serialize with the stored camelCase keys."""
        return self.model_dump_json(by_alias=True)


def parse_completion_record(data: str | bytes) -> OnboardingCompletionRecord | None:
    """
    Parse a stored completion record.

    Returns:
        The record, or None if the payload is not a well-formed record.
    """
    try:
        return OnboardingCompletionRecord.model_validate_json(data)
    except ValidationError:
        return None
