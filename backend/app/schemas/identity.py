"""Identity Provider Schemas — payloads exchanged with Supabase Auth (GoTrue).

Invariants:
    - Provider payloads are snake_case; unknown fields are ignored
    - A sign-up without email auto-confirm yields a user but no session
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProviderUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: UUID
    email: str | None = None
    user_metadata: dict = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProviderSession(BaseModel):
    """Session issued by the provider; persisted client-side as JSON."""
    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    expires_at: int | None = None
    user: ProviderUser


class ProviderAuthResponse(BaseModel):
    """Result of sign-up / sign-in / refresh before it is shaped for the API."""
    user: ProviderUser
    session: ProviderSession | None = None
