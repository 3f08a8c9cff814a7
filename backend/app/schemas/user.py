"""User & Auth Schemas — shared validation for auth routes and clients.

Invariants:
    - Passwords: >= 8 chars on registration/creation, non-empty on login
    - Names: non-empty after stripping
    - User.name always populated (metadata name, username, or email local part)
"""

from datetime import datetime, timezone
from uuid import UUID

from pydantic import Field, field_validator

from app.core.identity import display_name_for
from app.schemas.common import EMAIL_PATTERN, CamelModel
from app.schemas.identity import ProviderAuthResponse, ProviderSession, ProviderUser


def _strip_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("name cannot be empty or whitespace")
    return v


class User(CamelModel):
    id: UUID
    email: str | None = Field(None, pattern=EMAIL_PATTERN)
    name: str = Field(min_length=1)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_provider(cls, user: ProviderUser) -> "User":
        now = datetime.now(timezone.utc)
        created = user.created_at or now
        return cls(
            id=user.id,
            email=user.email or None,
            name=display_name_for(user.email, user.user_metadata),
            created_at=created,
            updated_at=user.updated_at or created,
        )


class CreateUser(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    name: str = Field(min_length=1)
    password: str = Field(min_length=8)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return _strip_name(v)


class UpdateUser(CamelModel):
    email: str | None = Field(None, pattern=EMAIL_PATTERN)
    name: str | None = Field(None, min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return _strip_name(v)


class LoginRequest(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)


class RegisterRequest(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    name: str = Field(min_length=1)
    password: str = Field(min_length=8)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        return _strip_name(v)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class SessionTokens(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int | None = None
    expires_at: int | None = None

    @classmethod
    def from_provider(cls, session: ProviderSession) -> "SessionTokens":
        return cls(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            token_type=session.token_type,
            expires_in=session.expires_in,
            expires_at=session.expires_at,
        )


class AuthResult(CamelModel):
    """User plus, when the provider issued one, the session tokens."""
    user: User
    session: SessionTokens | None = None

    @classmethod
    def from_provider(cls, result: ProviderAuthResponse) -> "AuthResult":
        return cls(
            user=User.from_provider(result.user),
            session=(
                SessionTokens.from_provider(result.session)
                if result.session else None
            ),
        )
