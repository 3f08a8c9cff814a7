"""Shared route dependencies."""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.errors import AuthenticationError

_bearer = HTTPBearer(auto_error=False)


async def require_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """Bearer token from the Authorization header, or 401."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return credentials.credentials
