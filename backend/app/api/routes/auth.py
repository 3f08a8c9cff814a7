"""Auth Routes — login / register / logout / refresh proxied to the identity provider.

Invariants:
    - Login and register bodies are validated here so failures carry the
      route-specific message ("Invalid login data" / "Invalid registration data")
    - Provider credential rejections surface as 401 AuthenticationError
    - Success bodies are ApiResponse envelopes; session is omitted when the
      provider withholds it (email confirmation pending)
"""

import logging
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ValidationError

from app.api.dependencies import require_access_token
from app.api.error_handlers import validation_details
from app.core.errors import InvalidPayloadError, IdentityProviderError
from app.infrastructure.identity_client import (
    ResilientIdentityClient,
    get_identity_client,
)
from app.schemas.common import ApiResponse
from app.schemas.user import (
    AuthResult,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    User,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

M = TypeVar("M", bound=BaseModel)


async def _read_json(request: Request, message: str) -> Any:
    """Decode the body here so malformed JSON gets the route-specific message."""
    try:
        return await request.json()
    except ValueError:
        raise InvalidPayloadError(message)


def _validate(model: type[M], body: Any, message: str) -> M:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise InvalidPayloadError(message, details=validation_details(e.errors()))


@router.post(
    "/login",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_none=True,
    summary="User login",
)
async def login(
    request: Request,
    identity: ResilientIdentityClient = Depends(get_identity_client),
):
    message = "Invalid login data"
    payload = _validate(LoginRequest, await _read_json(request, message), message)
    result = await identity.sign_in_with_password(payload.email, payload.password)
    return ApiResponse[AuthResult](
        success=True, data=AuthResult.from_provider(result),
    )


@router.post(
    "/register",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_none=True,
    summary="User registration",
)
async def register(
    request: Request,
    identity: ResilientIdentityClient = Depends(get_identity_client),
):
    message = "Invalid registration data"
    payload = _validate(RegisterRequest, await _read_json(request, message), message)
    result = await identity.sign_up(
        payload.email, payload.password, metadata={"name": payload.name},
    )
    if result.session is None:
        logger.info("Registration pending email confirmation")
    return ApiResponse[AuthResult](
        success=True, data=AuthResult.from_provider(result),
    )


@router.post(
    "/logout",
    response_model=ApiResponse[dict],
    response_model_exclude_none=True,
    summary="User logout",
)
async def logout(
    access_token: str = Depends(require_access_token),
    identity: ResilientIdentityClient = Depends(get_identity_client),
):
    await identity.sign_out(access_token)
    return ApiResponse[dict](success=True)


@router.post(
    "/refresh",
    response_model=ApiResponse[AuthResult],
    response_model_exclude_none=True,
    summary="Refresh session tokens",
)
async def refresh(
    body: RefreshRequest,
    identity: ResilientIdentityClient = Depends(get_identity_client),
):
    result = await identity.refresh_session(body.refresh_token)
    if result.session is None:
        raise IdentityProviderError(
            "Refresh returned no session", "malformed_response",
        )
    return ApiResponse[AuthResult](
        success=True, data=AuthResult.from_provider(result),
    )


@router.get(
    "/me",
    response_model=ApiResponse[User],
    response_model_exclude_none=True,
    summary="Current user",
)
async def me(
    access_token: str = Depends(require_access_token),
    identity: ResilientIdentityClient = Depends(get_identity_client),
):
    user = await identity.get_user(access_token)
    return ApiResponse[User](success=True, data=User.from_provider(user))
