"""User Routes — lookups through the identity provider's admin API."""

from uuid import UUID

from fastapi import APIRouter, Depends

from app.infrastructure.identity_client import (
    ResilientIdentityClient,
    get_identity_client,
)
from app.schemas.common import ApiResponse
from app.schemas.user import User

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/{user_id}",
    response_model=ApiResponse[User],
    response_model_exclude_none=True,
    summary="Get user by ID",
)
async def get_user(
    user_id: UUID,
    identity: ResilientIdentityClient = Depends(get_identity_client),
):
    user = await identity.get_user_by_id(str(user_id))
    return ApiResponse[User](success=True, data=User.from_provider(user))
