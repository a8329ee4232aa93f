"""User Routes — the caller's profile and other users' public profiles."""

from uuid import UUID

from fastapi import APIRouter, Depends

from ember.api.deps import (
    get_account_service, get_current_user_id, get_relationship_engine,
)
from ember.core.domain_types import UserId
from ember.schemas.user import MeResponse, UserProfileResponse
from ember.services.account_service import AccountService
from ember.services.relationship_engine import RelationshipEngine

router = APIRouter(prefix="/api/v1", tags=["users"])


@router.get("/me", response_model=MeResponse)
async def get_me(
    user_id: UserId = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
):
    user = await accounts.get_user(user_id)
    return MeResponse.model_validate(user)


@router.get("/users/{other_id}", response_model=UserProfileResponse)
async def get_user_profile(
    other_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_account_service),
    relationships: RelationshipEngine = Depends(get_relationship_engine),
):
    """Public profile of another user and how they relate to the caller."""
    other = await accounts.get_user(other_id)
    relation = await relationships.relationship_status(user_id, other.id)
    return UserProfileResponse(
        id=other.id,
        username=other.username,
        display_name=other.display_name,
        bio=other.bio,
        relationship=relation.value,
    )
