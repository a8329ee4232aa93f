"""Friend Routes — friend list, friend requests, unfriend.

Invariants:
    - Caller identity comes from get_current_user_id and is passed explicitly
    - Engine False results map to client errors here, never inside the engine:
        create  False → 409 RELATIONSHIP_EXISTS
        accept/reject False → 404 NO_PENDING_REQUEST
        delete  False → 404 NO_RELATIONSHIP
    - Those no-ops are raised as NoOpOutcomeError so they share the global
      error envelope and log at INFO with the caller and operation attached
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ember.api.deps import get_current_user_id, get_relationship_engine
from ember.core.errors import ErrorContext, NoOpOutcomeError
from ember.core.domain_types import FriendRequestDecision, UserId
from ember.schemas.friend import (
    FriendOut, FriendRequestDecisionIn, FriendRequestOut,
    FriendRequestsResponse, FriendsResponse,
)
from ember.services.relationship_engine import RelationshipEngine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/friends", tags=["friends"])


def _no_op(
    user_id: UserId, operation: str, status_code: int, code: str, message: str,
) -> NoOpOutcomeError:
    return NoOpOutcomeError(
        code, message, status_code,
        ErrorContext(user_id=str(user_id), operation=operation),
    )


@router.get("", response_model=FriendsResponse)
async def list_friends(
    user_id: UserId = Depends(get_current_user_id),
    relationships: RelationshipEngine = Depends(get_relationship_engine),
):
    friends = await relationships.list_friends(user_id)
    return FriendsResponse(
        friends=[FriendOut.model_validate(f) for f in friends],
    )


@router.delete("/{friend_id}")
async def delete_friend(
    friend_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    relationships: RelationshipEngine = Depends(get_relationship_engine),
):
    """Unfriend, or cancel a pending request in either direction."""
    if not await relationships.delete_friendship(user_id, friend_id):
        raise _no_op(
            user_id, "delete_friendship",
            status.HTTP_404_NOT_FOUND, "NO_RELATIONSHIP",
            "No friendship or request exists with this user",
        )
    return {"removed": True}


@router.get("/requests", response_model=FriendRequestsResponse)
async def list_friend_requests(
    user_id: UserId = Depends(get_current_user_id),
    relationships: RelationshipEngine = Depends(get_relationship_engine),
):
    requests = await relationships.list_friend_requests(user_id)
    return FriendRequestsResponse(
        incoming_requests=[
            FriendRequestOut.model_validate(u) for u in requests.incoming
        ],
        outgoing_requests=[
            FriendRequestOut.model_validate(u) for u in requests.outgoing
        ],
    )


@router.post("/requests/{friend_id}", status_code=status.HTTP_201_CREATED)
async def send_friend_request(
    friend_id: UUID,
    user_id: UserId = Depends(get_current_user_id),
    relationships: RelationshipEngine = Depends(get_relationship_engine),
):
    if not await relationships.create_friend_request(user_id, friend_id):
        raise _no_op(
            user_id, "create_friend_request",
            status.HTTP_409_CONFLICT, "RELATIONSHIP_EXISTS",
            "Friendship already exists or is pending",
        )
    return {"created": True}


@router.patch("/requests/{friend_id}")
async def answer_friend_request(
    friend_id: UUID,
    body: FriendRequestDecisionIn,
    user_id: UserId = Depends(get_current_user_id),
    relationships: RelationshipEngine = Depends(get_relationship_engine),
):
    """Accept or reject the pending request friend_id sent to the caller."""
    decision = FriendRequestDecision(body.status)
    if decision is FriendRequestDecision.ACCEPTED:
        operation = "accept_friend_request"
        done = await relationships.accept_friend_request(user_id, friend_id)
    else:
        operation = "reject_friend_request"
        done = await relationships.reject_friend_request(user_id, friend_id)

    if not done:
        raise _no_op(
            user_id, operation,
            status.HTTP_404_NOT_FOUND, "NO_PENDING_REQUEST",
            "No pending friend request from this user",
        )
    return {decision.value: True}
