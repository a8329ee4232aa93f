"""Friend Schemas — friend list, request list and request decision payloads."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FriendOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    display_name: str | None = None
    bio: str | None = None


class FriendRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    display_name: str | None = None


class FriendsResponse(BaseModel):
    friends: list[FriendOut]


class FriendRequestsResponse(BaseModel):
    incoming_requests: list[FriendRequestOut]
    outgoing_requests: list[FriendRequestOut]


class FriendRequestDecisionIn(BaseModel):
    """PATCH body: answer to an incoming request."""
    status: Literal["accepted", "rejected"] = Field(
        description="accepted creates the friendship, rejected drops the request",
    )
