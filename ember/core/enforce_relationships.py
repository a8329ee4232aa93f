"""Relationship Rules — pure checks behind the friendship state machine.

Invariants:
    - check_not_self is the single place the self-relation prohibition is decided
    - ordered_pair(a, b) == ordered_pair(b, a): the unordered-pair key used by the
      pending-pair unique index
    - classify_relationship is PURE: reads edges, never mutates

Design Decisions:
    - Edges passed as plain (owner, other, status) tuples: the rule does not care
      whether they came from the ORM, a test, or a raw query
"""

from collections.abc import Iterable
from uuid import UUID

from ember.core.domain_types import FriendshipStatus, RelationshipStatus
from ember.core.errors import SelfReferenceError


def check_not_self(user_id: UUID, other_id: UUID, operation: str) -> None:
    """Raise SelfReferenceError when both sides of a relation are the same user."""
    if user_id == other_id:
        raise SelfReferenceError(operation)


def ordered_pair(a: UUID, b: UUID) -> tuple[UUID, UUID]:
    """Direction-free key for a pair of users."""
    return (a, b) if a <= b else (b, a)


def classify_relationship(
    user_id: UUID,
    other_id: UUID,
    edges: Iterable[tuple[UUID, UUID, str]],
) -> RelationshipStatus:
    """Collapse the edges between two users into the state seen by user_id."""
    if user_id == other_id:
        return RelationshipStatus.SELF

    outgoing: str | None = None
    incoming: str | None = None
    for owner, other, status in edges:
        if owner == user_id and other == other_id:
            outgoing = status
        elif owner == other_id and other == user_id:
            incoming = status

    if FriendshipStatus.ACCEPTED in (outgoing, incoming):
        return RelationshipStatus.FRIENDS
    if outgoing == FriendshipStatus.PENDING:
        return RelationshipStatus.PENDING_OUTGOING
    if incoming == FriendshipStatus.PENDING:
        return RelationshipStatus.PENDING_INCOMING
    return RelationshipStatus.NONE
