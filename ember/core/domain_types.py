"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId wraps the UUID of an authenticated caller
    - All valid states encoded as Enums — no raw string matching
    - FriendshipStatus has exactly two persisted states; "none" is the absence of an edge

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and compare equal to the stored column value
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class FriendshipStatus(str, Enum):
    """Persisted edge states — maps to friendships.status."""
    PENDING = "pending"
    ACCEPTED = "accepted"


class Visibility(str, Enum):
    """Declared audience of a pin — maps to pins.visibility."""
    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"


class RelationshipStatus(str, Enum):
    """State of an unordered pair as seen from one side."""
    NONE = "none"
    SELF = "self"
    PENDING_OUTGOING = "pending_outgoing"
    PENDING_INCOMING = "pending_incoming"
    FRIENDS = "friends"


class FriendRequestDecision(str, Enum):
    """Answers a user can give to an incoming request."""
    ACCEPTED = "accepted"
    REJECTED = "rejected"
