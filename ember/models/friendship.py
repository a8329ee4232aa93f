"""Friendship ORM — directed edges of the relationship state machine.

Invariants:
    - (user_id, friend_id) unique: one edge per direction
    - user_id != friend_id (check constraint)
    - At most one PENDING edge per unordered pair: partial unique index on
      (pair_low, pair_high) WHERE status = 'pending'
    - Accepted friendship = two ACCEPTED edges, one per direction
    - pair_low/pair_high always equal ordered_pair(user_id, friend_id); build
      edges with Friendship.edge(), never by hand

Design Decisions:
    - Mirrored accepted edges: "my friends" is a single-direction scan
    - The two unique constraints together forbid every duplicate relationship
      context a concurrent CreateFriendRequest could produce: a pending edge
      next to an accepted pair collides on (user_id, friend_id), two opposite
      pending edges collide on the pending-pair index
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, DateTime, ForeignKey, Uuid, UniqueConstraint, CheckConstraint,
    Index, text,
)
from sqlalchemy.orm import Mapped, mapped_column

from ember.core.domain_types import FriendshipStatus
from ember.core.enforce_relationships import ordered_pair
from ember.db.base import Base


class Friendship(Base):
    """Directed edge owner -> other with a status."""
    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendships_direction"),
        CheckConstraint("user_id <> friend_id", name="ck_friendships_not_self"),
        Index(
            "uq_friendships_pending_pair", "pair_low", "pair_high",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_friendships_friend_status", "friend_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    friend_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=FriendshipStatus.PENDING.value,
    )
    pair_low: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    pair_high: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @classmethod
    def edge(
        cls, owner: uuid.UUID, other: uuid.UUID, status: FriendshipStatus,
    ) -> "Friendship":
        low, high = ordered_pair(owner, other)
        return cls(
            user_id=owner, friend_id=other, status=status.value,
            pair_low=low, pair_high=high,
        )
