"""Relationship Engine — friendship request/accept/reject/unfriend state machine.

Invariants:
    - Per unordered pair: NONE -> PENDING(dir) -> ACCEPTED -> NONE, and
      PENDING(dir) -> NONE via reject or delete; no transition skips a state
    - The caller identity is always the first argument; nothing is ambient
    - Expected no-ops return False (relation exists, nothing pending, nothing
      to delete); only caller mistakes and store failures raise
    - Every mutation commits or rolls back as a whole (atomic / explicit rollback)
    - No in-memory state, no locking, no retry: correctness comes from the
      constraints on friendships (see models/friendship.py) and transactions

Design Decisions:
    - create_friend_request checks for an existing edge first (cheap, common
      case) and still treats an IntegrityError on insert as "already exists":
      that closes the race where two concurrent requests both see no edge
    - accept_friend_request refreshes created_at so "friends since" is the
      acceptance time
"""

import logging
from datetime import datetime, timezone
from typing import NamedTuple
from uuid import UUID

from sqlalchemy import select, update, delete, and_, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ember.core.domain_types import FriendshipStatus, RelationshipStatus
from ember.core.enforce_relationships import check_not_self, classify_relationship
from ember.core.errors import RequesterNotFoundError, TargetNotFoundError
from ember.infrastructure.database import atomic, to_store_error
from ember.models.friendship import Friendship
from ember.models.user import User

logger = logging.getLogger(__name__)

PENDING = FriendshipStatus.PENDING.value
ACCEPTED = FriendshipStatus.ACCEPTED.value


class FriendRequests(NamedTuple):
    """Pending requests around one user, split by direction."""
    incoming: list[User]
    outgoing: list[User]


def _between(a: UUID, b: UUID):
    """Edges in either direction between a and b."""
    return or_(
        and_(Friendship.user_id == a, Friendship.friend_id == b),
        and_(Friendship.user_id == b, Friendship.friend_id == a),
    )


class RelationshipEngine:
    """Owns the friendship edge lifecycle over an injected AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_friend_request(self, requester: UUID, target: UUID) -> bool:
        """Insert a pending requester -> target edge unless the pair is already related."""
        check_not_self(requester, target, "send a friend request")

        async with atomic(self.db):
            if not await self._user_exists(requester):
                raise RequesterNotFoundError(str(requester))
            if not await self._user_exists(target):
                raise TargetNotFoundError(str(target))

            existing = await self.db.execute(
                select(Friendship.id).where(
                    _between(requester, target),
                    Friendship.status.in_((PENDING, ACCEPTED)),
                ).limit(1)
            )
            if existing.first() is not None:
                logger.debug(
                    "Friend request skipped: relation exists",
                    extra={"user_id": requester, "target_id": target},
                )
                return False

        self.db.add(Friendship.edge(requester, target, FriendshipStatus.PENDING))
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost the race against a concurrent request for the same pair
            await self.db.rollback()
            logger.info(
                "Friend request lost insert race; relation already exists",
                extra={"user_id": requester, "target_id": target},
            )
            return False
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise to_store_error(e) from e

        logger.info(
            "Friend request created",
            extra={"user_id": requester, "target_id": target},
        )
        return True

    async def accept_friend_request(self, accepter: UUID, requester: UUID) -> bool:
        """Turn requester -> accepter PENDING into a mirrored ACCEPTED pair."""
        check_not_self(accepter, requester, "accept a friend request")

        async with atomic(self.db):
            result = await self.db.execute(
                update(Friendship)
                .where(
                    Friendship.user_id == requester,
                    Friendship.friend_id == accepter,
                    Friendship.status == PENDING,
                )
                .values(status=ACCEPTED, created_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                logger.debug(
                    "Accept skipped: no pending request",
                    extra={"user_id": accepter, "target_id": requester},
                )
                return False

            # Stray reverse request from both sides asking at once
            await self.db.execute(
                delete(Friendship)
                .where(
                    Friendship.user_id == accepter,
                    Friendship.friend_id == requester,
                    Friendship.status == PENDING,
                )
                .execution_options(synchronize_session=False)
            )
            self.db.add(
                Friendship.edge(accepter, requester, FriendshipStatus.ACCEPTED),
            )
            await self.db.flush()

        logger.info(
            "Friend request accepted",
            extra={"user_id": accepter, "target_id": requester},
        )
        return True

    async def reject_friend_request(self, rejecter: UUID, requester: UUID) -> bool:
        """Delete the pending requester -> rejecter edge. Accepted pairs are untouched."""
        check_not_self(rejecter, requester, "reject a friend request")

        async with atomic(self.db):
            result = await self.db.execute(
                delete(Friendship)
                .where(
                    Friendship.user_id == requester,
                    Friendship.friend_id == rejecter,
                    Friendship.status == PENDING,
                )
                .execution_options(synchronize_session=False)
            )
            rejected = result.rowcount > 0

        if rejected:
            logger.info(
                "Friend request rejected",
                extra={"user_id": rejecter, "target_id": requester},
            )
        return rejected

    async def delete_friendship(self, user_a: UUID, user_b: UUID) -> bool:
        """Remove every edge between the pair, whatever its status (unfriend / cancel)."""
        async with atomic(self.db):
            result = await self.db.execute(
                delete(Friendship)
                .where(_between(user_a, user_b))
                .execution_options(synchronize_session=False)
            )
            removed = result.rowcount > 0

        if removed:
            logger.info(
                "Friendship removed",
                extra={"user_id": user_a, "target_id": user_b, "count": result.rowcount},
            )
        return removed

    async def list_friends(self, user: UUID) -> list[User]:
        """Users reachable over an ACCEPTED edge owned by user, by username."""
        result = await self._read(
            select(User)
            .join(Friendship, Friendship.friend_id == User.id)
            .where(Friendship.user_id == user, Friendship.status == ACCEPTED)
            .order_by(User.username)
        )
        return list(result.scalars().all())

    async def list_friend_requests(self, user: UUID) -> FriendRequests:
        """Requesters of pending edges into user, and targets of user's pending edges."""
        incoming = await self._read(
            select(User)
            .join(Friendship, Friendship.user_id == User.id)
            .where(Friendship.friend_id == user, Friendship.status == PENDING)
            .order_by(Friendship.created_at.desc())
        )
        outgoing = await self._read(
            select(User)
            .join(Friendship, Friendship.friend_id == User.id)
            .where(Friendship.user_id == user, Friendship.status == PENDING)
            .order_by(Friendship.created_at.desc())
        )
        return FriendRequests(
            incoming=list(incoming.scalars().all()),
            outgoing=list(outgoing.scalars().all()),
        )

    async def relationship_status(
        self, user: UUID, other: UUID,
    ) -> RelationshipStatus:
        """State of the pair as seen from user."""
        if user == other:
            return RelationshipStatus.SELF
        result = await self._read(
            select(
                Friendship.user_id, Friendship.friend_id, Friendship.status,
            ).where(_between(user, other))
        )
        return classify_relationship(user, other, result.all())

    async def _user_exists(self, user_id: UUID) -> bool:
        result = await self.db.execute(select(User.id).where(User.id == user_id))
        return result.scalar_one_or_none() is not None

    async def _read(self, statement):
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise to_store_error(e) from e
