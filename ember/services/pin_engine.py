"""Pin Query Engine — creates pins and answers "which pins can X see".

Invariants:
    - A pin is visible to a requester iff it is public, OR the requester owns it,
      OR it is friends-only and an ACCEPTED edge links owner and requester
      (checked in both directions)
    - private pins are only ever returned to their owner
    - query_nearby_pins: radius clamped to max_radius_km, negative radius is an
      error, radius 0 disables the distance filter entirely
    - expires_at is stored and returned but never filters a feed: visibility is
      decided by scope and friendship alone
    - emotion is checked here (non-blank, at most MAX_EMOTION_LENGTH characters)
      so direct callers get InvalidEmotionError instead of a store failure
    - Every list is ordered by created_at descending

Design Decisions:
    - Visibility is decided in SQL (one query, EXISTS on friendships); distance is
      a bounding-box predicate in SQL refined by exact haversine in Python
    - max_radius_km injected by the caller (settings) instead of read globally
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, and_, or_, exists
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ember.core.domain_types import FriendshipStatus, Visibility
from ember.core.enforce_pins import normalize_emotion, parse_visibility
from ember.core.errors import NotFoundError
from ember.core.geo import (
    MAX_NEARBY_RADIUS_KM, bounding_box, haversine_km, normalize_radius,
    validate_point,
)
from ember.infrastructure.database import atomic, to_store_error
from ember.models.friendship import Friendship
from ember.models.pin import Pin
from ember.models.user import User

logger = logging.getLogger(__name__)


def _is_friend_of(requester: UUID):
    """EXISTS an accepted edge between Pin.user_id and requester."""
    return exists().where(
        Friendship.status == FriendshipStatus.ACCEPTED.value,
        or_(
            and_(Friendship.user_id == requester, Friendship.friend_id == Pin.user_id),
            and_(Friendship.user_id == Pin.user_id, Friendship.friend_id == requester),
        ),
    )


def _visible_to(requester: UUID):
    return or_(
        Pin.visibility == Visibility.PUBLIC.value,
        Pin.user_id == requester,
        and_(
            Pin.visibility == Visibility.FRIENDS.value,
            _is_friend_of(requester),
        ),
    )


class PinEngine:
    """Pin persistence and visibility-scoped queries over an injected AsyncSession."""

    def __init__(
        self, db: AsyncSession, max_radius_km: float = MAX_NEARBY_RADIUS_KM,
    ):
        self.db = db
        self.max_radius_km = max_radius_km

    async def create_pin(
        self,
        owner: UUID,
        emotion: str,
        message: str | None,
        longitude: float,
        latitude: float,
        visibility: str | Visibility,
        expires_at: datetime | None = None,
    ) -> Pin:
        """Validate and store a new pin owned by owner."""
        scope = parse_visibility(visibility)
        emotion = normalize_emotion(emotion)
        validate_point(longitude, latitude)

        async with atomic(self.db):
            found = await self.db.execute(select(User.id).where(User.id == owner))
            if found.scalar_one_or_none() is None:
                raise NotFoundError("User", str(owner))
            pin = Pin(
                user_id=owner,
                emotion=emotion,
                message=message or None,
                longitude=longitude,
                latitude=latitude,
                visibility=scope.value,
                expires_at=expires_at,
            )
            self.db.add(pin)
            await self.db.flush()

        logger.info(
            "Pin created",
            extra={"user_id": owner, "pin_id": pin.id},
        )
        return pin

    async def query_own_pins(self, owner: UUID) -> list[Pin]:
        """Every pin owner created, any visibility."""
        return await self._fetch(
            select(Pin)
            .where(Pin.user_id == owner)
            .order_by(Pin.created_at.desc())
        )

    async def query_friend_pins(self, requester: UUID) -> list[Pin]:
        """Public and friends-only pins of requester's accepted friends."""
        friend_ids = (
            select(Friendship.friend_id)
            .where(
                Friendship.user_id == requester,
                Friendship.status == FriendshipStatus.ACCEPTED.value,
            )
        )
        return await self._fetch(
            select(Pin)
            .where(
                Pin.user_id.in_(friend_ids),
                Pin.visibility.in_(
                    (Visibility.PUBLIC.value, Visibility.FRIENDS.value),
                ),
            )
            .order_by(Pin.created_at.desc())
        )

    async def query_nearby_pins(
        self,
        requester: UUID,
        longitude: float,
        latitude: float,
        radius_km: float,
    ) -> list[Pin]:
        """Pins visible to requester within radius_km of the point (0 = anywhere)."""
        validate_point(longitude, latitude)
        radius = normalize_radius(radius_km, self.max_radius_km)

        query = select(Pin).where(_visible_to(requester))
        if radius > 0:
            box = bounding_box(longitude, latitude, radius)
            query = query.where(Pin.latitude.between(box.min_lat, box.max_lat))
            if box.lon_ranges is not None:
                query = query.where(or_(*(
                    Pin.longitude.between(lo, hi) for lo, hi in box.lon_ranges
                )))

        pins = await self._fetch(query.order_by(Pin.created_at.desc()))
        if radius > 0:
            pins = [
                p for p in pins
                if haversine_km(longitude, latitude, p.longitude, p.latitude) <= radius
            ]

        logger.debug(
            "Nearby pins queried",
            extra={"user_id": requester, "radius_km": radius, "count": len(pins)},
        )
        return pins

    async def _fetch(self, statement) -> list[Pin]:
        try:
            result = await self.db.execute(statement)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise to_store_error(e) from e
        return list(result.scalars().all())
