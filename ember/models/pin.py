"""Pin ORM — geotagged emotion pins.

Invariants:
    - Immutable once created (no update/delete path exists)
    - visibility is one of public | friends | private
    - longitude in [-180, 180], latitude in [-90, 90] (checked by the engine)
    - expires_at NULL means the pin never expires

Design Decisions:
    - Plain float columns + (latitude, longitude) index instead of a PostGIS
      geography: the engine prefilters with a bounding box and checks haversine
      distance itself, which also runs on SQLite in tests
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Float, DateTime, ForeignKey, Uuid, Index, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from ember.core.enforce_pins import MAX_EMOTION_LENGTH
from ember.db.base import Base


class Pin(Base):
    """A moment: emotion + optional note at a point, with an audience."""
    __tablename__ = "pins"
    __table_args__ = (
        CheckConstraint(
            "visibility IN ('public', 'friends', 'private')",
            name="ck_pins_visibility",
        ),
        Index("ix_pins_lat_lon", "latitude", "longitude"),
        Index("ix_pins_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    emotion: Mapped[str] = mapped_column(String(MAX_EMOTION_LENGTH), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    visibility: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
