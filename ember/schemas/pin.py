"""Pin Schemas — pin creation and pin list payloads.

Invariants:
    - emotion: 1-16 chars after stripping (an emoji or short tag)
    - message: optional, at most 280 chars, blank -> None
    - expires_in_minutes: optional, 1 minute to 7 days

Design Decisions:
    - visibility and coordinates are NOT range-checked here: the pin engine owns
      those rules and raises InvalidVisibilityError / InvalidGeoParameterError,
      which reach the client with their own error codes
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ember.core.enforce_pins import MAX_EMOTION_LENGTH


class PinCreate(BaseModel):
    emotion: str = Field(min_length=1, max_length=MAX_EMOTION_LENGTH)
    message: str | None = Field(None, max_length=280)
    longitude: float
    latitude: float
    visibility: str = "public"
    expires_in_minutes: int | None = Field(None, ge=1, le=7 * 24 * 60)

    @field_validator("emotion")
    @classmethod
    def strip_emotion(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("emotion cannot be empty or whitespace")
        return v

    @field_validator("message")
    @classmethod
    def blank_message_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class PinOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    emotion: str
    message: str | None = None
    longitude: float
    latitude: float
    visibility: str
    created_at: datetime
    expires_at: datetime | None = None


class PinListResponse(BaseModel):
    pins: list[PinOut]
