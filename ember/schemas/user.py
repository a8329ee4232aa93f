"""User Schemas — registration, login and profile payloads.

Invariants:
    - RegisterRequest.username: 3-32 chars of [A-Za-z0-9_.]
    - RegisterRequest.password: 8-128 chars (hashing truncates at 72 bytes)
    - Profile responses never include email or password hash of other users
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegisterRequest(BaseModel):
    """Account creation — validates username shape and email format."""
    username: str = Field(min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.]+$")
    email: str = Field(
        max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
    )
    password: str = Field(min_length=8, max_length=128)
    display_name: str | None = Field(None, max_length=64)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class RegisterResponse(BaseModel):
    user_id: UUID


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    """The caller's own profile."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    display_name: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime


class UserProfileResponse(BaseModel):
    """Another user's public profile plus how they relate to the caller."""
    id: UUID
    username: str
    display_name: str | None = None
    bio: str | None = None
    relationship: str
