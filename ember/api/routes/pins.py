"""Pin Routes — create pins and read the three visibility-scoped feeds."""

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query, status

from ember.api.deps import get_current_user_id, get_pin_engine
from ember.core.domain_types import UserId
from ember.schemas.pin import PinCreate, PinListResponse, PinOut
from ember.services.pin_engine import PinEngine

router = APIRouter(prefix="/api/v1/pins", tags=["pins"])


def _pin_list(pins) -> PinListResponse:
    return PinListResponse(pins=[PinOut.model_validate(p) for p in pins])


@router.post("", response_model=PinOut, status_code=status.HTTP_201_CREATED)
async def create_pin(
    body: PinCreate,
    user_id: UserId = Depends(get_current_user_id),
    pins: PinEngine = Depends(get_pin_engine),
):
    expires_at = None
    if body.expires_in_minutes:
        expires_at = datetime.now(timezone.utc) + timedelta(
            minutes=body.expires_in_minutes,
        )
    pin = await pins.create_pin(
        user_id, body.emotion, body.message,
        body.longitude, body.latitude, body.visibility,
        expires_at=expires_at,
    )
    return PinOut.model_validate(pin)


@router.get("/me", response_model=PinListResponse)
async def my_pins(
    user_id: UserId = Depends(get_current_user_id),
    pins: PinEngine = Depends(get_pin_engine),
):
    return _pin_list(await pins.query_own_pins(user_id))


@router.get("/friends", response_model=PinListResponse)
async def friend_pins(
    user_id: UserId = Depends(get_current_user_id),
    pins: PinEngine = Depends(get_pin_engine),
):
    return _pin_list(await pins.query_friend_pins(user_id))


@router.get("/nearby", response_model=PinListResponse)
async def nearby_pins(
    longitude: float = Query(...),
    latitude: float = Query(...),
    radius_km: float = Query(...),
    user_id: UserId = Depends(get_current_user_id),
    pins: PinEngine = Depends(get_pin_engine),
):
    """Pins visible to the caller within radius_km (capped at 25, 0 = no limit)."""
    return _pin_list(
        await pins.query_nearby_pins(user_id, longitude, latitude, radius_km),
    )
