"""Pin Query Engine — visibility and distance rules against a real (SQLite) store.

Tests cover:
    - create_pin: stored fields, bad visibility / coordinates rejected before any
      write, unknown owner → NotFoundError, blank message stored as None,
      emotion stripped and bounded to 16 characters
    - query_own_pins: every visibility, expired included, newest first
    - query_friend_pins: only accepted friends, never private, expired pins kept
    - query_nearby_pins: public/friends/private visibility from the requester's
      side, radius 0 = unfiltered, radius above cap = cap, negative radius error,
      antimeridian and pole neighbourhoods, expires_at never hides a pin
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from ember.core.errors import (
    InvalidEmotionError, InvalidGeoParameterError, InvalidVisibilityError,
    NotFoundError,
)
from ember.models.pin import Pin
from ember.services.pin_engine import PinEngine
from ember.services.relationship_engine import RelationshipEngine

VANCOUVER = (-123.12, 49.28)
# ~9 km east of downtown Vancouver
BURNABY = (-123.0, 49.25)
# ~31 km south-east: outside the 25 km cap
SURREY_EDGE = (-122.80, 49.10)
PORTLAND = (-122.68, 45.52)


@pytest.fixture
def pins(test_db):
    return PinEngine(test_db)


@pytest.fixture
def relationships(test_db):
    return RelationshipEngine(test_db)


@pytest.fixture
async def alice(make_user):
    return await make_user("alice")


@pytest.fixture
async def bob(make_user):
    return await make_user("bob")


async def _befriend(relationships, a, b):
    assert await relationships.create_friend_request(a.id, b.id)
    assert await relationships.accept_friend_request(b.id, a.id)


async def _pin(pins, owner, where=VANCOUVER, visibility="public", **kwargs):
    lon, lat = where
    return await pins.create_pin(
        owner.id, kwargs.pop("emotion", "😊"), kwargs.pop("message", None),
        lon, lat, visibility, **kwargs,
    )


def _ids(pin_list) -> set:
    return {p.id for p in pin_list}


# ─── create_pin ──────────────────────────────────────────────────

async def test_create_pin_stores_fields(pins, alice):
    pin = await _pin(pins, alice, message="first light", visibility="friends")
    assert pin.id is not None
    assert pin.user_id == alice.id
    assert pin.emotion == "😊"
    assert pin.message == "first light"
    assert (pin.longitude, pin.latitude) == VANCOUVER
    assert pin.visibility == "friends"
    assert pin.created_at is not None
    assert pin.expires_at is None


async def test_create_pin_blank_message_stored_as_none(pins, alice):
    pin = await _pin(pins, alice, message="")
    assert pin.message is None


async def test_create_pin_invalid_visibility_writes_nothing(pins, test_db, alice):
    with pytest.raises(InvalidVisibilityError):
        await _pin(pins, alice, visibility="everyone")
    count = await test_db.scalar(select(func.count()).select_from(Pin))
    assert count == 0


@pytest.mark.parametrize("where", [(181.0, 0.0), (0.0, -90.5)])
async def test_create_pin_out_of_range_coordinates(pins, test_db, alice, where):
    with pytest.raises(InvalidGeoParameterError):
        await _pin(pins, alice, where=where)
    count = await test_db.scalar(select(func.count()).select_from(Pin))
    assert count == 0


async def test_create_pin_unknown_owner(pins):
    with pytest.raises(NotFoundError):
        await pins.create_pin(uuid4(), "😊", None, 0.0, 0.0, "public")


async def test_create_pin_strips_emotion(pins, alice):
    pin = await _pin(pins, alice, emotion="  🔥  ")
    assert pin.emotion == "🔥"


@pytest.mark.parametrize("emotion", ["", "   ", "x" * 17])
async def test_create_pin_rejects_bad_emotion(pins, test_db, alice, emotion):
    with pytest.raises(InvalidEmotionError) as exc:
        await _pin(pins, alice, emotion=emotion)
    assert exc.value.http_status == 400
    count = await test_db.scalar(select(func.count()).select_from(Pin))
    assert count == 0


async def test_create_pin_accepts_emotion_at_limit(pins, alice):
    pin = await _pin(pins, alice, emotion="x" * 16)
    assert pin.emotion == "x" * 16


# ─── query_own_pins ──────────────────────────────────────────────

async def test_own_pins_include_every_visibility_newest_first(
    pins, test_db, alice, bob,
):
    now = datetime.now(timezone.utc)
    for age, visibility in enumerate(("public", "friends", "private")):
        test_db.add(Pin(
            user_id=alice.id, emotion="🙂", longitude=0.0, latitude=0.0,
            visibility=visibility, created_at=now - timedelta(minutes=age),
        ))
    test_db.add(Pin(
        user_id=bob.id, emotion="🙂", longitude=0.0, latitude=0.0,
        visibility="public",
    ))
    await test_db.commit()

    own = await pins.query_own_pins(alice.id)
    assert [p.visibility for p in own] == ["public", "friends", "private"]


async def test_own_pins_include_expired(pins, alice):
    expired = await _pin(
        pins, alice, expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
    )
    assert _ids(await pins.query_own_pins(alice.id)) == {expired.id}


# ─── query_friend_pins ───────────────────────────────────────────

async def test_friend_pins_public_and_friends_only(pins, relationships, alice, bob):
    await _befriend(relationships, alice, bob)
    public = await _pin(pins, bob, visibility="public")
    friends = await _pin(pins, bob, visibility="friends")
    await _pin(pins, bob, visibility="private")
    await _pin(pins, alice, visibility="public")

    assert _ids(await pins.query_friend_pins(alice.id)) == {public.id, friends.id}


async def test_friend_pins_empty_for_pending_request(pins, relationships, alice, bob):
    await relationships.create_friend_request(alice.id, bob.id)
    await _pin(pins, bob, visibility="friends")
    assert await pins.query_friend_pins(alice.id) == []
    assert await pins.query_friend_pins(bob.id) == []


async def test_friend_pins_gone_after_unfriend(pins, relationships, alice, bob):
    await _befriend(relationships, alice, bob)
    await _pin(pins, bob, visibility="friends")
    await relationships.delete_friendship(bob.id, alice.id)
    assert await pins.query_friend_pins(alice.id) == []


async def test_friend_pins_keep_expired(pins, relationships, alice, bob):
    """expires_at is informational: an expired friends pin stays in the feed."""
    await _befriend(relationships, alice, bob)
    now = datetime.now(timezone.utc)
    expired = await _pin(
        pins, bob, visibility="friends", expires_at=now - timedelta(minutes=5),
    )
    live = await _pin(pins, bob, expires_at=now + timedelta(hours=1))
    assert _ids(await pins.query_friend_pins(alice.id)) == {expired.id, live.id}


async def test_friend_pins_newest_first(pins, relationships, test_db, alice, bob):
    await _befriend(relationships, alice, bob)
    now = datetime.now(timezone.utc)
    for age, emotion in enumerate(("new", "mid", "old")):
        test_db.add(Pin(
            user_id=bob.id, emotion=emotion, longitude=0.0, latitude=0.0,
            visibility="public", created_at=now - timedelta(hours=age),
        ))
    await test_db.commit()

    feed = await pins.query_friend_pins(alice.id)
    assert [p.emotion for p in feed] == ["new", "mid", "old"]


# ─── query_nearby_pins: visibility ───────────────────────────────

async def test_nearby_private_pin_only_for_owner(pins, relationships, alice, bob):
    await _befriend(relationships, alice, bob)
    private = await _pin(pins, bob, visibility="private")

    assert await pins.query_nearby_pins(alice.id, *VANCOUVER, 5.0) == []
    assert _ids(await pins.query_nearby_pins(bob.id, *VANCOUVER, 5.0)) == {private.id}


async def test_nearby_friends_pin_iff_friends(
    pins, relationships, make_user, alice, bob,
):
    stranger = await make_user("stranger")
    await _befriend(relationships, bob, alice)
    friends_only = await _pin(pins, bob, visibility="friends")

    assert _ids(await pins.query_nearby_pins(alice.id, *VANCOUVER, 5.0)) == {friends_only.id}
    assert await pins.query_nearby_pins(stranger.id, *VANCOUVER, 5.0) == []


async def test_nearby_friends_pin_hidden_while_pending(
    pins, relationships, alice, bob,
):
    await relationships.create_friend_request(alice.id, bob.id)
    await _pin(pins, bob, visibility="friends")
    assert await pins.query_nearby_pins(alice.id, *VANCOUVER, 5.0) == []


async def test_nearby_public_pin_for_anyone(pins, make_user, alice):
    stranger = await make_user("stranger")
    public = await _pin(pins, alice)
    assert _ids(await pins.query_nearby_pins(stranger.id, *VANCOUVER, 5.0)) == {public.id}


async def test_nearby_owner_sees_own_friends_pin(pins, alice):
    own = await _pin(pins, alice, visibility="friends")
    assert _ids(await pins.query_nearby_pins(alice.id, *VANCOUVER, 5.0)) == {own.id}


async def test_nearby_keeps_expired(pins, relationships, alice, bob):
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    await _befriend(relationships, alice, bob)
    private = await _pin(pins, alice, visibility="private", expires_at=past)
    public = await _pin(pins, alice, visibility="public", expires_at=past)

    assert _ids(await pins.query_nearby_pins(alice.id, *VANCOUVER, 0.0)) == {
        private.id, public.id,
    }
    assert _ids(await pins.query_nearby_pins(bob.id, *VANCOUVER, 1.0)) == {public.id}


# ─── query_nearby_pins: distance ─────────────────────────────────

async def test_nearby_vancouver_scenario(pins, make_user, alice):
    """A public pin ~0.5 km away is inside 1 km and outside 0.1 km."""
    stranger = await make_user("stranger")
    pin = await _pin(pins, alice, where=(-123.115, 49.283))

    assert _ids(await pins.query_nearby_pins(stranger.id, *VANCOUVER, 1.0)) == {pin.id}
    assert await pins.query_nearby_pins(stranger.id, *VANCOUVER, 0.1) == []


async def test_nearby_excludes_pins_beyond_radius(pins, alice):
    near = await _pin(pins, alice, where=BURNABY)
    await _pin(pins, alice, where=PORTLAND)
    assert _ids(await pins.query_nearby_pins(alice.id, *VANCOUVER, 10.0)) == {near.id}


async def test_nearby_radius_zero_is_unfiltered(pins, alice):
    created = {
        (await _pin(pins, alice, where=where)).id
        for where in (VANCOUVER, PORTLAND, (151.2, -33.87))
    }
    assert _ids(await pins.query_nearby_pins(alice.id, *VANCOUVER, 0.0)) == created


async def test_nearby_radius_above_cap_equals_cap(pins, alice):
    await _pin(pins, alice, where=BURNABY)
    await _pin(pins, alice, where=SURREY_EDGE)
    capped = await pins.query_nearby_pins(alice.id, *VANCOUVER, 30.0)
    at_cap = await pins.query_nearby_pins(alice.id, *VANCOUVER, 25.0)
    assert _ids(capped) == _ids(at_cap)
    assert len(capped) == 1


async def test_nearby_cap_is_configurable(test_db, alice):
    engine = PinEngine(test_db, max_radius_km=3.0)
    await _pin(engine, alice, where=BURNABY)
    assert await engine.query_nearby_pins(alice.id, *VANCOUVER, 10.0) == []


async def test_nearby_negative_radius_rejected(pins, alice):
    with pytest.raises(InvalidGeoParameterError) as exc:
        await pins.query_nearby_pins(alice.id, *VANCOUVER, -1.0)
    assert exc.value.parameter == "radius_km"


async def test_nearby_invalid_center_rejected(pins, alice):
    with pytest.raises(InvalidGeoParameterError):
        await pins.query_nearby_pins(alice.id, 200.0, 0.0, 5.0)


async def test_nearby_across_antimeridian(pins, alice):
    east = await _pin(pins, alice, where=(179.98, 0.0))
    west = await _pin(pins, alice, where=(-179.98, 0.0))
    await _pin(pins, alice, where=(179.0, 0.0))

    found = await pins.query_nearby_pins(alice.id, 179.99, 0.0, 10.0)
    assert _ids(found) == {east.id, west.id}


async def test_nearby_around_pole(pins, alice):
    other_side = await _pin(pins, alice, where=(180.0, 89.95))
    await _pin(pins, alice, where=(0.0, 89.0))

    found = await pins.query_nearby_pins(alice.id, 0.0, 89.95, 15.0)
    assert _ids(found) == {other_side.id}


async def test_nearby_newest_first(pins, test_db, alice):
    now = datetime.now(timezone.utc)
    for age, emotion in enumerate(("new", "mid", "old")):
        test_db.add(Pin(
            user_id=alice.id, emotion=emotion, longitude=VANCOUVER[0],
            latitude=VANCOUVER[1], visibility="public",
            created_at=now - timedelta(minutes=age),
        ))
    await test_db.commit()

    found = await pins.query_nearby_pins(alice.id, *VANCOUVER, 1.0)
    assert [p.emotion for p in found] == ["new", "mid", "old"]
