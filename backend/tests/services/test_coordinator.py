"""Consistency Coordinator: place<->user invariant, atomicity and ownership checks.

Tests cover:
    - create_place links place and owner exactly once, with the geocoded location
    - create_place aborts without side effects on geocode failure or missing owner
    - A failing second write (or commit) in create/delete rolls back the first
    - Cancellation inside the scope rolls back and propagates
    - delete_place unlinks, releases the image, and is NotFound on repeat
    - Non-owners get ForbiddenError and nothing changes
    - Concurrent appends to the same owner never lose an update
"""

import asyncio
import logging
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from placeshare.core.domain_types import OperationState
from placeshare.core.errors import (
    ConsistencyError, ForbiddenError, GeocodeError, OwnerNotFoundError,
    PlaceNotFoundError, StorageError, ValidationError,
)
from placeshare.models.place import Place
from placeshare.models.user import User
from placeshare.services.coordinator import ConsistencyCoordinator
from tests.fakes import FakeAssetStore

ADDRESS = "20 W 34th St, New York"


async def _fresh_user(factory, user_id) -> User:
    async with factory() as db:
        return await db.get(User, user_id)


async def _place_count(factory) -> int:
    async with factory() as db:
        return (await db.execute(select(func.count()).select_from(Place))).scalar_one()


async def _create(coordinator, owner, title="Empire State Building"):
    return await coordinator.create_place(
        owner.id, title, "A famous sky scraper", ADDRESS, "uploads/images/esb.png",
    )


def _fail(exc):
    async def _raise(*args, **kwargs):
        raise exc
    return _raise


# ─── create_place ────────────────────────────────────────────────

async def test_create_place_links_place_and_owner(coordinator, owner, test_session_factory):
    place = await _create(coordinator, owner)

    stored_owner = await _fresh_user(test_session_factory, owner.id)
    assert place.creator_id == owner.id
    assert stored_owner.places.count(str(place.id)) == 1
    assert coordinator.state == OperationState.COMMITTED


async def test_create_place_uses_geocoded_location(coordinator, owner, test_session_factory):
    place = await _create(coordinator, owner)

    async with test_session_factory() as db:
        stored = await db.get(Place, place.id)
    assert (stored.lat, stored.lng) == (40.7, -74.0)
    assert stored.location.to_dict() == {"lat": 40.7, "lng": -74.0}


async def test_create_place_grows_owner_places_by_exactly_one(
    coordinator, owner, test_session_factory,
):
    await _create(coordinator, owner, "First place")
    before = len((await _fresh_user(test_session_factory, owner.id)).places)

    await _create(coordinator, owner, "Second place")

    after = len((await _fresh_user(test_session_factory, owner.id)).places)
    assert after == before + 1


async def test_create_place_preserves_insertion_order(coordinator, owner, test_session_factory):
    first = await _create(coordinator, owner, "First place")
    second = await _create(coordinator, owner, "Second place")

    stored_owner = await _fresh_user(test_session_factory, owner.id)
    assert stored_owner.places == [str(first.id), str(second.id)]


async def test_create_place_logs_terminal_state_at_info(coordinator, owner, caplog):
    caplog.set_level(logging.DEBUG, logger="placeshare.services.coordinator")

    await _create(coordinator, owner)

    levels = {r.state: r.levelno for r in caplog.records if hasattr(r, "state")}
    assert levels["validated"] == logging.DEBUG
    assert levels["committed"] == logging.INFO


async def test_create_place_geocode_failure_has_no_side_effects(
    coordinator, owner, test_session_factory,
):
    with pytest.raises(GeocodeError):
        await coordinator.create_place(
            owner.id, "Nowhere", "Cannot be found", "??? unknown ???", "img.png",
        )

    assert await _place_count(test_session_factory) == 0
    assert (await _fresh_user(test_session_factory, owner.id)).places == []
    assert coordinator.state == OperationState.INITIATED


async def test_create_place_missing_owner_creates_nothing(coordinator, test_session_factory):
    with pytest.raises(OwnerNotFoundError):
        await coordinator.create_place(
            uuid.uuid4(), "Orphan", "No owner exists", ADDRESS, "img.png",
        )

    assert await _place_count(test_session_factory) == 0


async def test_create_place_rejects_short_description_before_geocoding(
    coordinator, owner, geocoder,
):
    with pytest.raises(ValidationError) as exc:
        await coordinator.create_place(owner.id, "Title", "abc", ADDRESS, "img.png")

    assert exc.value.field == "description"
    assert geocoder.calls == []


async def test_create_place_second_write_failure_rolls_back_place(
    coordinator, owner, test_session_factory, monkeypatch,
):
    owner_id = owner.id
    monkeypatch.setattr(
        coordinator.users, "update_fields", _fail(StorageError("boom", "update_user")),
    )

    with pytest.raises(ConsistencyError):
        await _create(coordinator, owner)

    assert await _place_count(test_session_factory) == 0
    assert (await _fresh_user(test_session_factory, owner_id)).places == []
    assert coordinator.state == OperationState.ROLLED_BACK


async def test_create_place_commit_failure_rolls_back_both_writes(
    coordinator, owner, test_db, test_session_factory, monkeypatch,
):
    owner_id = owner.id
    monkeypatch.setattr(
        test_db, "commit", _fail(OperationalError("COMMIT", {}, Exception("lost"))),
    )

    with pytest.raises(ConsistencyError):
        await _create(coordinator, owner)

    assert await _place_count(test_session_factory) == 0
    assert (await _fresh_user(test_session_factory, owner_id)).places == []


async def test_create_place_cancellation_rolls_back(
    coordinator, owner, test_session_factory, monkeypatch,
):
    monkeypatch.setattr(
        coordinator.users, "update_fields", _fail(asyncio.CancelledError()),
    )

    with pytest.raises(asyncio.CancelledError):
        await _create(coordinator, owner)

    assert await _place_count(test_session_factory) == 0
    assert coordinator.state == OperationState.ROLLED_BACK


async def test_concurrent_appends_never_lose_an_update(
    owner, geocoder, test_session_factory,
):
    """Two sessions read the same owner; the stale writer must fail, not overwrite."""
    async with test_session_factory() as db_a, test_session_factory() as db_b:
        stale_owner = await db_b.get(User, owner.id)
        assert stale_owner.places == []

        first = await _create(
            ConsistencyCoordinator(db_a, geocoder, FakeAssetStore()), owner, "From A",
        )
        with pytest.raises(ConsistencyError):
            await _create(
                ConsistencyCoordinator(db_b, geocoder, FakeAssetStore()), owner, "From B",
            )

    stored_owner = await _fresh_user(test_session_factory, owner.id)
    assert stored_owner.places == [str(first.id)]
    assert await _place_count(test_session_factory) == 1


# ─── delete_place ────────────────────────────────────────────────

async def test_delete_place_unlinks_and_releases_image(
    coordinator, owner, assets, test_session_factory,
):
    place = await _create(coordinator, owner)

    await coordinator.delete_place(place.id, owner.id)

    assert await _place_count(test_session_factory) == 0
    assert (await _fresh_user(test_session_factory, owner.id)).places == []
    assert assets.released == ["uploads/images/esb.png"]
    assert coordinator.state == OperationState.COMMITTED


async def test_delete_place_twice_is_not_found(coordinator, owner):
    place = await _create(coordinator, owner)
    await coordinator.delete_place(place.id, owner.id)

    with pytest.raises(PlaceNotFoundError):
        await coordinator.delete_place(place.id, owner.id)


async def test_delete_place_by_non_owner_is_forbidden(
    coordinator, owner, other_user, assets, test_session_factory,
):
    place = await _create(coordinator, owner)

    with pytest.raises(ForbiddenError):
        await coordinator.delete_place(place.id, other_user.id)

    assert await _place_count(test_session_factory) == 1
    assert (await _fresh_user(test_session_factory, owner.id)).places == [str(place.id)]
    assert assets.released == []


async def test_delete_place_second_write_failure_keeps_place(
    coordinator, owner, assets, test_session_factory, monkeypatch,
):
    place = await _create(coordinator, owner)
    owner_id, place_id = owner.id, place.id
    monkeypatch.setattr(
        coordinator.users, "update_fields", _fail(StorageError("boom", "update_user")),
    )

    with pytest.raises(ConsistencyError):
        await coordinator.delete_place(place_id, owner_id)

    assert await _place_count(test_session_factory) == 1
    assert (await _fresh_user(test_session_factory, owner_id)).places == [str(place_id)]
    assert assets.released == []
    assert coordinator.state == OperationState.ROLLED_BACK


async def test_delete_place_release_failure_is_swallowed(
    test_db, owner, geocoder, test_session_factory,
):
    coordinator = ConsistencyCoordinator(test_db, geocoder, FakeAssetStore(fail_release=True))
    place = await _create(coordinator, owner)

    await coordinator.delete_place(place.id, owner.id)

    assert await _place_count(test_session_factory) == 0
    assert coordinator.state == OperationState.COMMITTED


# ─── update_place ────────────────────────────────────────────────

async def test_update_place_changes_title_and_description(coordinator, owner, test_session_factory):
    place = await _create(coordinator, owner)

    await coordinator.update_place(place.id, owner.id, "New title", "New description")

    async with test_session_factory() as db:
        stored = await db.get(Place, place.id)
    assert (stored.title, stored.description) == ("New title", "New description")
    assert stored.creator_id == owner.id


async def test_update_place_by_non_owner_leaves_place_unmodified(
    coordinator, owner, other_user, test_session_factory,
):
    place = await _create(coordinator, owner)

    with pytest.raises(ForbiddenError):
        await coordinator.update_place(place.id, other_user.id, "Hijacked", "Hijacked text")

    async with test_session_factory() as db:
        stored = await db.get(Place, place.id)
    assert stored.title == "Empire State Building"


async def test_update_missing_place_is_not_found(coordinator, owner):
    with pytest.raises(PlaceNotFoundError):
        await coordinator.update_place(uuid.uuid4(), owner.id, "Title", "Description")
