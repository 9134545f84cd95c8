"""Service test fixtures: seeded users and a coordinator wired to fakes."""

import pytest

from placeshare.core.domain_types import Coordinates
from placeshare.models.user import User
from placeshare.services.coordinator import ConsistencyCoordinator
from tests.fakes import FakeAssetStore, FakeGeocoder

NYC = Coordinates(lat=40.7, lng=-74.0)


async def make_user(db, name: str, email: str) -> User:
    user = User(
        name=name, email=email, password_hash="not-a-real-hash",
        image="uploads/images/avatar.png", places=[],
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def owner(test_db):
    return await make_user(test_db, "Owner One", "u1@x.com")


@pytest.fixture
async def other_user(test_db):
    return await make_user(test_db, "User Two", "u2@x.com")


@pytest.fixture
def geocoder():
    return FakeGeocoder({"20 W 34th St, New York": NYC})


@pytest.fixture
def assets():
    return FakeAssetStore()


@pytest.fixture
def coordinator(test_db, geocoder, assets):
    return ConsistencyCoordinator(test_db, geocoder, assets)
