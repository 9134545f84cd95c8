"""API test fixtures: FastAPI test client with DB and collaborators overridden.

Invariants:
    - get_db yields sessions from the per-test in-memory database
    - Geocoder and asset store are in-memory fakes shared with the test
    - db_manager is patched so the readiness probe sees the test engine
"""

import pytest
from httpx import ASGITransport, AsyncClient

import placeshare.infrastructure.database as db_module
from placeshare.api.dependencies import get_asset_store, get_geocoder
from placeshare.core.domain_types import Coordinates
from placeshare.infrastructure.database import DatabaseSessionManager, get_db
from placeshare.main import app
from tests.api.http_helpers import ADDRESS
from tests.fakes import FakeAssetStore, FakeGeocoder


@pytest.fixture
def geocoder():
    return FakeGeocoder({ADDRESS: Coordinates(lat=40.7, lng=-74.0)})


@pytest.fixture
def assets():
    return FakeAssetStore()


@pytest.fixture
async def client(test_engine, test_session_factory, geocoder, assets):
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async def override_get_db():
        async with fake_manager.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_asset_store] = lambda: assets

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager

