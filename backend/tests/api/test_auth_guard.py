"""Authorization Guard: every place mutation requires a valid bearer token.

Tests cover:
    - missing header, wrong scheme, garbage and expired tokens -> 401
    - rejection happens before geocoding or asset storage
    - all rejections share one generic message
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from placeshare.api.dependencies import get_credential_manager
from placeshare.config import get_settings
from placeshare.services.credentials import CredentialManager
from tests.api.http_helpers import ADDRESS, image_file, signup


def _expired_token() -> str:
    issued_at = datetime.now(timezone.utc) - timedelta(minutes=61)
    manager = CredentialManager(
        get_settings().jwt_secret, bcrypt_rounds=4, clock=lambda: issued_at,
    )
    return manager.issue_token(uuid4(), "a@x.com")


@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "Basic dXNlcjpwYXNz"},
    {"Authorization": "Bearer not-a-token"},
    {"Authorization": "Bearer"},
])
async def test_create_place_without_valid_token_is_401(client, geocoder, assets, headers):
    res = await client.post(
        "/api/places",
        data={"title": "T", "description": "Long enough", "address": ADDRESS},
        files=image_file(),
        headers=headers,
    )

    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Authentication failed."
    assert geocoder.calls == []
    assert assets.files == {}


async def test_expired_token_is_401(client):
    res = await client.delete(
        f"/api/places/{uuid4()}",
        headers={"Authorization": f"Bearer {_expired_token()}"},
    )

    assert res.status_code == 401


async def test_patch_without_token_is_401_even_for_unknown_place(client):
    res = await client.patch(
        f"/api/places/{uuid4()}",
        json={"title": "x", "description": "long enough"},
    )

    assert res.status_code == 401


async def test_token_for_deleted_owner_gets_404_on_create(client):
    token = get_credential_manager().issue_token(
        uuid4(), "ghost@x.com",
    )

    res = await client.post(
        "/api/places",
        data={"title": "T", "description": "Long enough", "address": ADDRESS},
        files=image_file(),
        headers={"Authorization": f"Bearer {token}"},
    )

    assert res.status_code == 404


async def test_reads_do_not_require_token(client):
    owner = await signup(client)

    res = await client.get(f"/api/places/user/{owner['userId']}")

    assert res.status_code == 404
