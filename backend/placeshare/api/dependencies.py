"""API Dependencies: the authorization guard and collaborator providers.

Invariants:
    - require_user runs before the endpoint body: a missing, malformed, expired or
      forged token raises TokenError (401) before any store access
    - require_user only attaches identity to request.state; it never touches storage
    - Collaborators (credentials, geocoder, asset store) are built from Settings and
      overridable through app.dependency_overrides

Design Decisions:
    - HTTPBearer(auto_error=False): header parsing by FastAPI, error shape by us
    - Credential manager cached per process; geocoder and asset store are cheap
"""

import logging
from datetime import timedelta
from functools import lru_cache

from fastapi import Depends, Request, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from placeshare.config import get_settings
from placeshare.core.domain_types import AuthenticatedUser
from placeshare.core.errors import TokenError, ValidationError
from placeshare.core.repository_protocols import AssetStore, Geocoder
from placeshare.infrastructure.assets import LocalAssetStore
from placeshare.infrastructure.database import get_db
from placeshare.infrastructure.geocoding import GoogleGeocoder
from placeshare.services.accounts import AccountService
from placeshare.services.coordinator import ConsistencyCoordinator
from placeshare.services.credentials import CredentialManager

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_credential_manager() -> CredentialManager:
    settings = get_settings()
    return CredentialManager(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        token_ttl=timedelta(minutes=settings.token_ttl_minutes),
        bcrypt_rounds=settings.password_bcrypt_rounds,
    )


def get_geocoder() -> Geocoder:
    settings = get_settings()
    return GoogleGeocoder(
        api_key=settings.google_api_key,
        url=settings.geocoding_url,
        timeout_seconds=settings.geocoding_timeout_seconds,
    )


def get_asset_store() -> AssetStore:
    settings = get_settings()
    return LocalAssetStore(settings.upload_dir, settings.max_upload_bytes)


async def require_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    manager: CredentialManager = Depends(get_credential_manager),
) -> AuthenticatedUser:
    """Authorization guard for every place-mutating endpoint."""
    if credentials is None or not credentials.credentials:
        logger.info(
            "Request without bearer token rejected",
            extra={"path": request.url.path},
        )
        raise TokenError("missing")
    identity = manager.verify_token(credentials.credentials)
    request.state.user = identity
    return identity


def get_coordinator(
    db: AsyncSession = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
    assets: AssetStore = Depends(get_asset_store),
) -> ConsistencyCoordinator:
    return ConsistencyCoordinator(db, geocoder, assets)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    credentials: CredentialManager = Depends(get_credential_manager),
) -> AccountService:
    return AccountService(db, credentials)


async def discard_upload(assets: AssetStore, path: str) -> None:
    """Release an image stored for a request that then failed."""
    try:
        await assets.release(path)
    except Exception as e:
        logger.warning(f"Could not discard upload {path}: {e}")


async def read_upload(image: UploadFile, max_bytes: int) -> bytes:
    """Read an uploaded file, refusing anything over max_bytes without buffering it."""
    if image.size is not None and image.size > max_bytes:
        raise ValidationError(f"File exceeds the {max_bytes} byte limit.", "image")
    data = await image.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise ValidationError(f"File exceeds the {max_bytes} byte limit.", "image")
    return data
