"""Place Routes: read lookups plus guarded create, update and delete.

Invariants:
    - POST, PATCH and DELETE depend on require_user; unauthenticated requests never
      reach the coordinator or a store
    - Mutations go through ConsistencyCoordinator; reads use the stores directly
    - An image stored for a failed create is released before the error propagates
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from placeshare.api.dependencies import (
    discard_upload, get_asset_store, get_coordinator, read_upload, require_user,
)
from placeshare.config import get_settings
from placeshare.core.domain_types import AuthenticatedUser
from placeshare.core.errors import PlaceNotFoundError, UserNotFoundError
from placeshare.core.repository_protocols import AssetStore
from placeshare.infrastructure.database import get_db
from placeshare.schemas.place import (
    MessageResponse, PlaceEnvelope, PlaceListEnvelope, PlaceResponse, PlaceUpdate,
)
from placeshare.services.coordinator import ConsistencyCoordinator
from placeshare.services.place_store import PlaceStore
from placeshare.services.user_store import UserStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/places", tags=["places"])


@router.get("/user/{user_id}", response_model=PlaceListEnvelope)
async def get_places_by_user_id(
    user_id: UUID, db: AsyncSession = Depends(get_db),
):
    """List the places a user owns, in the order they were added."""
    user = await UserStore(db).find_by_id(user_id)
    if user is None:
        raise UserNotFoundError(str(user_id))
    places = await PlaceStore(db).find_by_owner(user_id)
    if not places:
        raise UserNotFoundError(str(user_id))
    order = {ref: i for i, ref in enumerate(user.places)}
    places.sort(key=lambda p: order.get(str(p.id), len(order)))
    return PlaceListEnvelope(
        places=[PlaceResponse.from_model(p) for p in places],
    )


@router.get("/{place_id}", response_model=PlaceEnvelope)
async def get_place_by_id(
    place_id: UUID, db: AsyncSession = Depends(get_db),
):
    place = await PlaceStore(db).find_by_id(place_id)
    if place is None:
        raise PlaceNotFoundError(str(place_id))
    return PlaceEnvelope(place=PlaceResponse.from_model(place))


@router.post(
    "", response_model=PlaceEnvelope, status_code=status.HTTP_201_CREATED,
)
async def create_place(
    identity: AuthenticatedUser = Depends(require_user),
    title: str = Form(..., min_length=1, max_length=200),
    description: str = Form(..., min_length=5, max_length=5000),
    address: str = Form(..., min_length=1, max_length=500),
    image: UploadFile = File(...),
    coordinator: ConsistencyCoordinator = Depends(get_coordinator),
    assets: AssetStore = Depends(get_asset_store),
):
    data = await read_upload(image, get_settings().max_upload_bytes)
    image_path = await assets.store(data, image.content_type or "")
    try:
        place = await coordinator.create_place(
            identity.user_id, title, description, address, image_path,
        )
    except Exception:
        await discard_upload(assets, image_path)
        raise
    return PlaceEnvelope(place=PlaceResponse.from_model(place))


@router.patch("/{place_id}", response_model=PlaceEnvelope)
async def update_place(
    place_id: UUID,
    body: PlaceUpdate,
    identity: AuthenticatedUser = Depends(require_user),
    coordinator: ConsistencyCoordinator = Depends(get_coordinator),
):
    place = await coordinator.update_place(
        place_id, identity.user_id, body.title, body.description,
    )
    return PlaceEnvelope(place=PlaceResponse.from_model(place))


@router.delete("/{place_id}", response_model=MessageResponse)
async def delete_place(
    place_id: UUID,
    identity: AuthenticatedUser = Depends(require_user),
    coordinator: ConsistencyCoordinator = Depends(get_coordinator),
):
    await coordinator.delete_place(place_id, identity.user_id)
    return MessageResponse(message="Place Deleted.")
