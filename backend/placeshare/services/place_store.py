"""Place Store: record-level CRUD over the places table.

Invariants:
    - Lookups return None / [] when nothing matches; backend failures raise StorageError
    - Writes flush but never commit (the caller owns the transaction)
    - creator_id, lat and lng are not updatable through update_fields
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from placeshare.core.errors import ValidationError
from placeshare.infrastructure.database import storage_errors
from placeshare.models.place import Place

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = frozenset({"id", "creator_id", "lat", "lng", "version"})


class PlaceStore:
    """Place persistence bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, place_id: UUID) -> Place | None:
        with storage_errors("find_place"):
            result = await self.db.execute(
                select(Place).where(Place.id == place_id),
            )
            return result.scalar_one_or_none()

    async def find_by_owner(self, user_id: UUID) -> list[Place]:
        with storage_errors("find_places_by_owner"):
            result = await self.db.execute(
                select(Place)
                .where(Place.creator_id == user_id)
                .order_by(Place.created_at),
            )
            return list(result.scalars().all())

    async def insert(self, place: Place) -> Place:
        with storage_errors("insert_place"):
            self.db.add(place)
            await self.db.flush()
        logger.debug("Place inserted", extra={"place_id": place.id})
        return place

    async def update_fields(self, place: Place, **fields: object) -> Place:
        forbidden = IMMUTABLE_FIELDS.intersection(fields)
        if forbidden:
            raise ValidationError(
                f"Field(s) cannot be changed: {', '.join(sorted(forbidden))}",
                sorted(forbidden)[0],
            )
        with storage_errors("update_place"):
            for name, value in fields.items():
                setattr(place, name, value)
            await self.db.flush()
        return place

    async def delete(self, place: Place) -> None:
        with storage_errors("delete_place"):
            await self.db.delete(place)
            await self.db.flush()
        logger.debug("Place deleted", extra={"place_id": place.id})
