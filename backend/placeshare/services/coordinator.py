"""Consistency Coordinator: create/delete places as all-or-nothing cross-entity writes.

Invariants:
    - For every Place p, p.creator_id names a User u with str(p.id) exactly once in u.places
    - This class is the only writer that touches both the places and users tables
    - create/delete run every write inside one atomic_scope: both writes commit or
      neither does; a rolled-back operation raises ConsistencyError and leaves no trace
    - Ownership is checked after the existence lookup and before any mutation
    - Geocoding happens before the scope opens; a GeocodeError has no side effects
    - Image release after delete is best-effort: failures are logged, never raised
    - state follows INITIATED -> VALIDATED -> COMMITTED | ROLLED_BACK

Design Decisions:
    - One coordinator per request (bound to the request's AsyncSession)
    - No retries: a ConsistencyError is surfaced to the caller as-is
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from placeshare.core.domain_types import (
    OperationState, PlaceId, TERMINAL_STATES, UserId,
)
from placeshare.core.errors import OwnerNotFoundError, PlaceNotFoundError
from placeshare.core.ownership import (
    append_place_ref, ensure_owner, remove_place_ref, require_text,
)
from placeshare.core.repository_protocols import AssetStore, Geocoder
from placeshare.infrastructure.database import atomic_scope, storage_errors
from placeshare.models.place import Place
from placeshare.services.place_store import PlaceStore
from placeshare.services.user_store import UserStore

logger = logging.getLogger(__name__)

DESCRIPTION_MIN_LENGTH = 5


class ConsistencyCoordinator:
    """Executes place mutations that must keep users.places in sync."""

    def __init__(
        self, db: AsyncSession, geocoder: Geocoder, assets: AssetStore,
    ):
        self.db = db
        self.geocoder = geocoder
        self.assets = assets
        self.places = PlaceStore(db)
        self.users = UserStore(db)
        self.state: OperationState | None = None

    async def create_place(
        self,
        owner_id: UserId,
        title: str,
        description: str,
        address: str,
        image_path: str,
    ) -> Place:
        self._transition(OperationState.INITIATED, "create_place")
        title = require_text(title, "title")
        description = require_text(
            description, "description", DESCRIPTION_MIN_LENGTH,
        )
        address = require_text(address, "address")

        coordinates = await self.geocoder.resolve(address)

        owner = await self.users.find_by_id(owner_id)
        if owner is None:
            raise OwnerNotFoundError(str(owner_id))
        self._transition(OperationState.VALIDATED, "create_place")

        place = Place(
            id=PlaceId(uuid.uuid4()),
            title=title,
            description=description,
            address=address,
            lat=coordinates.lat,
            lng=coordinates.lng,
            image=image_path,
            creator_id=owner.id,
        )
        scope = None
        try:
            async with atomic_scope(self.db, "create_place") as scope:
                await self.places.insert(place)
                await self.users.update_fields(
                    owner, places=append_place_ref(owner.places, place.id),
                )
        finally:
            if scope is not None:
                self._transition(scope.state, "create_place")

        logger.info(
            "Place created",
            extra={"place_id": place.id, "user_id": owner.id},
        )
        return place

    async def delete_place(self, place_id: PlaceId, requester_id: UserId) -> None:
        self._transition(OperationState.INITIATED, "delete_place")
        place = await self.places.find_by_id(place_id)
        if place is None:
            raise PlaceNotFoundError(str(place_id))
        ensure_owner(place.creator_id, requester_id, "delete")
        creator = await self.users.find_by_id(place.creator_id)
        if creator is None:
            logger.warning(
                "Place references a missing creator; deleting place only",
                extra={"place_id": place.id, "user_id": place.creator_id},
            )
        self._transition(OperationState.VALIDATED, "delete_place")

        image_path = place.image
        scope = None
        try:
            async with atomic_scope(self.db, "delete_place") as scope:
                await self.places.delete(place)
                if creator is not None:
                    await self.users.update_fields(
                        creator,
                        places=remove_place_ref(creator.places, place_id),
                    )
        finally:
            if scope is not None:
                self._transition(scope.state, "delete_place")

        logger.info(
            "Place deleted",
            extra={"place_id": place_id, "user_id": requester_id},
        )
        await self._release_asset(image_path)

    async def update_place(
        self,
        place_id: PlaceId,
        requester_id: UserId,
        title: str,
        description: str,
    ) -> Place:
        place = await self.places.find_by_id(place_id)
        if place is None:
            raise PlaceNotFoundError(str(place_id))
        ensure_owner(place.creator_id, requester_id, "edit")
        title = require_text(title, "title")
        description = require_text(
            description, "description", DESCRIPTION_MIN_LENGTH,
        )

        await self.places.update_fields(
            place, title=title, description=description,
        )
        with storage_errors("commit_update_place"):
            await self.db.commit()
        logger.info(
            "Place updated",
            extra={"place_id": place.id, "user_id": requester_id},
        )
        return place

    async def _release_asset(self, path: str) -> None:
        """Post-commit hook: the invariant already holds, so failure is only logged."""
        try:
            await self.assets.release(path)
        except Exception as e:
            logger.warning(
                f"Could not release asset {path}: {e}",
                extra={"operation": "release_asset"},
            )

    def _transition(self, state: OperationState, operation: str) -> None:
        self.state = state
        level = logging.INFO if state in TERMINAL_STATES else logging.DEBUG
        logger.log(
            level,
            f"{operation} -> {state.value}",
            extra={"operation": operation, "state": state.value},
        )
