"""Boundary Protocols: contracts between the coordinator and external collaborators.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - Geocoder.resolve raises GeocodeError (never returns None)
    - AssetStore.release may raise AssetError; callers treat it as best-effort

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
"""

from typing import Protocol

from placeshare.core.domain_types import Coordinates


class Geocoder(Protocol):
    """Resolves a free-text address into coordinates."""
    async def resolve(self, address: str) -> Coordinates: ...


class AssetStore(Protocol):
    """Stores uploaded files and releases them later."""
    async def store(self, data: bytes, content_type: str) -> str: ...
    async def release(self, path: str) -> None: ...
