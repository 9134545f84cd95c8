"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - UserId and PlaceId wrap UUIDs; never pass bare strings between layers
    - Coordinates is immutable once built
    - OperationState encodes the create/delete lifecycle; ROLLED_BACK and
      COMMITTED are terminal
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
PlaceId = NewType("PlaceId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Coordinates:
    """Latitude/longitude pair resolved from an address."""
    lat: float
    lng: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity carried by a verified session token."""
    user_id: UserId
    email: str


# ─── Enums ───────────────────────────────────────────────────────

class OperationState(str, Enum):
    """Lifecycle of a cross-entity operation."""
    INITIATED = "initiated"
    VALIDATED = "validated"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


TERMINAL_STATES = frozenset({OperationState.COMMITTED, OperationState.ROLLED_BACK})
