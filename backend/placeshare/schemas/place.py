"""Place Schemas: request bodies and public representation of places.

Invariants:
    - PlaceUpdate.title non-empty, PlaceUpdate.description >= 5 chars (stripped)
    - PlaceResponse.creator is the creator's user id
"""

from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from placeshare.models.place import Place


class PlaceUpdate(BaseModel):
    """Editable place fields."""
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=5, max_length=5000)

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty or whitespace")
        return v


class LocationResponse(BaseModel):
    lat: float
    lng: float


class PlaceResponse(BaseModel):
    """Place response: public-facing place data."""
    id: UUID
    title: str
    description: str
    image: str
    address: str
    location: LocationResponse
    creator: UUID

    @classmethod
    def from_model(cls, place: Place) -> "PlaceResponse":
        return cls(
            id=place.id,
            title=place.title,
            description=place.description,
            image=place.image,
            address=place.address,
            location=LocationResponse(lat=place.lat, lng=place.lng),
            creator=place.creator_id,
        )


class PlaceEnvelope(BaseModel):
    place: PlaceResponse


class PlaceListEnvelope(BaseModel):
    places: list[PlaceResponse]


class MessageResponse(BaseModel):
    message: str
