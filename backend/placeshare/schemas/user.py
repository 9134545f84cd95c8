"""User Schemas: login body, auth result and public user listing.

Invariants:
    - UserResponse never carries the password hash
    - AuthResponse serializes user_id as userId
"""

from uuid import UUID

from pydantic import BaseModel, Field

from placeshare.models.user import User


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=200)


class AuthResponse(BaseModel):
    """Returned by signup and login."""
    user_id: UUID = Field(serialization_alias="userId")
    email: str
    token: str


class UserResponse(BaseModel):
    """User response: public-facing account data."""
    id: UUID
    name: str
    email: str
    image: str
    places: list[str]

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            image=user.image,
            places=list(user.places),
        )


class UserListEnvelope(BaseModel):
    users: list[UserResponse]
