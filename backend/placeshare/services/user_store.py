"""User Store: record-level CRUD over the users table, including owned-place refs.

Invariants:
    - Lookups return None / [] when nothing matches; backend failures raise StorageError
    - Writes flush but never commit (the caller owns the transaction)
    - A unique-email violation on insert raises DuplicateEmailError
    - places is always replaced with a new list, never mutated in place
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from placeshare.core.errors import DuplicateEmailError, ValidationError
from placeshare.infrastructure.database import storage_errors
from placeshare.models.user import User

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = frozenset({"id", "email", "version"})


class UserStore:
    """User persistence bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: UUID) -> User | None:
        with storage_errors("find_user"):
            result = await self.db.execute(
                select(User).where(User.id == user_id),
            )
            return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> User | None:
        with storage_errors("find_user_by_email"):
            result = await self.db.execute(
                select(User).where(User.email == email),
            )
            return result.scalar_one_or_none()

    async def list_all(self) -> list[User]:
        with storage_errors("list_users"):
            result = await self.db.execute(
                select(User).order_by(User.created_at),
            )
            return list(result.scalars().all())

    async def insert(self, user: User) -> User:
        with storage_errors("insert_user"):
            self.db.add(user)
            try:
                await self.db.flush()
            except IntegrityError as e:
                logger.info("Signup rejected by unique email constraint")
                raise DuplicateEmailError() from e
        logger.debug("User inserted", extra={"user_id": user.id})
        return user

    async def update_fields(self, user: User, **fields: object) -> User:
        forbidden = IMMUTABLE_FIELDS.intersection(fields)
        if forbidden:
            raise ValidationError(
                f"Field(s) cannot be changed: {', '.join(sorted(forbidden))}",
                sorted(forbidden)[0],
            )
        with storage_errors("update_user"):
            for name, value in fields.items():
                if name == "places":
                    value = list(value)
                setattr(user, name, value)
            await self.db.flush()
        return user

    async def delete(self, user: User) -> None:
        with storage_errors("delete_user"):
            await self.db.delete(user)
            await self.db.flush()
