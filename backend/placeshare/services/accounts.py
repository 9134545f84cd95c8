"""Account Service: signup, login and user listing on top of the User Store.

Invariants:
    - Emails are normalized before every lookup and insert
    - A second signup with an equal normalized email raises DuplicateEmailError and
      creates no record (checked up front and enforced by the unique constraint)
    - Unknown email and wrong password raise the same InvalidCredentialsError
    - Password hashing runs in a worker thread so bcrypt never blocks the event loop
    - signup issues the token before committing: a signing failure leaves no user
      behind and surfaces as CredentialError (500), not as an auth failure
"""

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from placeshare.core.errors import (
    CredentialError, DuplicateEmailError, InvalidCredentialsError, TokenError,
)
from placeshare.core.ownership import normalize_email, require_text
from placeshare.infrastructure.database import storage_errors
from placeshare.models.user import User
from placeshare.services.credentials import CredentialManager
from placeshare.services.user_store import UserStore

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6


@dataclass(frozen=True)
class AuthResult:
    user_id: UUID
    email: str
    token: str


class AccountService:
    """User-facing account operations."""

    def __init__(self, db: AsyncSession, credentials: CredentialManager):
        self.db = db
        self.credentials = credentials
        self.users = UserStore(db)

    async def signup(
        self, name: str, email: str, password: str, image_path: str,
    ) -> AuthResult:
        name = require_text(name, "name")
        email = normalize_email(email)
        require_text(password, "password", PASSWORD_MIN_LENGTH)

        if await self.users.find_by_email(email) is not None:
            raise DuplicateEmailError()

        password_hash = await asyncio.to_thread(
            self.credentials.hash_password, password,
        )
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            image=image_path,
            places=[],
        )
        await self.users.insert(user)
        try:
            token = self.credentials.issue_token(user.id, user.email)
        except TokenError as e:
            await self.db.rollback()
            raise CredentialError("issue_token") from e
        with storage_errors("commit_signup"):
            await self.db.commit()
        logger.info("User signed up", extra={"user_id": user.id})

        return AuthResult(user_id=user.id, email=user.email, token=token)

    async def login(self, email: str, password: str) -> AuthResult:
        user = await self.users.find_by_email(email.strip().lower())
        if user is None:
            raise InvalidCredentialsError()

        valid = await asyncio.to_thread(
            self.credentials.verify_password, password, user.password_hash,
        )
        if not valid:
            logger.info("Login rejected", extra={"user_id": user.id})
            raise InvalidCredentialsError()

        token = self.credentials.issue_token(user.id, user.email)
        return AuthResult(user_id=user.id, email=user.email, token=token)

    async def list_users(self) -> list[User]:
        return await self.users.list_all()
