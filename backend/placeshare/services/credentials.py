"""Identity & Credential Manager: password hashing and signed session tokens.

Invariants:
    - verify_password returns False on mismatch; raises CredentialError only
      when the hashing primitive itself fails
    - Tokens carry sub (user id), email, iat and exp; exp = iat + token_ttl
    - verify_token collapses expired, malformed and badly-signed tokens into
      a single TokenError (no hint about which check failed)
    - The signing secret is a constructor argument, never read from the environment

Design Decisions:
    - passlib CryptContext (bcrypt) for hashing, python-jose for HS256 JWTs
    - Clock injected for issuance so token lifetime is testable without sleeping
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from placeshare.core.domain_types import AuthenticatedUser, UserId
from placeshare.core.errors import CredentialError, TokenError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialManager:
    """Hashes passwords and issues/verifies session tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        token_ttl: timedelta = timedelta(hours=1),
        bcrypt_rounds: int = 12,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._secret = secret
        self.algorithm = algorithm
        self.token_ttl = token_ttl
        self._clock = clock
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds,
        )

    # ─── Passwords ──────────────────────────────────────────────

    def hash_password(self, plaintext: str) -> str:
        try:
            return self.pwd_context.hash(plaintext)
        except Exception as e:
            logger.error(f"Password hashing failed: {type(e).__name__}")
            raise CredentialError("hash") from e

    def verify_password(self, plaintext: str, hashed: str) -> bool:
        try:
            return self.pwd_context.verify(plaintext, hashed)
        except Exception as e:
            logger.error(f"Password verification failed: {type(e).__name__}")
            raise CredentialError("verify") from e

    # ─── Tokens ─────────────────────────────────────────────────

    def issue_token(self, user_id: UUID, email: str) -> str:
        if not self._secret:
            logger.error("Token signing key is not configured")
            raise TokenError("signing_key_unavailable")
        issued_at = self._clock()
        claims = {
            "sub": str(user_id),
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self.token_ttl,
        }
        try:
            return jwt.encode(claims, self._secret, algorithm=self.algorithm)
        except JWTError as e:
            logger.error(f"Token signing failed: {e}")
            raise TokenError("signing_failed") from e

    def verify_token(self, token: str) -> AuthenticatedUser:
        if not self._secret:
            raise TokenError("signing_key_unavailable")
        try:
            payload = jwt.decode(
                token, self._secret, algorithms=[self.algorithm],
            )
            return AuthenticatedUser(
                user_id=UserId(UUID(payload["sub"])),
                email=payload["email"],
            )
        except (JWTError, KeyError, ValueError, TypeError) as e:
            logger.info(f"Token rejected: {type(e).__name__}")
            raise TokenError("invalid") from e
