"""Ownership Rules: pure checks and transforms behind the place<->user invariant.

Invariants:
    - Functions here are PURE: they return new values, never mutate inputs
    - append_place_ref never produces a duplicate reference
    - remove_place_ref removes every occurrence of the reference
    - ensure_owner raises before any caller reaches a mutation
"""

import re
from uuid import UUID

from placeshare.core.errors import ForbiddenError, ValidationError

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def ensure_owner(creator_id: UUID, requester_id: UUID, action: str) -> None:
    """Raise ForbiddenError unless requester_id created the place."""
    if str(creator_id) != str(requester_id):
        raise ForbiddenError(action)


def append_place_ref(refs: list[str], place_id: UUID) -> list[str]:
    """Return refs with place_id appended exactly once."""
    ref = str(place_id)
    if ref in refs:
        return list(refs)
    return [*refs, ref]


def remove_place_ref(refs: list[str], place_id: UUID) -> list[str]:
    """Return refs without place_id."""
    ref = str(place_id)
    return [r for r in refs if r != ref]


def normalize_email(email: str) -> str:
    """Trim and lower-case an email; raise ValidationError if malformed."""
    normalized = email.strip().lower()
    if not _EMAIL_PATTERN.match(normalized):
        raise ValidationError("Invalid email address.", "email")
    return normalized


def require_text(value: str, field: str, min_length: int = 1) -> str:
    """Strip value and enforce a minimum length."""
    stripped = value.strip()
    if len(stripped) < min_length:
        raise ValidationError(
            f"{field} must be at least {min_length} character(s) long.", field,
        )
    return stripped
