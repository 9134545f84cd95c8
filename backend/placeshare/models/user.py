"""User ORM: persists an account and the ordered ids of the places it owns.

Invariants:
    - email is unique and stored normalized (lower-case, trimmed)
    - password_hash never leaves the service layer
    - places holds Place ids as strings, each at most once
    - version increments on every UPDATE (optimistic concurrency)

Design Decisions:
    - JSON column for places: mirrors the document-style owned-references array
      (no join table, no foreign key)
    - version_id_col: a concurrent append to places fails with StaleDataError
      instead of silently overwriting
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from placeshare.db.base import Base


class User(Base):
    """Account that owns places."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(
        String(320), nullable=False, unique=True, index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    image: Mapped[str] = mapped_column(String(512), nullable=False)
    places: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __mapper_args__ = {"version_id_col": version}
