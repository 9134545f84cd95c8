"""Place ORM: persists a located place and the id of the user who created it.

Invariants:
    - creator_id is set at insert and never updated
    - lat/lng are resolved from address at insert and never updated
    - version increments on every UPDATE (optimistic concurrency)

Design Decisions:
    - creator_id is a plain indexed column, not a ForeignKey
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Float, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from placeshare.core.domain_types import Coordinates
from placeshare.db.base import Base


class Place(Base):
    """Place created by exactly one user."""
    __tablename__ = "places"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    image: Mapped[str] = mapped_column(String(512), nullable=False)
    creator_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def location(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)
