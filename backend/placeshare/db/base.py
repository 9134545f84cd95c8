"""SQLAlchemy Declarative Base: shared base class for users and places.

Invariants:
    - All models inherit from Base
    - Constraint names are deterministic (naming convention below)
    - No ForeignKey links places to users; the coordinator maintains that link
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all PlaceShare ORM models."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
