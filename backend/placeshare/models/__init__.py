"""ORM Models: SQLAlchemy declarative models for users and places.

Invariants:
    - All models inherit from Base (db/base.py)
    - Place.creator_id and User.places reference each other by id only

Design Decisions:
    - One file per entity
    - All models imported here so Base.metadata knows every table before create_all
"""

from placeshare.models.user import User  # noqa: F401
from placeshare.models.place import Place  # noqa: F401
