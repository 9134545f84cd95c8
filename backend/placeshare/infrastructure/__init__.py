"""Infrastructure Layer: database, geocoding, asset storage, logging.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All external calls map their failures onto core/errors.py types
"""
