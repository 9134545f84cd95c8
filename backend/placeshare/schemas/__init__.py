"""Pydantic Schemas: request/response validation for API endpoints.

Invariants:
    - Schemas validate at the system boundary; ORM models never leave the API layer raw
    - No response schema exposes password_hash
"""
