"""PlaceShare Application Package: places owned by users, kept consistent.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
