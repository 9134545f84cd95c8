"""Services Layer: stores, credential manager, coordinator and account service.

Invariants:
    - Stores never commit; the coordinator and account service own transactions
    - Only ConsistencyCoordinator writes to both places and users
"""
