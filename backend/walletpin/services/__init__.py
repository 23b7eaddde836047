"""Services Layer — orchestration of the PIN flow across both stores.

Invariants:
    - Services receive their stores by injection (no module-level singletons)
"""
