"""Core Layer — pure PIN logic and boundary protocols, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Hashing, policy, and record mapping are pure and deterministic (salt generation aside)

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
