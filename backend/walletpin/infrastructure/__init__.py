"""Infrastructure Layer — storage backends and cross-cutting concerns.

Invariants:
    - Every backend failure is mapped to StorageUnavailableError (core/errors.py)
    - Backends satisfy the protocols in core/repository_protocols.py structurally

Design Decisions:
    - Two backends per protocol: in-memory for tests/embedding, durable for deployment
"""
