"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - A SecureStore holds exactly one account; the manager reaches it through a SecureStoreFactory
    - Implementations raise StorageUnavailableError on failure, never return sentinel errors

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: both backends do IO (file, database)
"""

from typing import Callable, Protocol

from walletpin.core.domain_types import UserId


class SecureStore(Protocol):
    """Device-local encrypted key-value store. Absent keys read as None."""
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...
    async def delete(self, key: str) -> None: ...


# user id -> that account's secure store
SecureStoreFactory = Callable[[UserId], SecureStore]


class WalletDocumentStore(Protocol):
    """Remote per-user wallet document, addressed by user id."""
    async def get(self, user_id: UserId) -> dict | None: ...
    async def merge(self, user_id: UserId, fields: dict) -> None: ...
    async def overwrite(self, user_id: UserId, fields: dict) -> None: ...
