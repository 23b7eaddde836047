"""Remote Wallet Document Store — per-user wallet documents keyed by user id.

Invariants:
    - Documents use the camelCase field names from core/pin_record.py
    - merge() upserts: a missing document is created with createdAt set once
    - overwrite() replaces every PIN field; fields not given are nulled (createdAt kept)
    - SQL failures surface as DatabaseError (a StorageUnavailableError) via DatabaseSessionManager

Design Decisions:
    - Document-shaped API over the user_wallets table so the manager sees the same
      contract whether the backend is SQL or an in-memory dict
    - Unknown field names raise ValueError: the table has a fixed shape and a silently
      dropped field would be a lost write
"""

import copy
import logging

from walletpin.core.domain_types import UserId
from walletpin.core.pin_record import (
    PROTECTED, HASHED_PIN, PIN_SALT, PIN_SCHEME, CREATED_AT, UPDATED_AT, utcnow,
)
from walletpin.infrastructure.database import DatabaseSessionManager
from walletpin.models.user_wallet import UserWallet

logger = logging.getLogger(__name__)

# document field -> UserWallet column
FIELD_COLUMNS = {
    PROTECTED: "pin_protected",
    HASHED_PIN: "pin_hash",
    PIN_SALT: "pin_salt",
    PIN_SCHEME: "pin_scheme",
    CREATED_AT: "created_at",
    UPDATED_AT: "updated_at",
}


def _check_fields(fields: dict) -> None:
    unknown = set(fields) - set(FIELD_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown wallet document fields: {sorted(unknown)}")


class InMemoryWalletDocumentStore:
    """Dict-backed WalletDocumentStore for tests and in-process embedding."""

    def __init__(self):
        self.documents: dict[str, dict] = {}

    async def get(self, user_id: UserId) -> dict | None:
        doc = self.documents.get(user_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def merge(self, user_id: UserId, fields: dict) -> None:
        _check_fields(fields)
        doc = self.documents.setdefault(user_id, {CREATED_AT: utcnow()})
        doc.update(fields)

    async def overwrite(self, user_id: UserId, fields: dict) -> None:
        _check_fields(fields)
        previous = self.documents.get(user_id) or {}
        doc = {name: None for name in FIELD_COLUMNS}
        doc[PROTECTED] = False
        doc[CREATED_AT] = previous.get(CREATED_AT) or utcnow()
        doc[UPDATED_AT] = utcnow()
        doc.update(fields)
        self.documents[user_id] = doc


class SqlWalletDocumentStore:
    """WalletDocumentStore backed by the user_wallets table."""

    def __init__(self, db_manager: DatabaseSessionManager):
        self._db_manager = db_manager

    async def get(self, user_id: UserId) -> dict | None:
        async with self._db_manager.session() as db:
            row = await db.get(UserWallet, user_id)
            if row is None:
                return None
            return _to_document(row)

    async def merge(self, user_id: UserId, fields: dict) -> None:
        _check_fields(fields)
        async with self._db_manager.session() as db:
            row = await db.get(UserWallet, user_id)
            if row is None:
                row = UserWallet(user_id=user_id, created_at=utcnow(), updated_at=utcnow())
                db.add(row)
            _apply(row, fields)
            await db.commit()
        logger.debug(
            "Wallet document merged",
            extra={"user_id": user_id, "backend": "remote", "operation": "merge"},
        )

    async def overwrite(self, user_id: UserId, fields: dict) -> None:
        _check_fields(fields)
        async with self._db_manager.session() as db:
            row = await db.get(UserWallet, user_id)
            if row is None:
                row = UserWallet(user_id=user_id, created_at=utcnow())
                db.add(row)
            row.pin_protected = False
            row.pin_hash = None
            row.pin_salt = None
            row.pin_scheme = None
            row.updated_at = utcnow()
            _apply(row, fields)
            await db.commit()
        logger.debug(
            "Wallet document overwritten",
            extra={"user_id": user_id, "backend": "remote", "operation": "overwrite"},
        )


def _apply(row: UserWallet, fields: dict) -> None:
    for name, value in fields.items():
        if name == PROTECTED:
            value = bool(value)
        elif name in (CREATED_AT, UPDATED_AT) and value is None:
            continue
        setattr(row, FIELD_COLUMNS[name], value)


def _to_document(row: UserWallet) -> dict:
    return {
        PROTECTED: row.pin_protected,
        HASHED_PIN: row.pin_hash,
        PIN_SALT: row.pin_salt,
        PIN_SCHEME: row.pin_scheme,
        CREATED_AT: row.created_at,
        UPDATED_AT: row.updated_at,
    }
