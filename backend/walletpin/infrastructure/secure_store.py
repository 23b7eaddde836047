"""Local Secure Store — device-scoped key-value storage, encrypted at rest.

Invariants:
    - Values are Fernet tokens on disk; plaintext values never touch the file
    - Absent keys (and absent files) read as None
    - Every IO or decryption failure is raised as StorageUnavailableError(backend="local")
    - Writes are atomic (temp file + os.replace) and serialized per store instance

Design Decisions:
    - Fernet (cryptography) for value encryption: authenticated, key rotation friendly,
      same primitive the desktop credentials manager uses
    - One JSON file per (device, account): keys stay the fixed wallet_pin/wallet_pin_salt
      names while two accounts on one device cannot overwrite each other
    - Identifiers hashed into file names: a user id can never escape secure_store_dir
    - Blocking file IO pushed to a worker thread via asyncio.to_thread
"""

import asyncio
import functools
import hashlib
import json
import logging
import os
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from walletpin.core.errors import StorageUnavailableError
from walletpin.core.repository_protocols import SecureStoreFactory

logger = logging.getLogger(__name__)


class InMemorySecureStore:
    """Dict-backed SecureStore for tests and in-process embedding."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value

    async def delete(self, key: str) -> None:
        self.values.pop(key, None)


class InMemorySecureStores:
    """SecureStoreFactory handing out one InMemorySecureStore per user id."""

    def __init__(self, store_type: type[InMemorySecureStore] = InMemorySecureStore):
        self.stores: dict[str, InMemorySecureStore] = {}
        self._store_type = store_type

    def __call__(self, user_id: str) -> InMemorySecureStore:
        store = self.stores.get(user_id)
        if store is None:
            store = self._store_type()
            self.stores[user_id] = store
        return store


class EncryptedFileSecureStore:
    """SecureStore persisted as a JSON map of key -> Fernet token."""

    def __init__(self, path: Path, key: str | bytes):
        self.path = Path(path)
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as e:
            raise StorageUnavailableError(
                "local", "open", "Secure store key is missing or malformed",
            ) from e
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        data = await asyncio.to_thread(self._read)
        token = data.get(key)
        if token is None:
            return None
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except (InvalidToken, UnicodeError) as e:
            logger.error(
                "Secure store entry failed to decrypt",
                extra={"backend": "local", "operation": "get"},
            )
            raise StorageUnavailableError("local", "decrypt") from e

    async def set(self, key: str, value: str) -> None:
        token = self._fernet.encrypt(value.encode("utf-8")).decode("ascii")
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = token
            await asyncio.to_thread(self._write, data)

    async def delete(self, key: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if key not in data:
                return
            del data[key]
            await asyncio.to_thread(self._write, data)

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageUnavailableError("local", "read") from e
        try:
            data = json.loads(raw or "{}")
        except ValueError as e:
            raise StorageUnavailableError("local", "read", "Secure store file is corrupt") from e
        if not isinstance(data, dict):
            raise StorageUnavailableError("local", "read", "Secure store file is corrupt")
        return data

    def _write(self, data: dict[str, str]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageUnavailableError("local", "write") from e


def _scope_name(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:32]


def secure_store_path(base_dir: str | Path, device_id: str, user_id: str) -> Path:
    """File backing the secure store of one account on one device."""
    return Path(base_dir) / _scope_name(device_id) / f"{_scope_name(user_id)}.json"


def open_secure_store(
    base_dir: str | Path, key: str | bytes, device_id: str, user_id: str,
) -> EncryptedFileSecureStore:
    return EncryptedFileSecureStore(secure_store_path(base_dir, device_id, user_id), key)


def device_secure_stores(
    base_dir: str | Path, key: str | bytes, device_id: str,
) -> SecureStoreFactory:
    """Factory opening each account's secure store on one device."""
    return functools.partial(open_secure_store, base_dir, key, device_id)
