"""PIN Credential Manager — set, verify, remove and query a user's wallet PIN.

Invariants:
    - Each user's local entries live in that user's own secure store (SecureStoreFactory);
      one user's PIN never verifies or protects another user
    - The local secure store is consulted first; the remote document only when local state is absent
    - set_pin succeeds only if BOTH the local write and the remote upsert succeed; on a
      remote failure the local entries present before the call are restored
    - remove_pin nulls the remote PIN fields (overwrite), never deletes the document
    - set_pin/verify_pin/remove_pin/is_pin_protected/change_pin return booleans and never
      raise: wrong PIN, missing PIN and storage failure are indistinguishable to callers
    - check_pin exposes the four-way outcome for internal callers and logs
    - A digest is verified with the scrypt costs stored beside it, not the configured ones
    - Operations on one user are serialized per UserLocks registry; different users run concurrently
    - No PIN, digest or salt is ever logged

Design Decisions:
    - Stores injected at construction: no module-level clients, test doubles drop in
    - Local stores opened per operation through the factory, inside the failure boundary,
      so a missing or broken local key reads as a storage failure
    - Remote wins on reconcile(): it is the record every device shares
    - A successful match against a legacy sha256 record, or a scrypt record with other
      costs than configured, re-hashes the PIN under the configured scheme; an upgrade
      failure never turns a match into a failure
    - Hashing runs in a worker thread: scrypt is CPU and memory bound
"""

import asyncio
import logging
import weakref

from walletpin.core.domain_types import (
    PinCheckResult, PinScheme, StorageKey, StoreBackend, UserId,
)
from walletpin.core.errors import (
    InvalidPinFormatError, StorageUnavailableError, WalletPinError,
)
from walletpin.core.pin_hashing import (
    ScryptParams, digests_match, generate_salt, hash_pin,
)
from walletpin.core.pin_policy import check_pin_format
from walletpin.core.pin_record import (
    PinRecord, is_protected_document, record_from_local, record_from_remote,
)
from walletpin.core.repository_protocols import (
    SecureStore, SecureStoreFactory, WalletDocumentStore,
)

logger = logging.getLogger(__name__)

LocalSnapshot = dict[str, str | None]


class UserLocks:
    """Per-user asyncio locks, dropped once no operation holds them."""

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def for_user(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock


class PinCredentialManager:
    """Wallet PIN flow over per-user local secure stores and a remote wallet document."""

    def __init__(
        self,
        secure_stores: SecureStoreFactory,
        document_store: WalletDocumentStore,
        scheme: PinScheme = PinScheme.SCRYPT,
        scrypt_params: ScryptParams | None = None,
        pin_min_length: int = 4,
        pin_max_length: int = 8,
        locks: UserLocks | None = None,
    ):
        self._secure_stores = secure_stores
        self._remote = document_store
        self._scheme = scheme
        self._params = scrypt_params or ScryptParams()
        self._pin_min_length = pin_min_length
        self._pin_max_length = pin_max_length
        self._locks = locks or UserLocks()

    # ─── Public boolean operations ──────────────────────────────

    async def set_pin(self, user_id: UserId, pin: str) -> bool:
        """Store a new PIN for user_id on both stores."""
        if not self._pin_format_ok(user_id, pin, "set_pin"):
            return False
        async with self._locks.for_user(user_id):
            try:
                local = self._secure_stores(user_id)
            except Exception as e:
                self._log_failure("set_pin", user_id, e)
                return False
            return await self._store_new_pin(user_id, local, pin, "set_pin")

    async def verify_pin(self, user_id: UserId, candidate_pin: str) -> bool:
        return await self.check_pin(user_id, candidate_pin) is PinCheckResult.MATCHED

    async def remove_pin(self, user_id: UserId) -> bool:
        """Delete local entries and tombstone the remote record."""
        async with self._locks.for_user(user_id):
            try:
                local = self._secure_stores(user_id)
                snapshot = await _snapshot_local(local)
            except Exception as e:
                self._log_failure("remove_pin", user_id, e)
                return False
            try:
                await _clear_local(local)
                await self._remote.overwrite(
                    user_id, PinRecord.tombstone().to_remote_fields(),
                )
            except Exception as e:
                self._log_failure("remove_pin", user_id, e)
                await self._restore_local(user_id, local, snapshot)
                return False
        logger.info(
            "Wallet PIN removed",
            extra={"user_id": user_id, "operation": "remove_pin"},
        )
        return True

    async def is_pin_protected(self, user_id: UserId) -> bool:
        """Local digest presence wins; otherwise the remote protected flag."""
        try:
            local = self._secure_stores(user_id)
            if await local.get(StorageKey.PIN.value):
                return True
            return is_protected_document(await self._remote.get(user_id))
        except Exception as e:
            self._log_failure("is_pin_protected", user_id, e)
            return False

    async def change_pin(
        self, user_id: UserId, current_pin: str, new_pin: str,
    ) -> bool:
        """Replace the PIN after proving knowledge of the current one."""
        if not self._pin_format_ok(user_id, new_pin, "change_pin"):
            return False
        async with self._locks.for_user(user_id):
            try:
                local = self._secure_stores(user_id)
            except Exception as e:
                self._log_failure("change_pin", user_id, e)
                return False
            result = await self._check_locked(
                user_id, local, current_pin, "change_pin", upgrade=False,
            )
            if result is not PinCheckResult.MATCHED:
                logger.info(
                    "Wallet PIN change refused",
                    extra={
                        "user_id": user_id, "operation": "change_pin",
                        "result": result.value,
                    },
                )
                return False
            return await self._store_new_pin(user_id, local, new_pin, "change_pin")

    # ─── Diagnostic / maintenance operations ────────────────────

    async def check_pin(
        self, user_id: UserId, candidate_pin: str,
    ) -> PinCheckResult:
        """Verify candidate_pin and report why it failed, if it did."""
        async with self._locks.for_user(user_id):
            try:
                local = self._secure_stores(user_id)
            except Exception as e:
                self._log_failure("verify_pin", user_id, e)
                return PinCheckResult.STORAGE_UNAVAILABLE
            return await self._check_locked(user_id, local, candidate_pin, "verify_pin")

    async def reconcile(self, user_id: UserId) -> PinRecord | None:
        """Make local state match the remote record (remote wins).

        Returns the authoritative record, or None when no PIN is configured.
        Raises StorageUnavailableError if either store fails or the remote
        record cannot be read.
        """
        async with self._locks.for_user(user_id):
            local = self._secure_stores(user_id)
            record = record_from_remote(await self._remote.get(user_id))
            if record and record.protected:
                await _write_local(local, record)
            else:
                await _clear_local(local)
                record = None
        logger.info(
            "Wallet PIN state reconciled",
            extra={
                "user_id": user_id, "operation": "reconcile",
                "result": "protected" if record else "not_configured",
            },
        )
        return record

    # ─── Internals ──────────────────────────────────────────────

    async def _check_locked(
        self, user_id: UserId, local: SecureStore, candidate_pin: str,
        operation: str, upgrade: bool = True,
    ) -> PinCheckResult:
        try:
            record = await self._resolve_record(user_id, local, operation)
            if record is None:
                return PinCheckResult.NOT_CONFIGURED
            digest = await asyncio.to_thread(
                hash_pin, candidate_pin, record.salt, record.scheme,
                record.params or self._params,
            )
        except Exception as e:
            self._log_failure(operation, user_id, e)
            return PinCheckResult.STORAGE_UNAVAILABLE

        if not digests_match(digest, record.hashed_pin):
            logger.info(
                "Wallet PIN mismatch",
                extra={"user_id": user_id, "operation": operation, "result": "mismatch"},
            )
            return PinCheckResult.MISMATCH

        if upgrade and self._needs_upgrade(record):
            logger.info(
                "Upgrading wallet PIN hash",
                extra={
                    "user_id": user_id, "operation": operation,
                    "scheme": self._scheme.value,
                },
            )
            await self._store_new_pin(user_id, local, candidate_pin, "upgrade_pin")
        return PinCheckResult.MATCHED

    async def _resolve_record(
        self, user_id: UserId, local: SecureStore, operation: str,
    ) -> PinRecord | None:
        """Local record if the device has a salt, else the remote one (backfilled)."""
        salt = await local.get(StorageKey.SALT.value)
        if salt:
            return record_from_local(
                await local.get(StorageKey.PIN.value),
                salt,
                await local.get(StorageKey.SCHEME.value),
            )

        record = record_from_remote(await self._remote.get(user_id))
        if record is None or not record.protected:
            return None
        try:
            await _write_local(local, record)
        except Exception as e:
            # Backfill is a cache fill; the remote record is still usable
            logger.warning(
                f"Local backfill failed: {e}",
                extra={
                    "user_id": user_id, "operation": operation,
                    "backend": StoreBackend.LOCAL.value,
                },
            )
        return record

    async def _store_new_pin(
        self, user_id: UserId, local: SecureStore, pin: str, operation: str,
    ) -> bool:
        try:
            salt = generate_salt()
            digest = await asyncio.to_thread(
                hash_pin, pin, salt, self._scheme, self._params,
            )
            record = PinRecord.protected_with(digest, salt, self._scheme, self._params)
            snapshot = await _snapshot_local(local)
        except Exception as e:
            self._log_failure(operation, user_id, e)
            return False

        try:
            await _write_local(local, record)
            await self._remote.merge(user_id, record.to_remote_fields())
        except Exception as e:
            self._log_failure(operation, user_id, e)
            await self._restore_local(user_id, local, snapshot)
            return False

        logger.info(
            "Wallet PIN stored",
            extra={
                "user_id": user_id, "operation": operation,
                "scheme": record.scheme_tag,
            },
        )
        return True

    def _needs_upgrade(self, record: PinRecord) -> bool:
        """sha256 records move to the configured scheme; scrypt is never downgraded."""
        if record.scheme is PinScheme.SHA256:
            return self._scheme is not PinScheme.SHA256
        return self._scheme is PinScheme.SCRYPT and record.params != self._params

    async def _restore_local(
        self, user_id: UserId, local: SecureStore, snapshot: LocalSnapshot,
    ) -> None:
        try:
            for key, value in snapshot.items():
                if value is None:
                    await local.delete(key)
                else:
                    await local.set(key, value)
        except Exception as e:
            logger.error(
                f"Failed to restore local PIN entries: {e}",
                extra={"user_id": user_id, "backend": StoreBackend.LOCAL.value},
                exc_info=True,
            )

    def _pin_format_ok(self, user_id: UserId, pin: str, operation: str) -> bool:
        try:
            check_pin_format(pin, self._pin_min_length, self._pin_max_length)
        except InvalidPinFormatError as e:
            self._log_failure(operation, user_id, e)
            return False
        return True

    def _log_failure(self, operation: str, user_id: UserId, exc: Exception) -> None:
        if isinstance(exc, StorageUnavailableError):
            logger.error(
                f"Wallet PIN {operation} failed: {exc.message}",
                extra={
                    "user_id": user_id, "operation": operation,
                    "error_code": exc.code, "backend": exc.backend,
                },
            )
        elif isinstance(exc, WalletPinError):
            logger.warning(
                f"Wallet PIN {operation} rejected: {exc.message}",
                extra={
                    "user_id": user_id, "operation": operation,
                    "error_code": exc.code,
                },
            )
        else:
            logger.error(
                f"Wallet PIN {operation} failed unexpectedly: {exc}",
                extra={"user_id": user_id, "operation": operation},
                exc_info=True,
            )


async def _write_local(local: SecureStore, record: PinRecord) -> None:
    for key, value in record.to_local_entries().items():
        await local.set(key.value, value)


async def _clear_local(local: SecureStore) -> None:
    for key in StorageKey:
        await local.delete(key.value)


async def _snapshot_local(local: SecureStore) -> LocalSnapshot:
    return {key.value: await local.get(key.value) for key in StorageKey}
