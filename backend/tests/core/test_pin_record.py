"""Tests for PinRecord and its store mappings. Pure, no IO."""

from datetime import datetime, timezone

import pytest

from walletpin.core.domain_types import PinScheme, StorageKey
from walletpin.core.errors import UnsupportedPinSchemeError
from walletpin.core.pin_hashing import ScryptParams
from walletpin.core.pin_record import (
    HASHED_PIN, PIN_SALT, PIN_SCHEME, PROTECTED, UPDATED_AT,
    PinRecord, is_protected_document, record_from_local, record_from_remote,
)


def test_protected_record_requires_hash_and_salt():
    with pytest.raises(ValueError):
        PinRecord(hashed_pin=None, salt="aa", protected=True)
    with pytest.raises(ValueError):
        PinRecord(hashed_pin="aa", salt="", protected=True)


def test_tombstone_remote_fields():
    fields = PinRecord.tombstone().to_remote_fields()
    assert fields[PROTECTED] is False
    assert fields[HASHED_PIN] is None
    assert fields[PIN_SALT] is None
    assert fields[PIN_SCHEME] is None
    assert isinstance(fields[UPDATED_AT], datetime)


def test_protected_remote_fields():
    record = PinRecord.protected_with("ff" * 32, "aa" * 16, PinScheme.SCRYPT)
    fields = record.to_remote_fields()
    assert fields[PROTECTED] is True
    assert fields[HASHED_PIN] == "ff" * 32
    assert fields[PIN_SALT] == "aa" * 16
    assert fields[PIN_SCHEME] == "scrypt"


def test_local_entries():
    record = PinRecord.protected_with("ff" * 32, "aa" * 16, PinScheme.SHA256)
    assert record.to_local_entries() == {
        StorageKey.PIN: "ff" * 32,
        StorageKey.SALT: "aa" * 16,
        StorageKey.SCHEME: "sha256",
    }
    assert PinRecord.tombstone().to_local_entries() == {}


def test_record_from_remote_missing():
    assert record_from_remote(None) is None
    assert record_from_remote({}) is None


def test_record_from_remote_mobile_document():
    record = record_from_remote({
        PROTECTED: True, HASHED_PIN: "ff", PIN_SALT: "aa",
        UPDATED_AT: "2024-05-01T12:00:00.000Z",
    })
    assert record.protected
    assert record.scheme is PinScheme.SHA256
    assert record.updated_at == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)


def test_record_from_remote_naive_datetime_gets_utc():
    record = record_from_remote({
        PROTECTED: True, HASHED_PIN: "ff", PIN_SALT: "aa", PIN_SCHEME: "scrypt",
        UPDATED_AT: datetime(2025, 1, 2, 3, 4, 5),
    })
    assert record.scheme is PinScheme.SCRYPT
    assert record.updated_at.tzinfo is timezone.utc


def test_record_from_remote_protected_without_salt_is_unusable():
    assert record_from_remote({PROTECTED: True, HASHED_PIN: "ff", PIN_SALT: None}) is None


def test_record_from_remote_tombstone_drops_stale_values():
    record = record_from_remote({PROTECTED: False, HASHED_PIN: "ff", PIN_SALT: "aa"})
    assert record.protected is False
    assert record.hashed_pin is None
    assert record.salt is None


def test_record_from_remote_truthy_non_bool_is_not_protected():
    record = record_from_remote({PROTECTED: "true", HASHED_PIN: "ff", PIN_SALT: "aa"})
    assert record.protected is False


def test_record_from_local():
    assert record_from_local(None, "aa", None) is None
    assert record_from_local("ff", None, "scrypt") is None
    record = record_from_local("ff", "aa", None)
    assert record.protected
    assert record.scheme is PinScheme.SHA256


def test_scrypt_costs_in_both_stores():
    record = PinRecord.protected_with(
        "ff" * 32, "aa" * 16, PinScheme.SCRYPT, ScryptParams(n=2 ** 15, r=8, p=1),
    )
    assert record.to_remote_fields()[PIN_SCHEME] == "scrypt$32768$8$1"
    assert record.to_local_entries()[StorageKey.SCHEME] == "scrypt$32768$8$1"


def test_sha256_record_drops_costs():
    record = PinRecord.protected_with("ff" * 32, "aa" * 16, PinScheme.SHA256, ScryptParams())
    assert record.params is None
    assert record.scheme_tag == "sha256"


def test_record_from_remote_reads_costs():
    record = record_from_remote({
        PROTECTED: True, HASHED_PIN: "ff", PIN_SALT: "aa", PIN_SCHEME: "scrypt$512$4$2",
    })
    assert record.scheme is PinScheme.SCRYPT
    assert record.params == ScryptParams(n=512, r=4, p=2)


def test_record_from_remote_unknown_scheme_raises():
    with pytest.raises(UnsupportedPinSchemeError) as exc_info:
        record_from_remote({
            PROTECTED: True, HASHED_PIN: "ff", PIN_SALT: "aa", PIN_SCHEME: "argon2id",
        })
    assert exc_info.value.backend == "remote"


def test_unknown_scheme_ignored_on_tombstone():
    record = record_from_remote({PROTECTED: False, PIN_SCHEME: "argon2id"})
    assert record.protected is False


def test_record_from_local_unknown_scheme_raises():
    with pytest.raises(UnsupportedPinSchemeError) as exc_info:
        record_from_local("ff", "aa", "argon2id")
    assert exc_info.value.backend == "local"


def test_is_protected_document_reads_flag_only():
    assert is_protected_document(None) is False
    assert is_protected_document({}) is False
    assert is_protected_document({PROTECTED: "true"}) is False
    assert is_protected_document({PROTECTED: False, HASHED_PIN: "ff"}) is False
    assert is_protected_document({PROTECTED: True, PIN_SCHEME: "argon2id"}) is True
