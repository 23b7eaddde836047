"""Domain Types — verifies identity wrappers and enum values.

Tests:
    - NewType wrappers are transparent at runtime
    - Secure-store keys keep the names the mobile client used
    - Enums serialize to their string values
"""

from walletpin.core.domain_types import (
    DeviceId, PinCheckResult, PinScheme, StorageKey, UserId,
)


def test_identity_types_wrap_str():
    assert UserId("user1") == "user1"
    assert DeviceId("device-a") == "device-a"


def test_storage_keys():
    assert StorageKey.PIN.value == "wallet_pin"
    assert StorageKey.SALT.value == "wallet_pin_salt"
    assert StorageKey.SCHEME.value == "wallet_pin_scheme"


def test_pin_schemes():
    assert {s.value for s in PinScheme} == {"sha256", "scrypt"}


def test_pin_check_result_has_four_outcomes():
    assert set(PinCheckResult) == {
        PinCheckResult.MATCHED,
        PinCheckResult.MISMATCH,
        PinCheckResult.NOT_CONFIGURED,
        PinCheckResult.STORAGE_UNAVAILABLE,
    }
