"""Tests for the walletpin error hierarchy."""

from walletpin.core.errors import (
    DatabaseError, ErrorCategory, ErrorContext, InvalidPinFormatError,
    PinMismatchError, PinNotConfiguredError, StorageUnavailableError,
    UnsupportedPinSchemeError, WalletPinError,
)


def test_storage_unavailable_defaults():
    err = StorageUnavailableError("local", "get")
    assert err.code == "STORAGE_UNAVAILABLE"
    assert err.http_status == 503
    assert err.backend == "local"
    assert err.message == "local store get failed"


def test_database_error_is_storage_unavailable():
    err = DatabaseError("Connection or operational error", "execute")
    assert isinstance(err, StorageUnavailableError)
    assert err.code == "DATABASE_ERROR"
    assert err.category is ErrorCategory.DATABASE
    assert err.backend == "remote"
    assert err.message == "Database execute failed: Connection or operational error"


def test_unsupported_scheme_is_storage_unavailable():
    err = UnsupportedPinSchemeError("argon2id", "remote")
    assert isinstance(err, StorageUnavailableError)
    assert err.code == "UNSUPPORTED_PIN_SCHEME"
    assert err.http_status == 503
    assert err.backend == "remote"
    assert err.operation == "parse"
    assert err.scheme == "argon2id"


def test_unsupported_scheme_message_is_bounded():
    err = UnsupportedPinSchemeError("x" * 500, "local")
    assert len(err.message) < 100


def test_pin_outcome_errors():
    assert PinMismatchError().http_status == 401
    assert PinNotConfiguredError("user1").code == "PIN_NOT_CONFIGURED"
    assert InvalidPinFormatError("too short").http_status == 400


def test_to_response_envelope():
    err = PinNotConfiguredError(
        "user1", context=ErrorContext(user_id="user1", operation="verify_pin"),
    )
    body = err.to_response()["error"]
    assert body["code"] == "PIN_NOT_CONFIGURED"
    assert body["category"] == "resource_not_found"
    assert body["context"] == {"user_id": "user1", "operation": "verify_pin"}
    assert "timestamp" in body


def test_all_errors_share_base():
    for err in (
        StorageUnavailableError("remote", "merge"),
        PinMismatchError(),
        InvalidPinFormatError("x"),
    ):
        assert isinstance(err, WalletPinError)
