"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId and DeviceId wrap str; never pass a bare str where an identity is meant
    - Secure-store keys are the StorageKey members, no raw key strings elsewhere
    - All valid states encoded as Enums, no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: values are written verbatim to the stores and JSON responses
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
DeviceId = NewType("DeviceId", str)


# ─── Value Types ─────────────────────────────────────────────────

PinDigest = NewType("PinDigest", str)   # lowercase hex
PinSalt = NewType("PinSalt", str)       # lowercase hex, 32 chars


# ─── Enums ───────────────────────────────────────────────────────

class StorageKey(str, Enum):
    """Keys used in the local secure store."""
    PIN = "wallet_pin"
    SALT = "wallet_pin_salt"
    SCHEME = "wallet_pin_scheme"


class PinScheme(str, Enum):
    """Digest algorithm that produced a stored hashedPin.

    SHA256 is the legacy single-round sha256(pin || salt). Records that carry
    no scheme at all were written before schemes existed and are SHA256.
    """
    SHA256 = "sha256"
    SCRYPT = "scrypt"


class PinCheckResult(str, Enum):
    """Outcome of a PIN check before it is collapsed to a boolean."""
    MATCHED = "matched"
    MISMATCH = "mismatch"
    NOT_CONFIGURED = "not_configured"
    STORAGE_UNAVAILABLE = "storage_unavailable"


class StoreBackend(str, Enum):
    """Which side of the dual-store model an event refers to."""
    LOCAL = "local"
    REMOTE = "remote"
