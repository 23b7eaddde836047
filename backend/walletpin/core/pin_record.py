"""PIN Record — the per-user credential and its mapping onto both stores.

Invariants:
    - protected=True implies hashed_pin and salt are both non-empty (enforced on construction)
    - A tombstone has protected=False and hashed_pin/salt None; it is never hard-deleted
    - Remote documents use camelCase field names (protected, hashedPin, pinSalt, pinScheme, updatedAt)
    - Local entries use StorageKey members only
    - The scheme tag on both stores carries the scrypt costs of the digest
    - Protection status reads the protected flag alone; the scheme tag is not parsed for it

Design Decisions:
    - Pure mapping functions: the manager does the IO, this module only shapes data
    - Missing pinScheme reads as SHA256 so documents written by the mobile client stay valid
    - An unreadable pinScheme raises UnsupportedPinSchemeError instead of posing as no record
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from walletpin.core.domain_types import PinScheme, StorageKey
from walletpin.core.pin_hashing import ScryptParams, format_scheme, parse_scheme

# Remote document field names
PROTECTED = "protected"
HASHED_PIN = "hashedPin"
PIN_SALT = "pinSalt"
PIN_SCHEME = "pinScheme"
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PinRecord:
    hashed_pin: str | None
    salt: str | None
    protected: bool
    scheme: PinScheme = PinScheme.SHA256
    params: ScryptParams | None = None
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.protected and not (self.hashed_pin and self.salt):
            raise ValueError("protected PinRecord requires hashed_pin and salt")

    @classmethod
    def protected_with(
        cls, hashed_pin: str, salt: str, scheme: PinScheme,
        params: ScryptParams | None = None,
    ) -> "PinRecord":
        if scheme is PinScheme.SHA256:
            params = None
        return cls(
            hashed_pin=hashed_pin, salt=salt, protected=True,
            scheme=scheme, params=params,
        )

    @property
    def scheme_tag(self) -> str:
        return format_scheme(self.scheme, self.params)

    @classmethod
    def tombstone(cls) -> "PinRecord":
        return cls(hashed_pin=None, salt=None, protected=False, scheme=PinScheme.SHA256)

    def to_remote_fields(self) -> dict:
        """Fields for a merge-write to the remote document."""
        return {
            PROTECTED: self.protected,
            HASHED_PIN: self.hashed_pin,
            PIN_SALT: self.salt,
            PIN_SCHEME: self.scheme_tag if self.protected else None,
            UPDATED_AT: self.updated_at,
        }

    def to_local_entries(self) -> dict[StorageKey, str]:
        """Entries for the local secure store. Empty for a tombstone."""
        if not self.protected:
            return {}
        return {
            StorageKey.PIN: self.hashed_pin,
            StorageKey.SALT: self.salt,
            StorageKey.SCHEME: self.scheme_tag,
        }


def is_protected_document(document: dict | None) -> bool:
    """Remote protected flag. Only a literal True counts."""
    return bool(document) and document.get(PROTECTED) is True


def record_from_remote(document: dict | None) -> PinRecord | None:
    """Build a record from a remote document; None if absent or not usable.

    A document that claims protected=True without both hash and salt is
    treated as unusable rather than raising: it was written by some other
    client and the manager must answer with a boolean regardless. An
    unreadable pinScheme on a protected document raises
    UnsupportedPinSchemeError.
    """
    if not document:
        return None
    hashed_pin = document.get(HASHED_PIN)
    salt = document.get(PIN_SALT)
    protected = is_protected_document(document)
    if protected and not (hashed_pin and salt):
        return None
    scheme, params = PinScheme.SHA256, None
    if protected:
        scheme, params = parse_scheme(document.get(PIN_SCHEME), "remote")
    return PinRecord(
        hashed_pin=hashed_pin if protected else None,
        salt=salt if protected else None,
        protected=protected,
        scheme=scheme,
        params=params,
        updated_at=_as_datetime(document.get(UPDATED_AT)),
    )


def record_from_local(
    hashed_pin: str | None, salt: str | None, scheme: str | None,
) -> PinRecord | None:
    """Build a record from local secure-store values; None unless both are present."""
    if not (hashed_pin and salt):
        return None
    return PinRecord.protected_with(hashed_pin, salt, *parse_scheme(scheme, "local"))


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return utcnow()
