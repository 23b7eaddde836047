"""PIN Hashing — salt generation, scheme-tagged digests, constant-time comparison.

Invariants:
    - Salt is 16 bytes from the OS CSPRNG, encoded as 32 lowercase hex chars
    - The salt is mixed in as its hex text (UTF-8), never as raw bytes
    - SHA256 digest == sha256(pin + salt) as lowercase hex (legacy records)
    - SCRYPT digest == scrypt(pin, salt, n, r, p, dklen=32) as lowercase hex
    - A scrypt digest is stored with the costs that made it: tag "scrypt$n$r$p"
    - Digest comparison is constant-time

Design Decisions:
    - hashlib.scrypt over PBKDF2: memory-hard, so a 4-digit keyspace costs real
      memory per guess (ADR: numeric PINs have ~13 bits of entropy)
    - SHA256 kept only so records written by the mobile client still verify;
      they are upgraded on the next successful verification
    - Costs travel in the scheme tag so raising SCRYPT_N never invalidates old records
    - Tags are parsed against upper bounds: a hostile record must not buy an
      unbounded scrypt allocation
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass

from walletpin.core.domain_types import PinDigest, PinSalt, PinScheme
from walletpin.core.errors import UnsupportedPinSchemeError

SALT_BYTES = 16
TAG_SEPARATOR = "$"

MAX_SCRYPT_N = 2 ** 20
MAX_SCRYPT_R = 32
MAX_SCRYPT_P = 16


@dataclass(frozen=True)
class ScryptParams:
    """scrypt cost parameters, persisted in the scheme tag of each record."""
    n: int = 2 ** 14
    r: int = 8
    p: int = 1
    dklen: int = 32

    @property
    def maxmem(self) -> int:
        # 128 * r * n bytes for the V array, doubled for headroom
        return 256 * self.r * self.n + 1024 * 1024


def generate_salt() -> PinSalt:
    """Return a fresh 128-bit salt as lowercase hex."""
    return PinSalt(secrets.token_bytes(SALT_BYTES).hex())


def hash_pin(
    pin: str,
    salt: str,
    scheme: PinScheme = PinScheme.SCRYPT,
    params: ScryptParams | None = None,
) -> PinDigest:
    """Digest `pin` with `salt` under `scheme`."""
    if scheme is PinScheme.SHA256:
        return PinDigest(
            hashlib.sha256((pin + salt).encode("utf-8")).hexdigest(),
        )
    params = params or ScryptParams()
    derived = hashlib.scrypt(
        pin.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=params.n, r=params.r, p=params.p,
        maxmem=params.maxmem, dklen=params.dklen,
    )
    return PinDigest(derived.hex())


def digests_match(candidate: str, stored: str | None) -> bool:
    """Constant-time digest comparison. A missing stored digest never matches."""
    if not stored:
        return False
    return hmac.compare_digest(
        candidate.encode("ascii", "replace"), stored.encode("ascii", "replace"),
    )


def format_scheme(scheme: PinScheme, params: ScryptParams | None = None) -> str:
    """Tag written next to a digest. SHA256 carries no parameters."""
    if scheme is PinScheme.SHA256 or params is None:
        return scheme.value
    return TAG_SEPARATOR.join(
        [scheme.value, str(params.n), str(params.r), str(params.p)],
    )


def parse_scheme(
    value: str | None, backend: str = "remote",
) -> tuple[PinScheme, ScryptParams | None]:
    """Split a stored scheme tag into (scheme, params).

    Absent means legacy SHA256. A bare "scrypt" tag predates persisted costs
    and yields params=None, meaning "verify with the configured costs".
    Anything else unreadable raises UnsupportedPinSchemeError.
    """
    if not value:
        return PinScheme.SHA256, None
    name, *costs = value.split(TAG_SEPARATOR)
    try:
        scheme = PinScheme(name)
    except ValueError:
        raise UnsupportedPinSchemeError(value, backend) from None

    if scheme is PinScheme.SHA256 or not costs:
        if costs:
            raise UnsupportedPinSchemeError(value, backend)
        return scheme, None
    if len(costs) != 3 or not all(c.isascii() and c.isdigit() for c in costs):
        raise UnsupportedPinSchemeError(value, backend)

    n, r, p = (int(c) for c in costs)
    if n < 2 or n & (n - 1) or n > MAX_SCRYPT_N:
        raise UnsupportedPinSchemeError(value, backend)
    if not 1 <= r <= MAX_SCRYPT_R or not 1 <= p <= MAX_SCRYPT_P:
        raise UnsupportedPinSchemeError(value, backend)
    return scheme, ScryptParams(n=n, r=r, p=p)
