"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - pin_min_length <= pin_max_length; scrypt_n is a power of two > 1

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - secure_store_key has no default: a store encrypted with a well-known key is not a secure store
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from walletpin.core.domain_types import PinScheme
from walletpin.core.pin_hashing import ScryptParams


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database (remote document store)
    database_url: str = (
        "postgresql+asyncpg://walletpin:walletpin@db:5432/walletpin"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Local secure store
    secure_store_dir: str = "secure_store"
    secure_store_key: str = ""

    # PIN hashing
    pin_scheme: PinScheme = PinScheme.SCRYPT
    scrypt_n: int = 2 ** 14
    scrypt_r: int = 8
    scrypt_p: int = 1

    @field_validator("scrypt_n")
    @classmethod
    def check_scrypt_n(cls, v: int) -> int:
        if v < 2 or v & (v - 1):
            raise ValueError("scrypt_n must be a power of two greater than 1")
        return v

    # PIN policy
    pin_min_length: int = 4
    pin_max_length: int = 8

    @model_validator(mode="after")
    def check_pin_lengths(self):
        if not 1 <= self.pin_min_length <= self.pin_max_length:
            raise ValueError("pin_min_length must be between 1 and pin_max_length")
        return self

    # API
    cors_origins: list[str] = ["http://localhost:8081"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def scrypt_params(self) -> ScryptParams:
        return ScryptParams(n=self.scrypt_n, r=self.scrypt_r, p=self.scrypt_p)


@lru_cache
def get_settings() -> Settings:
    return Settings()
