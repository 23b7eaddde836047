"""UserWallet ORM — the remote PIN record, one row per user account.

Invariants:
    - user_id is the primary key (the account identifier, opaque string)
    - pin_protected=True implies pin_hash and pin_salt are non-null
    - Rows are never deleted by the PIN flow; removal nulls the PIN columns

Design Decisions:
    - Column names are snake_case; the document store maps them to the camelCase
      document fields the mobile client wrote (protected/hashedPin/pinSalt)
    - pin_scheme nullable: null means the legacy sha256 scheme; scrypt rows carry
      their cost parameters (scrypt$n$r$p)
"""

from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from walletpin.db.base import Base


class UserWallet(Base):
    """Per-user wallet document holding PIN protection state."""
    __tablename__ = "user_wallets"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    pin_protected: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    pin_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    pin_salt: Mapped[str | None] = mapped_column(String(64), nullable=True)
    pin_scheme: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
