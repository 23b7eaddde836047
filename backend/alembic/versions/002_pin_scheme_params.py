"""Widen user_wallets.pin_scheme to hold scrypt cost parameters.

Revision ID: 002_pin_scheme_params
Revises: 001_user_wallets
Create Date: 2026-10-20

pin_scheme now stores the scheme tag together with the scrypt costs the
digest was made with (scrypt$n$r$p). Existing bare 'scrypt' and null
values stay valid.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "002_pin_scheme_params"
down_revision: Union[str, None] = "001_user_wallets"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.alter_column(
        "user_wallets", "pin_scheme",
        existing_type=sa.String(16), type_=sa.String(64), existing_nullable=True,
    )


def downgrade() -> None:
    op.alter_column(
        "user_wallets", "pin_scheme",
        existing_type=sa.String(64), type_=sa.String(16), existing_nullable=True,
    )
