"""Initial schema — user_wallets (remote PIN record).

Revision ID: 001_user_wallets
Revises: None
Create Date: 2026-10-19

One row per account. pin_scheme is nullable: null rows were written with
the legacy sha256 scheme.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_user_wallets"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "user_wallets",
        sa.Column("user_id", sa.String(128), primary_key=True),
        sa.Column("pin_protected", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("pin_hash", sa.String(128), nullable=True),
        sa.Column("pin_salt", sa.String(64), nullable=True),
        sa.Column("pin_scheme", sa.String(16), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("user_wallets")
