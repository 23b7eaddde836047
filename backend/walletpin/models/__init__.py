"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)
    - All models imported here so metadata is complete before create_all/autogenerate
"""

from walletpin.models.user_wallet import UserWallet  # noqa: F401
