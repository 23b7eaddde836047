"""DatabaseSessionManager — SQLAlchemy failures become DatabaseError; readiness query.

Invariants:
    - Any SQLAlchemy failure inside session() surfaces as DatabaseError (a StorageUnavailableError)
    - The session is rolled back, so the failed write is not visible afterwards
    - health_check is True on a reachable database, False otherwise
"""

import pytest
from sqlalchemy import select, text

from walletpin.core.errors import DatabaseError, StorageUnavailableError
from walletpin.infrastructure.database import DatabaseSessionManager
from walletpin.models.user_wallet import UserWallet


async def test_operational_error_mapped(test_db_manager):
    with pytest.raises(DatabaseError) as exc_info:
        async with test_db_manager.session() as db:
            await db.execute(text("SELECT * FROM no_such_table"))

    assert isinstance(exc_info.value, StorageUnavailableError)
    assert exc_info.value.code == "DATABASE_ERROR"
    assert exc_info.value.operation == "execute"
    assert exc_info.value.backend == "remote"


async def test_integrity_error_mapped_and_rolled_back(test_db_manager):
    async with test_db_manager.session() as db:
        db.add(UserWallet(user_id="user1", pin_protected=False))
        await db.commit()

    with pytest.raises(DatabaseError) as exc_info:
        async with test_db_manager.session() as db:
            db.add(UserWallet(user_id="user1", pin_protected=True))
            await db.commit()
    assert exc_info.value.operation == "commit"

    async with test_db_manager.session() as db:
        rows = (await db.execute(select(UserWallet))).scalars().all()
    assert [r.pin_protected for r in rows] == [False]


async def test_driver_message_not_in_error_message(test_db_manager):
    with pytest.raises(DatabaseError) as exc_info:
        async with test_db_manager.session() as db:
            await db.execute(text("SELECT * FROM no_such_table"))
    assert "no_such_table" not in exc_info.value.message


async def test_health_check(test_db_manager):
    assert await test_db_manager.health_check() is True


async def test_health_check_unreachable_database(tmp_path):
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'wallets.db'}",
    )
    try:
        assert await manager.health_check() is False
    finally:
        await manager.dispose()
