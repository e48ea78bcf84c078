import pytest
from sqlalchemy import text

from starosca_indexer.app.domain.errors import CursorRegressionError
from starosca_indexer.app.domain.events import PoolStatus
from starosca_indexer.app.infrastructure.db.schema import init_store
from tests.helpers import LogBuilder, addr

POOL = addr("aa")
CREATOR = addr("cc")
ALICE = addr("a1")


async def _count(engine, table: str) -> int:
    async with engine.connect() as conn:
        return (await conn.execute(text(f"SELECT COUNT(*) FROM {table}"))).scalar_one()


@pytest.mark.asyncio
async def test_fresh_store_starts_at_block_zero(store):
    assert await store.get_last_block() == 0
    assert await store.list_pool_addresses() == []


@pytest.mark.asyncio
async def test_init_store_is_idempotent_and_keeps_cursor(engine, store):
    async with store.begin() as tx:
        await tx.set_last_block(42)

    await init_store(engine)

    assert await store.get_last_block() == 42


@pytest.mark.asyncio
async def test_cursor_never_moves_backwards(store):
    async with store.begin() as tx:
        await tx.set_last_block(100)

    with pytest.raises(CursorRegressionError) as exc_info:
        async with store.begin() as tx:
            await tx.set_last_block(99)

    assert exc_info.value.current == 100
    assert exc_info.value.requested == 99
    assert await store.get_last_block() == 100


@pytest.mark.asyncio
async def test_pool_insert_is_ignored_on_duplicate(engine, store, decoder, logs: LogBuilder):
    event = decoder.decode(logs.pool_created(block=5, pool=POOL, creator=CREATOR))

    async with store.begin() as tx:
        assert await tx.insert_pool(event=event, created_at=111) is True
    async with store.begin() as tx:
        assert await tx.insert_pool(event=event, created_at=222) is False

    assert await _count(engine, "pools") == 1
    assert await store.list_pool_addresses() == [POOL]
    async with engine.connect() as conn:
        row = (await conn.execute(text("SELECT * FROM pools"))).mappings().one()
    assert row["created_at"] == 111
    assert row["status"] == PoolStatus.PENDING
    assert row["current_month"] == 0


@pytest.mark.asyncio
async def test_participant_is_unique_per_pool(engine, store, decoder, logs: LogBuilder):
    other_pool = addr("bb")
    joined_a = decoder.decode(logs.participant_joined(block=6, pool=POOL, participant=ALICE))
    joined_b = decoder.decode(logs.participant_joined(block=7, pool=other_pool, participant=ALICE))

    async with store.begin() as tx:
        assert await tx.insert_participant(event=joined_a, joined_at=1) is True
        assert await tx.insert_participant(event=joined_a, joined_at=2) is False
        assert await tx.insert_participant(event=joined_b, joined_at=3) is True

    assert await _count(engine, "participants") == 2


@pytest.mark.asyncio
async def test_payments_and_drawings_are_appended(engine, store, decoder, logs: LogBuilder):
    paid = decoder.decode(logs.payment_made(block=8, pool=POOL, participant=ALICE, month=1))
    drawn = decoder.decode(logs.drawing_completed(block=9, pool=POOL, month=1, winner=ALICE))

    async with store.begin() as tx:
        await tx.insert_payment(event=paid, paid_at=10)
        await tx.insert_payment(event=paid, paid_at=10)
        await tx.insert_drawing(event=drawn, drawn_at=11)

    assert await _count(engine, "payments") == 2
    assert await _count(engine, "drawings") == 1


@pytest.mark.asyncio
async def test_status_update_of_unknown_pool_touches_nothing(store):
    async with store.begin() as tx:
        assert await tx.update_pool_status(pool_address=POOL, status=PoolStatus.ACTIVE) == 0


@pytest.mark.asyncio
async def test_failed_unit_of_work_is_rolled_back(engine, store, decoder, logs: LogBuilder):
    event = decoder.decode(logs.pool_created(block=5, pool=POOL, creator=CREATOR))

    with pytest.raises(RuntimeError):
        async with store.begin() as tx:
            await tx.insert_pool(event=event, created_at=1)
            await tx.set_last_block(5)
            raise RuntimeError("boom")

    assert await _count(engine, "pools") == 0
    assert await store.get_last_block() == 0
