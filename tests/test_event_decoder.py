import json

import pytest

from starosca_indexer.app.domain.errors import EventDecodeError
from starosca_indexer.app.domain.events import (
    DrawingCompleted,
    ParticipantJoined,
    PaymentMade,
    PaymentStatus,
    PoolActivated,
    PoolCreated,
    PoolFinalized,
    RawLog,
)
from starosca_indexer.app.infrastructure.decoders.abi_event_decoder import AbiEventDecoder
from tests.helpers import FACTORY, LogBuilder, addr, block_timestamp, topic0

POOL = addr("aa")
CREATOR = addr("cc")
ALICE = addr("a1")


def test_topic_sets_match_event_signatures(decoder):
    assert decoder.factory_topics == (topic0("PoolCreated"),)
    assert set(decoder.pool_topics) == {
        topic0("ParticipantJoined"),
        topic0("PaymentMade"),
        topic0("DrawingCompleted"),
        topic0("PoolActivated"),
        topic0("PoolFinalized"),
    }
    assert not set(decoder.factory_topics) & set(decoder.pool_topics)


def test_decodes_pool_created(decoder, logs: LogBuilder):
    log = logs.pool_created(
        block=1000,
        pool=POOL,
        creator=CREATOR,
        max_participants=5,
        monthly_contribution=100_000000,
    )

    event = decoder.decode(log)

    assert isinstance(event, PoolCreated)
    assert event.pool == POOL
    assert event.creator == CREATOR
    assert event.max_participants == 5
    assert event.monthly_contribution == 100_000000
    assert event.context.address == FACTORY
    assert event.context.block_number == 1000
    assert event.context.transaction_hash == "0x" + log.transaction_hash.hex()


def test_decodes_every_pool_event(decoder, logs: LogBuilder):
    joined = decoder.decode(
        logs.participant_joined(
            block=10, pool=POOL, participant=ALICE, collateral=7, first_contribution=3
        )
    )
    paid = decoder.decode(
        logs.payment_made(
            block=11, pool=POOL, participant=ALICE, month=2, amount=99, status=int(PaymentStatus.LATE)
        )
    )
    drawn = decoder.decode(
        logs.drawing_completed(block=12, pool=POOL, month=2, winner=ALICE, pot_amount=500)
    )
    activated = decoder.decode(logs.pool_activated(block=13, pool=POOL))
    finalized = decoder.decode(logs.pool_finalized(block=14, pool=POOL, total_yield=42))

    assert joined == ParticipantJoined(
        context=joined.context, participant=ALICE, collateral=7, first_contribution=3
    )
    assert paid == PaymentMade(
        context=paid.context, participant=ALICE, month=2, amount=99, status=int(PaymentStatus.LATE)
    )
    assert drawn == DrawingCompleted(context=drawn.context, month=2, winner=ALICE, pot_amount=500)
    assert activated == PoolActivated(context=activated.context, timestamp=block_timestamp(13))
    assert finalized == PoolFinalized(context=finalized.context, total_yield=42)
    assert {e.context.address for e in (joined, paid, drawn, activated, finalized)} == {POOL}


def test_large_uint256_values_survive(decoder, logs: LogBuilder):
    amount = 2**256 - 1
    event = decoder.decode(
        logs.pool_created(block=1, pool=POOL, creator=CREATOR, monthly_contribution=amount)
    )
    assert event.monthly_contribution == amount


def test_unknown_topic_is_rejected(decoder):
    log = RawLog(
        address=POOL,
        topics=(b"\x01" * 32,),
        data=b"",
        block_number=1,
        transaction_hash=b"\x00" * 32,
        transaction_index=0,
        log_index=0,
    )
    with pytest.raises(EventDecodeError, match="Unexpected log"):
        decoder.decode(log)


def test_log_without_topics_is_rejected(decoder):
    log = RawLog(
        address=POOL,
        topics=(),
        data=b"",
        block_number=1,
        transaction_hash=b"\x00" * 32,
        transaction_index=0,
        log_index=0,
    )
    with pytest.raises(EventDecodeError):
        decoder.decode(log)


def test_truncated_data_is_rejected(decoder, logs: LogBuilder):
    good = logs.payment_made(block=1, pool=POOL, participant=ALICE, month=1)
    truncated = RawLog(
        address=good.address,
        topics=good.topics,
        data=good.data[:40],
        block_number=good.block_number,
        transaction_hash=good.transaction_hash,
        transaction_index=good.transaction_index,
        log_index=good.log_index,
    )
    with pytest.raises(EventDecodeError, match="PaymentMade"):
        decoder.decode(truncated)


def test_missing_indexed_topic_is_rejected(decoder, logs: LogBuilder):
    good = logs.pool_created(block=1, pool=POOL, creator=CREATOR)
    missing_creator = RawLog(
        address=good.address,
        topics=good.topics[:2],
        data=good.data,
        block_number=good.block_number,
        transaction_hash=good.transaction_hash,
        transaction_index=good.transaction_index,
        log_index=good.log_index,
    )
    with pytest.raises(EventDecodeError, match="indexed topics"):
        decoder.decode(missing_creator)


def test_abi_decoder_accepts_artifact_format(tmp_path):
    abi = [
        {
            "type": "event",
            "name": "PoolFinalized",
            "anonymous": False,
            "inputs": [{"name": "totalYield", "type": "uint256", "indexed": False}],
        }
    ]
    artifact = tmp_path / "Pool.json"
    artifact.write_text(json.dumps({"contractName": "Pool", "abi": abi}), encoding="utf-8")

    dec = AbiEventDecoder(abi_path=artifact, event_names=["PoolFinalized"])

    assert dec.topics == (topic0("PoolFinalized"),)


def test_abi_decoder_rejects_missing_event(tmp_path):
    artifact = tmp_path / "Empty.json"
    artifact.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError, match="expected exactly one event"):
        AbiEventDecoder(abi_path=artifact, event_names=["PoolCreated"])
