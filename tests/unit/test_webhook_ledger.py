import asyncio

from fakeredis.aioredis import FakeRedis
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.webhooks import InMemoryEventLedger, RedisEventLedger


def test_memory_ledger_claims_once():
    ledger = InMemoryEventLedger(max_size=8)
    assert asyncio.run(ledger.claim("evt_1")) is True
    assert asyncio.run(ledger.claim("evt_1")) is False
    assert asyncio.run(ledger.claim("evt_2")) is True
    assert "evt_1" in ledger
    assert len(ledger) == 2


def test_memory_ledger_evicts_oldest():
    ledger = InMemoryEventLedger(max_size=2)

    async def scenario():
        for event_id in ("evt_a", "evt_b", "evt_c"):
            await ledger.claim(event_id)

    asyncio.run(scenario())
    assert len(ledger) == 2
    assert "evt_a" not in ledger
    assert "evt_c" in ledger


def test_memory_ledger_concurrent_claims_single_winner():
    ledger = InMemoryEventLedger()

    async def scenario():
        return await asyncio.gather(*(ledger.claim("evt_same") for _ in range(10)))

    results = asyncio.run(scenario())
    assert results.count(True) == 1


def test_redis_ledger_claims_once_with_ttl():
    async def scenario():
        r = FakeRedis(decode_responses=True)
        ledger = RedisEventLedger(r, ttl_seconds=60)
        first = await ledger.claim("evt_1")
        second = await ledger.claim("evt_1")
        ttl = await r.ttl("webhook:event:evt_1")
        return first, second, ttl

    first, second, ttl = asyncio.run(scenario())
    assert first is True
    assert second is False
    assert 0 < ttl <= 60


class _BrokenRedis:
    async def set(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")


def test_redis_ledger_fails_open():
    ledger = RedisEventLedger(_BrokenRedis(), ttl_seconds=60)
    assert asyncio.run(ledger.claim("evt_1")) is True


def test_empty_memory_ledger_is_truthy():
    ledger = InMemoryEventLedger()
    assert len(ledger) == 0
    assert ledger
    assert (ledger or InMemoryEventLedger()) is ledger
