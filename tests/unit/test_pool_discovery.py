"""Unit tests for pool discovery."""

import pytest

from collector.config.chain_constants import (
    COMMON_PAIRS,
    FEE_TIERS,
    GET_POOL_SIGNATURE,
    POOL_FACTORY_ADDRESS,
    POOL_TOKEN0_SIGNATURE,
)
from collector.services.token_collector.pool_discovery import PoolDiscovery
from tests.fakes import make_address, make_token

WETH = COMMON_PAIRS[0][0]
USDC = COMMON_PAIRS[2][0]
POOL = make_address(0x9001)


def make_discovery(chain, store, sleep, **kwargs):
    return PoolDiscovery(chain, store, inter_token_delay=0.5, sleep=sleep, **kwargs)


async def stored_token(store, n: int) -> str:
    token = make_token(n)
    await store.upsert_many([token])
    return token.contract_address


class TestFindPools:
    """Tests for PoolDiscovery.find_pools."""

    @pytest.mark.asyncio
    async def test_probes_full_grid(self, chain, token_store, sleep):
        token = make_address(1)
        discovery = make_discovery(chain, token_store, sleep)

        pools = await discovery.find_pools(token)

        assert pools == []
        probes = [c for c in chain.calls if c[1] == GET_POOL_SIGNATURE]
        assert len(probes) == len(COMMON_PAIRS) * len(FEE_TIERS)
        assert all(c[0] == POOL_FACTORY_ADDRESS for c in probes)

    @pytest.mark.asyncio
    async def test_verified_pool_recorded(self, chain, token_store, sleep):
        token = make_address(1)
        chain.add_pool(token, WETH, 3000, POOL, liquidity=12345)
        discovery = make_discovery(chain, token_store, sleep)

        pools = await discovery.find_pools(token)

        assert len(pools) == 1
        pool = pools[0]
        assert pool.address == POOL
        assert pool.pair_with == WETH
        assert pool.pair_symbol == "WETH"
        assert pool.fee == 3000
        assert pool.liquidity == "12345"

    @pytest.mark.asyncio
    async def test_pool_without_token_rejected(self, chain, token_store, sleep):
        """getPool false positives are dropped by the token0/token1 check."""
        token = make_address(1)
        chain.add_pool(
            token, USDC, 500, POOL, pool_tokens=(make_address(7), USDC)
        )
        discovery = make_discovery(chain, token_store, sleep)

        assert await discovery.find_pools(token) == []

    @pytest.mark.asyncio
    async def test_failed_probe_skipped(self, chain, token_store, sleep):
        token = make_address(1)
        other_pool = make_address(0x9002)
        chain.add_pool(token, WETH, 500, POOL)
        chain.add_pool(token, WETH, 3000, other_pool)
        chain.failing_calls.add((POOL, POOL_TOKEN0_SIGNATURE))
        discovery = make_discovery(chain, token_store, sleep)

        pools = await discovery.find_pools(token)

        assert [p.address for p in pools] == [other_pool]

    @pytest.mark.asyncio
    async def test_token_that_is_a_pair_token_skips_itself(self, chain, token_store, sleep):
        discovery = make_discovery(chain, token_store, sleep)

        await discovery.find_pools(WETH)

        probes = [c for c in chain.calls if c[1] == GET_POOL_SIGNATURE]
        assert all(c[2][1] != WETH for c in probes)


class TestProcessTokens:
    """Tests for processing and storing pool results."""

    @pytest.mark.asyncio
    async def test_no_pools_marks_checked(self, chain, token_store, sleep):
        """A token without pools is stored with has_pool False and marked checked."""
        address = await stored_token(token_store, 1)
        discovery = make_discovery(chain, token_store, sleep)

        report = await discovery.process_tokens([address])

        record = token_store.tokens[address]
        assert record["has_pool"] is False
        assert record["pools"] == []
        assert record["pools_checked"] is True
        assert report.checked == 1
        assert report.with_pools == 0

    @pytest.mark.asyncio
    async def test_pools_saved(self, chain, token_store, sleep):
        address = await stored_token(token_store, 1)
        chain.add_pool(address, WETH, 10000, POOL)
        discovery = make_discovery(chain, token_store, sleep)

        report = await discovery.process_tokens([address])

        record = token_store.tokens[address]
        assert record["has_pool"] is True
        assert record["pools"][0]["address"] == POOL
        assert report.with_pools == 1

    @pytest.mark.asyncio
    async def test_fixed_delay_after_each_token(self, chain, token_store, sleep):
        addresses = [await stored_token(token_store, n) for n in (1, 2, 3)]
        discovery = make_discovery(chain, token_store, sleep)

        await discovery.process_tokens(addresses)

        assert sleep.calls == [0.5, 0.5, 0.5]

    @pytest.mark.asyncio
    async def test_store_failure_counted_and_continues(self, chain, token_store, sleep):
        first = await stored_token(token_store, 1)
        second = await stored_token(token_store, 2)
        token_store.failing_addresses.add(first)
        discovery = make_discovery(chain, token_store, sleep)

        report = await discovery.process_tokens([first, second])

        assert report.failed == 1
        assert report.checked == 1
        assert token_store.tokens[second]["pools_checked"] is True

    @pytest.mark.asyncio
    async def test_stop_between_tokens(self, chain, token_store, sleep):
        addresses = [await stored_token(token_store, n) for n in (1, 2, 3)]
        discovery = make_discovery(
            chain, token_store, sleep, should_stop=lambda: len(sleep.calls) >= 1
        )

        report = await discovery.process_tokens(addresses)

        assert report.stopped is True
        assert report.checked == 1

    @pytest.mark.asyncio
    async def test_process_unchecked_respects_limit(self, chain, token_store, sleep):
        for n in range(1, 6):
            await stored_token(token_store, n)
        discovery = make_discovery(chain, token_store, sleep)

        report = await discovery.process_unchecked(limit=2)
        remaining = await token_store.find_unprocessed_for_pools(10)

        assert report.checked == 2
        assert len(remaining) == 3
