"""
Liquidity pool discovery.

Probes the V3 pool factory for every (pair token, fee tier) combination
and records the pools that really contain the token.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence

from loguru import logger

from collector.config.chain_constants import (
    COMMON_PAIRS,
    FEE_TIERS,
    GET_POOL_SIGNATURE,
    POOL_FACTORY_ADDRESS,
    POOL_LIQUIDITY_SIGNATURE,
    POOL_TOKEN0_SIGNATURE,
    POOL_TOKEN1_SIGNATURE,
    ZERO_ADDRESS,
)
from collector.config.constants import INTER_TOKEN_DELAY, POOL_CHECK_LIMIT
from collector.services.chain.client import ChainClient
from collector.utils.exceptions import ProviderError, StoreError
from collector.utils.security import mask_address

from .types import PoolDiscoveryReport, PoolInfo
from .writer import TokenStore


class PoolDiscovery:
    """Sequential pool prober for factory tokens."""

    def __init__(
        self,
        chain: ChainClient,
        store: TokenStore,
        pool_factory_address: str = POOL_FACTORY_ADDRESS,
        pairs: Sequence[tuple[str, str]] = COMMON_PAIRS,
        fee_tiers: Sequence[int] = FEE_TIERS,
        inter_token_delay: float = INTER_TOKEN_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        should_stop: Callable[[], bool] | None = None,
    ) -> None:
        """
        Initialize pool discovery.

        Args:
            chain: Chain client for read-only calls
            store: Token store receiving the results
            pool_factory_address: V3 factory exposing getPool
            pairs: (address, symbol) of tokens to pair with
            fee_tiers: Fee tiers to probe
            inter_token_delay: Pause after each token in seconds
            sleep: Async sleep function
            should_stop: Stop flag checked between tokens
        """
        self.chain = chain
        self.store = store
        self.pool_factory_address = pool_factory_address.lower()
        self.pairs = [(address.lower(), symbol) for address, symbol in pairs]
        self.fee_tiers = list(fee_tiers)
        self.inter_token_delay = inter_token_delay
        self._sleep = sleep
        self._should_stop = should_stop or (lambda: False)

    async def _probe(
        self, token: str, pair_address: str, pair_symbol: str, fee: int
    ) -> PoolInfo | None:
        (pool_address,) = await self.chain.call_read_only(
            self.pool_factory_address,
            GET_POOL_SIGNATURE,
            (token, pair_address, fee),
            ("address",),
        )
        pool_address = pool_address.lower()
        if pool_address == ZERO_ADDRESS:
            return None

        (liquidity,) = await self.chain.call_read_only(
            pool_address, POOL_LIQUIDITY_SIGNATURE, (), ("uint128",)
        )
        (token0,) = await self.chain.call_read_only(
            pool_address, POOL_TOKEN0_SIGNATURE, (), ("address",)
        )
        (token1,) = await self.chain.call_read_only(
            pool_address, POOL_TOKEN1_SIGNATURE, (), ("address",)
        )

        if token not in (token0.lower(), token1.lower()):
            logger.warning(
                f"[Pools] Pool {mask_address(pool_address)} does not contain "
                f"{mask_address(token)}, skipping"
            )
            return None

        logger.info(
            f"[Pools] Found pool {mask_address(pool_address)} for "
            f"{mask_address(token)}/{pair_symbol} fee {fee / 10000}%"
        )
        return PoolInfo(
            address=pool_address,
            pair_with=pair_address,
            pair_symbol=pair_symbol,
            fee=fee,
            liquidity=str(liquidity),
        )

    async def find_pools(self, token: str) -> list[PoolInfo]:
        """
        Find verified pools for a token.

        A failed probe is logged and skipped.
        """
        token = token.lower()
        pools = []

        for pair_address, pair_symbol in self.pairs:
            if pair_address == token:
                continue
            for fee in self.fee_tiers:
                try:
                    pool = await self._probe(token, pair_address, pair_symbol, fee)
                except (ProviderError, ValueError) as e:
                    logger.warning(
                        f"[Pools] Probe {mask_address(token)}/{pair_symbol} "
                        f"fee {fee} failed: {e}"
                    )
                    continue
                if pool:
                    pools.append(pool)

        return pools

    async def process_token(self, token: str) -> list[PoolInfo]:
        """
        Discover and store pools for one token.

        Raises:
            StoreError: If the result could not be saved
        """
        pools = await self.find_pools(token)
        await self.store.save_pools(token, pools)

        if pools:
            logger.info(
                f"[Pools] {mask_address(token)}: {len(pools)} pools stored"
            )
        else:
            logger.info(f"[Pools] {mask_address(token)}: no pools found")
        return pools

    async def process_tokens(self, tokens: Sequence[str]) -> PoolDiscoveryReport:
        """Process tokens one by one with a fixed pause after each."""
        report = PoolDiscoveryReport()
        if not tokens:
            logger.debug("[Pools] No tokens to process")
            return report

        logger.info(f"[Pools] Processing pools for {len(tokens)} tokens")

        for token in tokens:
            if self._should_stop():
                report.stopped = True
                logger.warning(
                    f"[Pools] Stop requested after {report.checked} tokens"
                )
                break

            try:
                pools = await self.process_token(token)
            except StoreError as e:
                report.failed += 1
                logger.error(f"[Pools] {mask_address(token)} not saved: {e}")
            else:
                report.checked += 1
                if pools:
                    report.with_pools += 1

            await self._sleep(self.inter_token_delay)

        logger.info(
            f"[Pools] Completed: {report.with_pools} of {report.checked} "
            f"tokens have pools, {report.failed} failed"
        )
        return report

    async def process_unchecked(
        self, limit: int = POOL_CHECK_LIMIT
    ) -> PoolDiscoveryReport:
        """
        Process tokens that were never probed for pools.

        Raises:
            StoreError: If the unchecked tokens could not be loaded
        """
        tokens = await self.store.find_unprocessed_for_pools(limit)
        return await self.process_tokens(tokens)
