"""
Token collector.

Long-lived entry point used by the scheduler. Owns the deployer
resolver (and its cache), the cycle guards and the stop flag, and
builds the per-cycle pipeline on a fresh database session.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from collector.config.settings import Settings
from collector.services.chain.client import ChainClient
from collector.services.token_storage_service import TokenStorageService
from collector.utils.exceptions import (
    FatalStartupError,
    ProviderError,
    StoreError,
)

from .batcher import RateLimitedBatcher
from .cursor import ScanCursorStore
from .cycle_guard import CycleGuard
from .deployer_resolver import DeployerResolver
from .pool_discovery import PoolDiscovery
from .scanner import BlockRangeScanner
from .types import PoolDiscoveryReport, ScanResult
from .writer import TokenWriter


class TokenCollector:
    """
    Factory token collector.

    run_scan_cycle and run_pool_cycle are safe to trigger repeatedly:
    a call while a cycle of the same kind is running returns
    {"status": "skipped"} immediately.
    """

    def __init__(
        self,
        chain: ChainClient,
        session_factory: async_sessionmaker[AsyncSession],
        config: Settings,
        resolver: DeployerResolver | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize collector.

        Args:
            chain: Chain client shared by all cycles
            session_factory: Async session maker, one session per cycle
            config: Collector settings
            resolver: Deployer resolver (created from chain by default)
            sleep: Async sleep function passed to every component
        """
        self.chain = chain
        self.session_factory = session_factory
        self.config = config
        self.resolver = resolver or DeployerResolver(chain)
        self._sleep = sleep

        self.scan_guard = CycleGuard("scan")
        self.pool_guard = CycleGuard("pools")
        self._stop_requested = False

        self.last_scan: dict[str, Any] | None = None
        self.last_pools: dict[str, Any] | None = None

    def request_stop(self) -> None:
        """Ask running cycles to stop at the next chunk, batch or token."""
        if not self._stop_requested:
            logger.info("[Collector] Stop requested")
        self._stop_requested = True

    def should_stop(self) -> bool:
        return self._stop_requested

    async def wait_idle(self, timeout: float) -> bool:
        """
        Wait for running cycles to finish.

        Call after request_stop() so cycles leave at their next
        chunk, batch or token checkpoint.

        Args:
            timeout: Max wait in seconds

        Returns:
            False if a cycle was still running when the timeout expired
        """
        try:
            await asyncio.wait_for(
                asyncio.gather(
                    self.scan_guard.wait_released(),
                    self.pool_guard.wait_released(),
                ),
                timeout=timeout,
            )
        except TimeoutError:
            logger.warning(f"[Collector] Cycles still running after {timeout}s")
            return False
        return True

    def _pool_discovery(self, store: TokenStorageService) -> PoolDiscovery:
        return PoolDiscovery(
            self.chain,
            store,
            pool_factory_address=self.config.pool_factory_address,
            inter_token_delay=self.config.inter_token_delay,
            sleep=self._sleep,
            should_stop=self.should_stop,
        )

    def _scanner(
        self, session: AsyncSession, store: TokenStorageService
    ) -> BlockRangeScanner:
        writer = TokenWriter(store, item_delay=self.config.item_delay, sleep=self._sleep)
        batcher = RateLimitedBatcher(
            writer,
            max_batch_size=self.config.max_batch_size,
            initial_delay=self.config.initial_delay,
            backoff_factor=self.config.backoff_factor,
            max_delay=self.config.max_delay,
            sleep=self._sleep,
            should_stop=self.should_stop,
        )
        return BlockRangeScanner(
            self.chain,
            self.resolver,
            ScanCursorStore(session, self.config.factory_address),
            batcher,
            factory_address=self.config.factory_address,
            chunk_size=self.config.chunk_size,
            max_blocks_per_scan=self.config.max_blocks_per_scan,
            cold_start_window=self.config.cold_start_window,
            chunk_delay=self.config.chunk_delay,
            chunk_failure_backoff=self.config.chunk_failure_backoff,
            sleep=self._sleep,
            should_stop=self.should_stop,
        )

    async def startup_check(self) -> int:
        """
        Verify chain and store connectivity.

        Returns:
            Current chain height

        Raises:
            FatalStartupError: If either dependency is unreachable
        """
        try:
            height = await self.chain.current_height()
        except ProviderError as e:
            raise FatalStartupError(f"Cannot get chain height: {e}") from e

        async with self.session_factory() as session:
            try:
                await TokenStorageService(session).ping()
            except StoreError as e:
                raise FatalStartupError(f"Cannot reach token store: {e}") from e

        logger.success(f"[Collector] Startup checks passed, chain at block {height}")
        return height

    async def run_scan_cycle(self) -> dict[str, Any]:
        """
        Scan new blocks, then probe pools for the tokens stored.

        Returns:
            Scan summary with a "pools" entry when discovery ran
        """
        async with self.scan_guard.acquire() as acquired:
            if not acquired:
                logger.warning("[Collector] Scan cycle already running, skipping")
                return {"status": "skipped"}

            async with self.session_factory() as session:
                store = TokenStorageService(session)
                result = await self._scanner(session, store).scan()
                summary = result.summary()

                if self._should_discover(result):
                    stored = list(dict.fromkeys(result.report.stored))
                    pools = await self._pool_discovery(store).process_tokens(stored)
                    summary["pools"] = pools.summary()

            self.last_scan = summary
            return summary

    def _should_discover(self, result: ScanResult) -> bool:
        return (
            self.config.discover_pools_after_scan
            and result.advanced
            and result.report is not None
            and bool(result.report.stored)
            and not self._stop_requested
        )

    async def run_pool_cycle(self, limit: int | None = None) -> dict[str, Any]:
        """
        Probe pools for tokens never checked before.

        Args:
            limit: Max tokens this cycle (settings.pool_check_limit by default)

        Returns:
            Pool discovery summary
        """
        async with self.pool_guard.acquire() as acquired:
            if not acquired:
                logger.warning("[Collector] Pool cycle already running, skipping")
                return {"status": "skipped"}

            async with self.session_factory() as session:
                discovery = self._pool_discovery(TokenStorageService(session))
                try:
                    report = await discovery.process_unchecked(
                        limit or self.config.pool_check_limit
                    )
                except StoreError as e:
                    logger.error(f"[Collector] Pool cycle failed: {e}")
                    summary = {"status": "failed", "error": str(e)}
                else:
                    summary = self._pool_summary(report)

            self.last_pools = summary
            return summary

    @staticmethod
    def _pool_summary(report: PoolDiscoveryReport) -> dict[str, Any]:
        status = "stopped" if report.stopped else "completed"
        return {"status": status, **report.summary()}

    def status(self) -> dict[str, Any]:
        """Collector state for the status endpoint."""
        return {
            "scan_running": self.scan_guard.in_flight,
            "pools_running": self.pool_guard.in_flight,
            "stop_requested": self._stop_requested,
            "deployer_cache_size": len(self.resolver.cache),
            "last_scan": self.last_scan,
            "last_pools": self.last_pools,
        }
