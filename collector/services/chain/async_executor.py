"""
Async executor for blockchain operations with failover support.

Provides async execution of synchronous Web3 operations with automatic
failover between a primary and a backup RPC provider.
"""

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from loguru import logger
from web3 import Web3

from collector.config.constants import BLOCKCHAIN_EXECUTOR_WORKERS, BLOCKCHAIN_TIMEOUT
from collector.utils.exceptions import ProviderError

T = TypeVar("T")


class AsyncChainExecutor:
    """
    Async executor for blockchain operations.

    Handles:
    - Thread pool execution of sync Web3 calls
    - Failover from the active provider to the next one
    - Timeout handling
    """

    def __init__(
        self,
        providers: dict[str, Web3],
        timeout: float = BLOCKCHAIN_TIMEOUT,
        max_workers: int = BLOCKCHAIN_EXECUTOR_WORKERS,
    ) -> None:
        """
        Initialize async executor.

        Args:
            providers: Web3 instances by provider name, primary first
            timeout: Default timeout per call in seconds
            max_workers: Maximum thread pool workers
        """
        if not providers:
            raise ValueError("At least one RPC provider is required")

        self.providers = providers
        self.active_provider_name = next(iter(providers))
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="web3"
        )

    async def _run_on(
        self,
        name: str,
        sync_func: Callable[[Web3], T],
        timeout: float,
    ) -> T:
        loop = asyncio.get_running_loop()
        w3 = self.providers[name]
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(self._executor, lambda: sync_func(w3)),
                timeout=timeout,
            )
        except TimeoutError as e:
            raise TimeoutError(
                f"Blockchain operation timeout on {name} after {timeout}s"
            ) from e

    async def run(
        self,
        sync_func: Callable[[Web3], T],
        operation_name: str = "RPC call",
        timeout: float | None = None,
    ) -> T:
        """
        Run a synchronous Web3 function with failover logic.

        Args:
            sync_func: Synchronous function that takes Web3 instance as argument
            operation_name: Operation name for logging
            timeout: Per-attempt timeout (defaults to executor timeout)

        Returns:
            Result from the function

        Raises:
            ProviderError: If all providers fail
        """
        timeout = timeout or self.timeout
        current_name = self.active_provider_name

        try:
            return await self._run_on(current_name, sync_func, timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            backup_name = next(
                (n for n in self.providers if n != current_name), None
            )
            if not backup_name:
                raise ProviderError(f"{operation_name} failed: {e}") from e

            logger.warning(
                f"[Chain] {operation_name} failed on '{current_name}': {e}. "
                f"Trying '{backup_name}'..."
            )

            try:
                result = await self._run_on(backup_name, sync_func, timeout)
            except asyncio.CancelledError:
                raise
            except Exception as e2:
                logger.error(f"[Chain] Backup provider failed: {e2}")
                raise ProviderError(
                    f"{operation_name} failed on all providers: {e}; {e2}"
                ) from e2

            # Backup works, keep using it
            logger.info(f"[Chain] Switched active provider to '{backup_name}'")
            self.active_provider_name = backup_name
            return result

    def cleanup(self) -> None:
        """Clean up thread pool executor."""
        self._executor.shutdown(wait=True)
