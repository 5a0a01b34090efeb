"""
Chain client interface.

Read-only capabilities the collector needs from an EVM node.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class LogRecord:
    """Raw event log with normalized header fields."""

    address: str
    topics: list[str]
    data: bytes
    block_number: int
    transaction_hash: str
    log_index: int = 0


@dataclass(frozen=True)
class TransactionInfo:
    """Subset of a transaction used for deployer resolution."""

    hash: str
    sender: str
    calldata: bytes = field(default=b"")


class ChainClient(Protocol):
    """
    Capabilities consumed by the scanner, resolver and pool discovery.

    All methods raise ProviderError on transport or range failures.
    """

    async def current_height(self) -> int:
        ...

    async def get_logs(
        self,
        contract_address: str,
        event_topic: str,
        from_block: int,
        to_block: int,
    ) -> list[LogRecord]:
        ...

    async def get_transaction(self, tx_hash: str) -> TransactionInfo | None:
        ...

    async def call_read_only(
        self,
        contract_address: str,
        signature: str,
        args: Sequence[Any] = (),
        output_types: Sequence[str] = (),
    ) -> tuple[Any, ...]:
        ...
