"""
Token collector value types.

Ephemeral records passed between scanner, batcher, store and pool discovery.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

from collector.config.chain_constants import TOKEN_DECIMALS, UNKNOWN_DEPLOYER


@dataclass(frozen=True)
class TokenCreation:
    """One decoded TokenCreated event."""

    contract_address: str
    name: str
    symbol: str
    legacy_deployer: str
    block_number: int
    transaction_hash: str
    decimals: int = TOKEN_DECIMALS
    deployer: str = UNKNOWN_DEPLOYER

    def to_record(self) -> dict[str, Any]:
        """Fields persisted for the token."""
        return {
            "contract_address": self.contract_address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "deployer": self.deployer,
            "block_number": self.block_number,
            "transaction_hash": self.transaction_hash,
        }


@dataclass(frozen=True)
class PoolInfo:
    """Verified liquidity pool containing the token."""

    address: str
    pair_with: str
    pair_symbol: str
    fee: int
    liquidity: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UpsertCounts:
    """Result of a bulk upsert."""

    inserted: int = 0
    updated: int = 0


@dataclass
class WriteResult:
    """
    Result of writing one batch.

    bulk_failed is set when the bulk path failed and the
    single-token fallback was used instead.
    """

    inserted: int = 0
    updated: int = 0
    failed: int = 0
    bulk_failed: bool = False
    stored: list[str] = field(default_factory=list)

    @property
    def stored_count(self) -> int:
        return len(self.stored)


@dataclass
class BatchReport:
    """Aggregated result of one batcher invocation."""

    batches: int = 0
    inserted: int = 0
    updated: int = 0
    failed: int = 0
    failed_batches: int = 0
    stored: list[str] = field(default_factory=list)
    delays: list[float] = field(default_factory=list)
    final_delay: float = 0.0

    @property
    def stored_count(self) -> int:
        return len(self.stored)

    def add(self, result: WriteResult) -> None:
        self.batches += 1
        self.inserted += result.inserted
        self.updated += result.updated
        self.failed += result.failed
        self.stored.extend(result.stored)
        if result.bulk_failed:
            self.failed_batches += 1


@dataclass
class ScanResult:
    """Outcome of one scan cycle."""

    status: str
    current_height: int | None = None
    from_block: int | None = None
    to_block: int | None = None
    cursor_before: int | None = None
    cursor_after: int | None = None
    chunks_ok: int = 0
    chunks_failed: int = 0
    logs_seen: int = 0
    decode_failures: int = 0
    tokens: list[TokenCreation] = field(default_factory=list)
    report: BatchReport | None = None
    error: str | None = None

    @property
    def advanced(self) -> bool:
        return self.status == "advanced"

    def summary(self) -> dict[str, Any]:
        """Flat dict for logs and the status endpoint."""
        return {
            "status": self.status,
            "from_block": self.from_block,
            "to_block": self.to_block,
            "cursor_before": self.cursor_before,
            "cursor_after": self.cursor_after,
            "chunks_ok": self.chunks_ok,
            "chunks_failed": self.chunks_failed,
            "logs_seen": self.logs_seen,
            "decode_failures": self.decode_failures,
            "tokens": len(self.tokens),
            "inserted": self.report.inserted if self.report else 0,
            "updated": self.report.updated if self.report else 0,
            "failed": self.report.failed if self.report else 0,
            "error": self.error,
        }


@dataclass
class PoolDiscoveryReport:
    """Outcome of one pool discovery pass."""

    checked: int = 0
    with_pools: int = 0
    failed: int = 0
    stopped: bool = False

    def summary(self) -> dict[str, Any]:
        return asdict(self)
