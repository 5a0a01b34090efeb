"""
Factory token ingestion pipeline.

The TokenCollector entry point lives in
collector.services.token_collector.core.
"""

from .batcher import RateLimitedBatcher
from .cursor import CursorStore, ScanCursorStore
from .cycle_guard import CycleGuard
from .deployer_resolver import DeployerCache, DeployerResolver
from .event_decoder import decode_token_created
from .pool_discovery import PoolDiscovery
from .scanner import BlockRangeScanner
from .types import (
    BatchReport,
    PoolDiscoveryReport,
    PoolInfo,
    ScanResult,
    TokenCreation,
    UpsertCounts,
    WriteResult,
)
from .writer import TokenStore, TokenWriter

__all__ = [
    "BatchReport",
    "BlockRangeScanner",
    "CursorStore",
    "CycleGuard",
    "DeployerCache",
    "DeployerResolver",
    "PoolDiscovery",
    "PoolDiscoveryReport",
    "PoolInfo",
    "RateLimitedBatcher",
    "ScanCursorStore",
    "ScanResult",
    "TokenCreation",
    "TokenStore",
    "TokenWriter",
    "UpsertCounts",
    "WriteResult",
    "decode_token_created",
]
