"""
Collector exception types.

Each error class maps to one containment level:
- DecodeError: a single malformed log, skipped
- ResolutionDegradation: deployer could not be resolved, continue with "unknown"
- ProviderError: RPC failure, the chunk (or probe) is skipped
- StoreError: storage write failure, bulk path falls back to single writes
- FatalStartupError: no chain height or no store at startup, process exits
- CycleAborted: the cycle stopped before advancing the cursor
"""


class CollectorError(Exception):
    """Base class for collector errors."""
    pass


class DecodeError(CollectorError):
    """Raised when a log payload cannot be decoded."""
    pass


class ResolutionDegradation(CollectorError):
    """Raised when a deployer source is unavailable or unusable."""
    pass


class ProviderError(CollectorError):
    """Raised when an RPC provider call fails or times out."""
    pass


class StoreError(CollectorError):
    """Raised when a storage operation fails."""
    pass


class FatalStartupError(CollectorError):
    """Raised when the process cannot reach the chain or the store at startup."""
    pass


class CycleAborted(CollectorError):
    """Raised when a scan cycle stops before the cursor is advanced."""
    pass
