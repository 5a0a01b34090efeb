"""
Chain access layer.

ChainClient interface plus the web3.py implementation.
"""

from .async_executor import AsyncChainExecutor
from .client import ChainClient, LogRecord, TransactionInfo
from .web3_client import Web3ChainClient, function_selector, signature_arg_types

__all__ = [
    "AsyncChainExecutor",
    "ChainClient",
    "LogRecord",
    "TransactionInfo",
    "Web3ChainClient",
    "function_selector",
    "signature_arg_types",
]
