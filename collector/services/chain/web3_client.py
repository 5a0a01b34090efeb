"""
Web3-backed chain client.

Sync Web3 HTTP providers executed in a thread pool,
with results converted to the collector's chain types.
"""

from collections.abc import Sequence
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from loguru import logger
from web3 import Web3
from web3.exceptions import TransactionNotFound

from collector.config.constants import BLOCKCHAIN_LONG_TIMEOUT
from collector.utils.exceptions import ProviderError

from .async_executor import AsyncChainExecutor
from .client import LogRecord, TransactionInfo


def function_selector(signature: str) -> bytes:
    """First 4 bytes of keccak(signature)."""
    return bytes(Web3.keccak(text=signature))[:4]


def signature_arg_types(signature: str) -> list[str]:
    """
    Extract argument types from a flat function signature.

    Example:
        >>> signature_arg_types("getPool(address,address,uint24)")
        ['address', 'address', 'uint24']
    """
    start = signature.index("(")
    inner = signature[start + 1:signature.rindex(")")]
    return [t.strip() for t in inner.split(",") if t.strip()]


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes | bytearray):
        return bytes(value)
    if isinstance(value, str):
        return bytes.fromhex(value[2:] if value.startswith("0x") else value)
    return bytes(value or b"")


def _to_log_record(raw: Any) -> LogRecord:
    return LogRecord(
        address=str(raw["address"]).lower(),
        topics=[Web3.to_hex(t).lower() for t in raw.get("topics", [])],
        data=_to_bytes(raw.get("data", b"")),
        block_number=int(raw["blockNumber"]),
        transaction_hash=Web3.to_hex(raw["transactionHash"]).lower(),
        log_index=int(raw.get("logIndex", 0) or 0),
    )


class Web3ChainClient:
    """
    ChainClient implementation over web3.py.

    Every call goes through AsyncChainExecutor, so a slow or failing
    primary endpoint fails over to the backup endpoint when configured.
    """

    def __init__(
        self,
        rpc_url: str,
        backup_rpc_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize chain client.

        Args:
            rpc_url: Primary HTTP RPC endpoint
            backup_rpc_url: Optional backup HTTP RPC endpoint
            timeout: Per-call timeout in seconds
        """
        providers = {
            "primary": Web3(
                Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout})
            )
        }
        if backup_rpc_url:
            providers["backup"] = Web3(
                Web3.HTTPProvider(
                    backup_rpc_url, request_kwargs={"timeout": timeout}
                )
            )

        self.executor = AsyncChainExecutor(providers, timeout=timeout)

    async def current_height(self) -> int:
        return await self.executor.run(
            lambda w3: w3.eth.block_number,
            operation_name="eth_blockNumber",
        )

    async def get_logs(
        self,
        contract_address: str,
        event_topic: str,
        from_block: int,
        to_block: int,
    ) -> list[LogRecord]:
        """
        Query factory logs for one bounded block range.

        Raises:
            ProviderError: If the range query fails on all providers
        """
        params = {
            "address": Web3.to_checksum_address(contract_address),
            "topics": [event_topic],
            "fromBlock": from_block,
            "toBlock": to_block,
        }
        raw_logs = await self.executor.run(
            lambda w3: w3.eth.get_logs(params),
            operation_name=f"eth_getLogs {from_block}-{to_block}",
            timeout=BLOCKCHAIN_LONG_TIMEOUT,
        )
        try:
            return [_to_log_record(raw) for raw in raw_logs]
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(
                f"Malformed log in blocks {from_block}-{to_block}: {e!r}"
            ) from e

    async def get_transaction(self, tx_hash: str) -> TransactionInfo | None:
        """
        Fetch transaction by hash.

        Returns:
            TransactionInfo or None if the node does not know the transaction
        """

        def _fetch(w3: Web3) -> Any:
            try:
                return w3.eth.get_transaction(tx_hash)
            except TransactionNotFound:
                return None

        tx = await self.executor.run(
            _fetch, operation_name=f"eth_getTransactionByHash {tx_hash[:10]}"
        )
        if tx is None:
            return None

        try:
            return TransactionInfo(
                hash=Web3.to_hex(tx["hash"]).lower(),
                sender=str(tx["from"]).lower(),
                calldata=_to_bytes(tx.get("input", b"")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed transaction {tx_hash[:10]}: {e!r}") from e

    async def call_read_only(
        self,
        contract_address: str,
        signature: str,
        args: Sequence[Any] = (),
        output_types: Sequence[str] = (),
    ) -> tuple[Any, ...]:
        """
        Execute eth_call and ABI-decode the result.

        Args:
            contract_address: Contract to call
            signature: Flat function signature, e.g. "token0()"
            args: Positional arguments matching the signature
            output_types: ABI types of the return values

        Raises:
            ProviderError: On transport failure, revert or undecodable output
        """
        arg_types = signature_arg_types(signature)
        data = function_selector(signature) + abi_encode(arg_types, list(args))
        call = {
            "to": Web3.to_checksum_address(contract_address),
            "data": Web3.to_hex(data),
        }

        raw = await self.executor.run(
            lambda w3: w3.eth.call(call),
            operation_name=f"eth_call {signature}",
        )

        if not output_types:
            return ()

        try:
            return tuple(abi_decode(list(output_types), bytes(raw)))
        except DecodingError as e:
            logger.debug(f"[Chain] Undecodable {signature} output: {e}")
            raise ProviderError(f"Cannot decode {signature} output: {e}") from e

    def close(self) -> None:
        """Release executor threads."""
        self.executor.cleanup()
