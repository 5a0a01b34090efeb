"""Unit tests for the web3 chain layer."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import encode as abi_encode
from hexbytes import HexBytes

from collector.config.chain_constants import GET_POOL_SIGNATURE, TOKEN_CREATED_TOPIC
from collector.services.chain.async_executor import AsyncChainExecutor
from collector.services.chain.web3_client import (
    Web3ChainClient,
    _to_log_record,
    function_selector,
    signature_arg_types,
)
from collector.utils.exceptions import ProviderError
from tests.fakes import make_address


class TestHelpers:
    """Tests for signature helpers and log conversion."""

    def test_function_selector(self):
        assert function_selector(GET_POOL_SIGNATURE).hex() == "1698ee82"

    def test_signature_arg_types(self):
        assert signature_arg_types(GET_POOL_SIGNATURE) == ["address", "address", "uint24"]
        assert signature_arg_types("liquidity()") == []

    def test_to_log_record_normalizes(self):
        raw = {
            "address": "0x9Bd7dCc13c532F37F65B0bF078C8f83E037e7445",
            "topics": [HexBytes(TOKEN_CREATED_TOPIC)],
            "data": HexBytes("0x01"),
            "blockNumber": 42,
            "transactionHash": HexBytes("0x" + "AB" * 32),
            "logIndex": 3,
        }

        log = _to_log_record(raw)

        assert log.address == "0x9bd7dcc13c532f37f65b0bf078c8f83e037e7445"
        assert log.topics == [TOKEN_CREATED_TOPIC.lower()]
        assert log.data == b"\x01"
        assert log.block_number == 42
        assert log.transaction_hash == "0x" + "ab" * 32
        assert log.log_index == 3


class TestAsyncChainExecutor:
    """Tests for provider failover."""

    @pytest.mark.asyncio
    async def test_primary_success(self):
        executor = AsyncChainExecutor({"primary": MagicMock(), "backup": MagicMock()})

        result = await executor.run(lambda w3: 7)

        assert result == 7
        assert executor.active_provider_name == "primary"
        executor.cleanup()

    @pytest.mark.asyncio
    async def test_failover_switches_active_provider(self):
        primary, backup = MagicMock(), MagicMock()
        executor = AsyncChainExecutor({"primary": primary, "backup": backup})

        def call(w3):
            if w3 is primary:
                raise ConnectionError("primary down")
            return "ok"

        assert await executor.run(call) == "ok"
        assert executor.active_provider_name == "backup"
        executor.cleanup()

    @pytest.mark.asyncio
    async def test_all_providers_failing_raise_provider_error(self):
        executor = AsyncChainExecutor({"primary": MagicMock(), "backup": MagicMock()})

        def call(w3):
            raise ConnectionError("down")

        with pytest.raises(ProviderError):
            await executor.run(call, operation_name="eth_blockNumber")
        executor.cleanup()

    @pytest.mark.asyncio
    async def test_single_provider_failure(self):
        executor = AsyncChainExecutor({"primary": MagicMock()})

        def call(w3):
            raise ValueError("query returned more than 10000 results")

        with pytest.raises(ProviderError):
            await executor.run(call)
        executor.cleanup()

    def test_requires_provider(self):
        with pytest.raises(ValueError):
            AsyncChainExecutor({})


class TestWeb3ChainClient:
    """Tests for read-only calls with a mocked executor."""

    @pytest.fixture
    def client(self):
        client = Web3ChainClient("http://localhost:8545")
        yield client
        client.close()

    @pytest.mark.asyncio
    async def test_call_read_only_decodes(self, client):
        pool = "0x" + "12" * 20
        client.executor.run = AsyncMock(return_value=abi_encode(["address"], [pool]))

        (result,) = await client.call_read_only(
            "0x33128a8fc17869897dce68ed026d694621f6fdfd",
            GET_POOL_SIGNATURE,
            (make_address(1), make_address(2), 3000),
            ("address",),
        )

        assert result.lower() == pool

    @pytest.mark.asyncio
    async def test_undecodable_output_is_provider_error(self, client):
        client.executor.run = AsyncMock(return_value=b"")

        with pytest.raises(ProviderError):
            await client.call_read_only(
                make_address(5), "liquidity()", (), ("uint128",)
            )

    @pytest.mark.asyncio
    async def test_malformed_log_is_provider_error(self, client):
        client.executor.run = AsyncMock(
            return_value=[
                {
                    "address": make_address(7),
                    "topics": [HexBytes(TOKEN_CREATED_TOPIC)],
                    "data": HexBytes("0x"),
                    "blockNumber": None,
                    "transactionHash": HexBytes("0x" + "ab" * 32),
                }
            ]
        )

        with pytest.raises(ProviderError):
            await client.get_logs(make_address(7), TOKEN_CREATED_TOPIC, 1, 500)

    @pytest.mark.asyncio
    async def test_malformed_transaction_is_provider_error(self, client):
        client.executor.run = AsyncMock(return_value={"hash": HexBytes("0x" + "ab" * 32)})

        with pytest.raises(ProviderError):
            await client.get_transaction("0x" + "ab" * 32)
