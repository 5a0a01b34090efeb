"""Unit tests for deployer resolution."""

import pytest

from collector.config.chain_constants import (
    KNOWN_DEPLOYERS,
    RELAY_ADDRESS,
    UNKNOWN_DEPLOYER,
    ZERO_ADDRESS,
)
from collector.services.chain.client import TransactionInfo
from collector.services.token_collector.deployer_resolver import (
    DeployerResolver,
    decode_deployer_argument,
)
from collector.utils.exceptions import ResolutionDegradation
from tests.fakes import encode_deploy_token, make_address, make_tx_hash

TX = make_tx_hash(1)
SENDER = make_address(0x5E)
CALLDATA_DEPLOYER = make_address(0xCA11)
LEGACY = make_address(0x1E6)


def add_tx(chain, calldata: bytes = b"", sender: str = SENDER, tx_hash: str = TX):
    chain.transactions[tx_hash] = TransactionInfo(
        hash=tx_hash, sender=sender, calldata=calldata
    )


class TestDecodeDeployerArgument:
    """Tests for decode_deployer_argument."""

    def test_extracts_deployer(self):
        calldata = encode_deploy_token(CALLDATA_DEPLOYER)

        assert decode_deployer_argument(calldata).lower() == CALLDATA_DEPLOYER

    def test_other_method_rejected(self):
        calldata = b"\x12\x34\x56\x78" + encode_deploy_token(CALLDATA_DEPLOYER)[4:]

        with pytest.raises(ResolutionDegradation):
            decode_deployer_argument(calldata)

    def test_empty_calldata_rejected(self):
        with pytest.raises(ResolutionDegradation):
            decode_deployer_argument(b"")

    def test_truncated_arguments_rejected(self):
        calldata = encode_deploy_token(CALLDATA_DEPLOYER)[:40]

        with pytest.raises(ResolutionDegradation):
            decode_deployer_argument(calldata)


class TestDeployerResolver:
    """Tests for DeployerResolver priority chain."""

    @pytest.mark.asyncio
    async def test_known_deployer_wins_without_rpc(self, chain):
        """Override table is used before any transaction lookup."""
        tx_hash, deployer = next(iter(KNOWN_DEPLOYERS.items()))
        add_tx(chain, encode_deploy_token(CALLDATA_DEPLOYER), tx_hash=tx_hash)
        resolver = DeployerResolver(chain)

        result = await resolver.resolve(tx_hash.upper().replace("0X", "0x"), LEGACY)

        assert result == deployer
        assert chain.transaction_lookups == []

    @pytest.mark.asyncio
    async def test_override_beats_calldata(self, chain):
        """Override wins even when calldata names another deployer."""
        override = make_address(0x0E)
        add_tx(chain, encode_deploy_token(CALLDATA_DEPLOYER))
        resolver = DeployerResolver(chain, known_deployers={TX: override})

        assert await resolver.resolve(TX, LEGACY) == override

    @pytest.mark.asyncio
    async def test_calldata_deployer_before_legacy(self, chain):
        add_tx(chain, encode_deploy_token(CALLDATA_DEPLOYER))
        resolver = DeployerResolver(chain, known_deployers={})

        assert await resolver.resolve(TX, LEGACY) == CALLDATA_DEPLOYER

    @pytest.mark.asyncio
    @pytest.mark.parametrize("excluded", [RELAY_ADDRESS, ZERO_ADDRESS])
    async def test_excluded_calldata_deployer_falls_to_legacy(self, chain, excluded):
        add_tx(chain, encode_deploy_token(excluded))
        resolver = DeployerResolver(chain, known_deployers={})

        assert await resolver.resolve(TX, LEGACY) == LEGACY

    @pytest.mark.asyncio
    async def test_non_deploy_call_falls_to_legacy(self, chain):
        add_tx(chain, b"\xde\xad\xbe\xef")
        resolver = DeployerResolver(chain, known_deployers={})

        assert await resolver.resolve(TX, LEGACY) == LEGACY

    @pytest.mark.asyncio
    async def test_excluded_legacy_falls_to_sender(self, chain):
        add_tx(chain, b"")
        resolver = DeployerResolver(chain, known_deployers={})

        assert await resolver.resolve(TX, RELAY_ADDRESS) == SENDER

    @pytest.mark.asyncio
    async def test_sender_accepted_even_if_excluded(self, chain):
        """Last resort sender is not filtered."""
        add_tx(chain, b"", sender=RELAY_ADDRESS)
        resolver = DeployerResolver(chain, known_deployers={})

        assert await resolver.resolve(TX, ZERO_ADDRESS) == RELAY_ADDRESS

    @pytest.mark.asyncio
    async def test_missing_transaction_uses_legacy(self, chain):
        resolver = DeployerResolver(chain, known_deployers={})

        assert await resolver.resolve(TX, LEGACY) == LEGACY

    @pytest.mark.asyncio
    async def test_nothing_available_is_unknown(self, chain):
        resolver = DeployerResolver(chain, known_deployers={})

        assert await resolver.resolve(TX, RELAY_ADDRESS) == UNKNOWN_DEPLOYER

    @pytest.mark.asyncio
    async def test_rpc_failure_degrades_without_raising(self, chain):
        """A failed lookup falls back to the event deployer."""
        chain.failing_transactions.add(TX)
        resolver = DeployerResolver(chain, known_deployers={})

        assert await resolver.resolve(TX, LEGACY) == LEGACY
        assert await resolver.resolve(TX, ZERO_ADDRESS) == UNKNOWN_DEPLOYER

    @pytest.mark.asyncio
    async def test_result_is_memoized(self, chain):
        add_tx(chain, encode_deploy_token(CALLDATA_DEPLOYER))
        resolver = DeployerResolver(chain, known_deployers={})

        first = await resolver.resolve(TX, LEGACY)
        second = await resolver.resolve(TX, LEGACY)

        assert first == second == CALLDATA_DEPLOYER
        assert chain.transaction_lookups == [TX]
        assert TX in resolver.cache

    @pytest.mark.asyncio
    async def test_degraded_result_not_memoized(self, chain):
        """After a failed lookup the next call retries the transaction."""
        chain.failing_transactions.add(TX)
        resolver = DeployerResolver(chain, known_deployers={})

        assert await resolver.resolve(TX, LEGACY) == LEGACY
        assert TX not in resolver.cache

        chain.failing_transactions.clear()
        add_tx(chain, encode_deploy_token(CALLDATA_DEPLOYER))

        assert await resolver.resolve(TX, LEGACY) == CALLDATA_DEPLOYER
        assert len(chain.transaction_lookups) == 2

    def test_is_excluded(self, chain):
        resolver = DeployerResolver(chain)

        assert resolver.is_excluded(RELAY_ADDRESS.upper().replace("0X", "0x"))
        assert resolver.is_excluded(ZERO_ADDRESS)
        assert resolver.is_excluded(None)
        assert not resolver.is_excluded(LEGACY)
