"""Unit tests for validation and log masking helpers."""

import pytest

from collector.utils.security import mask_address, mask_tx_hash
from collector.utils.validation import is_valid_address


class TestIsValidAddress:
    """Tests for is_valid_address."""

    @pytest.mark.parametrize(
        "address",
        [
            "0x903878b49bba6c55d14857fbc25805de7825e231",
            "0x0000000000000000000000000000000000000000",
            "0x9Bd7dCc13c532F37F65B0bF078C8f83E037e7445".lower(),
        ],
    )
    def test_valid(self, address):
        assert is_valid_address(address) is True

    @pytest.mark.parametrize(
        "address",
        [None, "", "0x1234", "not-an-address", 12345, "0x" + "g" * 40],
    )
    def test_invalid(self, address):
        assert is_valid_address(address) is False


class TestMasking:
    """Tests for log masking."""

    def test_mask_address(self):
        assert mask_address("0x1234567890abcdef1234567890abcdef12345678") == "0x1234...5678"
        assert mask_address(None) == "***"

    def test_mask_tx_hash(self):
        tx_hash = "0x" + "ab" * 32

        assert mask_tx_hash(tx_hash) == "0xabababab...ababab"
        assert mask_tx_hash("0x12") == "***"
