"""
TokenCreated event decoding.
"""

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from collector.config.chain_constants import TOKEN_CREATED_TYPES
from collector.services.chain.client import LogRecord
from collector.utils.exceptions import DecodeError

from .types import TokenCreation


def decode_token_created(log: LogRecord) -> TokenCreation:
    """
    Decode a TokenCreated log into a TokenCreation.

    Only token, legacy deployer, name and symbol are kept; token id, supply,
    recipient and recipient amount are decoded for layout completeness.
    The deployer is left as "unknown" for the resolver to fill in.

    Args:
        log: Raw factory log

    Returns:
        Decoded token creation

    Raises:
        DecodeError: If the payload does not match the event layout
    """
    try:
        (
            token,
            _token_id,
            legacy_deployer,
            name,
            symbol,
            _supply,
            _recipient,
            _recipient_amount,
        ) = abi_decode(TOKEN_CREATED_TYPES, bytes(log.data))
    except (DecodingError, ValueError, TypeError, OverflowError) as e:
        raise DecodeError(
            f"Malformed TokenCreated payload in tx {log.transaction_hash} "
            f"(block {log.block_number}): {e}"
        ) from e

    return TokenCreation(
        contract_address=token.lower(),
        name=name,
        symbol=symbol,
        legacy_deployer=legacy_deployer.lower(),
        block_number=log.block_number,
        transaction_hash=log.transaction_hash.lower(),
    )
