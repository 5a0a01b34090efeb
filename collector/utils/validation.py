"""Address validation helpers."""

from eth_utils import is_address


def is_valid_address(address: object) -> bool:
    """
    Check that value is a syntactically valid 20-byte hex address.

    Mixed-case input must carry a valid checksum.
    """
    if not isinstance(address, str):
        return False
    return is_address(address)
