"""
govstrategy Crypto Address Module

EIP-55 normalisation for every address that enters a strategy.
"""

from eth_utils import is_address, to_checksum_address

from ..constants import ZERO_ADDRESS


def normalize_address(address: str) -> str:
    """
    Return the EIP-55 checksum form of *address*.

    Raises:
        ValueError: If the value is not a 20-byte hex address
    """
    if not isinstance(address, str) or not is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def is_valid_address(address: str) -> bool:
    """Check if address is a well-formed 20-byte hex address."""
    return isinstance(address, str) and is_address(address)


def is_zero_address(address: str) -> bool:
    """Check if address is the all-zero address."""
    return is_valid_address(address) and address.lower() == ZERO_ADDRESS
