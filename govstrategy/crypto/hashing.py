"""
govstrategy Crypto Hashing Module

Keccak-256, the hash behind addresses, type hashes and typed-data digests.
"""

from typing import Union

from eth_utils import keccak


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum standard).

    Args:
        data: Input bytes, 0x-prefixed hex string, or plain text

    Returns:
        32-byte hash
    """
    if isinstance(data, str):
        if data.startswith('0x') or data.startswith('0X'):
            return keccak(hexstr=data)
        return keccak(text=data)
    return keccak(data)
