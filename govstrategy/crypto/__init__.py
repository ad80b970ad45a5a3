"""
govstrategy Crypto Module

Cryptographic primitives for signed ballots:
- Keccak-256 hashing
- EIP-55 address normalisation
- EIP-712 typed-data digests and secp256k1 signer recovery
"""

from .hashing import keccak256
from .address import is_valid_address, is_zero_address, normalize_address
from .signing import (
    domain_separator,
    parse_signature,
    recover_signer,
    sign_msg_hash,
    sign_typed_message,
    type_hash,
    typed_data_digest,
)

__all__ = [
    # Hashing
    "keccak256",
    # Address
    "is_valid_address",
    "is_zero_address",
    "normalize_address",
    # Signing
    "domain_separator",
    "parse_signature",
    "recover_signer",
    "sign_msg_hash",
    "sign_typed_message",
    "type_hash",
    "typed_data_digest",
]
