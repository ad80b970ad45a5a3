"""
govstrategy Crypto Signing Module

EIP-712 typed-data hashing and secp256k1 signer recovery for signed ballots.
"""

from typing import Any, Dict, Tuple, Union

from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_keys import keys as eth_keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak

from ..constants import EIP712_DOMAIN_TYPE, EIP712_PREFIX
from ..exceptions import InvalidSignature
from .hashing import keccak256


SignatureLike = Union[bytes, str, Tuple[int, int, int]]

SIGNATURE_LENGTH = 65


def type_hash(type_string: str) -> bytes:
    """keccak256 of an EIP-712 type encoding, e.g. ``Ballot(uint256 proposalId,uint8 support)``."""
    return keccak256(type_string)


def domain_separator(name: str, chain_id: int, verifying_contract: str) -> bytes:
    """
    Compute the EIP-712 domain separator.

    Args:
        name: Signing domain name
        chain_id: Chain id the signature is bound to
        verifying_contract: Address of the contract verifying the signature

    Returns:
        32-byte domain separator
    """
    return keccak(encode(
        ['bytes32', 'bytes32', 'uint256', 'address'],
        [type_hash(EIP712_DOMAIN_TYPE), keccak(text=name), chain_id, verifying_contract],
    ))


def typed_data_digest(domain_sep: bytes, struct_hash: bytes) -> bytes:
    """EIP-712: keccak256(0x19 0x01 domainSeparator structHash)."""
    return keccak256(EIP712_PREFIX + domain_sep + struct_hash)


def parse_signature(signature: SignatureLike) -> eth_keys.Signature:
    """
    Parse a signature into an eth-keys Signature.

    Accepts 65 raw bytes (r[32] + s[32] + v[1]), the same as a hex string, or
    a (v, r, s) tuple. v may be 27/28 or 0/1.

    Raises:
        InvalidSignature: If the signature is malformed
    """
    try:
        if isinstance(signature, tuple):
            v, r, s = signature
        else:
            if isinstance(signature, str):
                sig_hex = signature[2:] if signature.startswith(('0x', '0X')) else signature
                signature = bytes.fromhex(sig_hex)
            signature = bytes(signature)
            if len(signature) != SIGNATURE_LENGTH:
                raise InvalidSignature(
                    f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
                )
            r = int.from_bytes(signature[0:32], byteorder='big')
            s = int.from_bytes(signature[32:64], byteorder='big')
            v = signature[64]

        # Normalize v to 0/1
        if v >= 27:
            v -= 27
        return eth_keys.Signature(vrs=(v, r, s))
    except InvalidSignature:
        raise
    except (ValueError, TypeError, ValidationError, BadSignature) as e:
        raise InvalidSignature(f"Malformed signature: {e}") from e


def recover_signer(msg_hash: bytes, signature: SignatureLike) -> str:
    """
    Recover the checksum address that produced *signature* over *msg_hash*.

    This mirrors Solidity's ecrecover() but fails loudly instead of returning
    the zero address.

    Raises:
        InvalidSignature: If recovery fails
    """
    sig = parse_signature(signature)
    try:
        public_key = sig.recover_public_key_from_msg_hash(msg_hash)
    except (BadSignature, ValidationError, ValueError) as e:
        raise InvalidSignature(f"Signature recovery failed: {e}") from e
    return public_key.to_checksum_address()


def sign_msg_hash(private_key: Union[bytes, str], msg_hash: bytes) -> bytes:
    """
    Sign a 32-byte digest and return the 65-byte r || s || v form (v = 27/28).
    """
    if isinstance(private_key, str):
        key_hex = private_key[2:] if private_key.startswith('0x') else private_key
        private_key = bytes.fromhex(key_hex)
    if len(msg_hash) != 32:
        raise ValueError(f"Message hash must be 32 bytes, got {len(msg_hash)}")
    sig = eth_keys.PrivateKey(private_key).sign_msg_hash(msg_hash)
    return (
        sig.r.to_bytes(32, byteorder='big')
        + sig.s.to_bytes(32, byteorder='big')
        + bytes([sig.v + 27])
    )


def sign_typed_message(private_key: Union[bytes, str], full_message: Dict[str, Any]) -> bytes:
    """
    Sign an EIP-712 ``full_message`` dict the way a wallet would.

    Returns:
        65-byte signature
    """
    signable = encode_typed_data(full_message=full_message)
    signed = Account.sign_message(signable, private_key=private_key)
    return bytes(signed.signature)
