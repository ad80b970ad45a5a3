"""
Vote authentication

Resolves who is voting: the transaction sender for direct votes, or the
signer of an EIP-712 ``Ballot(uint256 proposalId,uint8 support)`` for votes
relayed by someone else.

The ballot carries no nonce or expiry. A signature cannot be replayed onto
another proposal because the proposal id is signed; replaying it on the same
proposal is stopped by the receipt store's AlreadyVoted check.
"""

from typing import Any, Dict, Union

from eth_abi import encode
from eth_utils import keccak

from ..constants import BALLOT_TYPE
from ..crypto.address import is_zero_address, normalize_address
from ..crypto.signing import (
    SignatureLike,
    domain_separator,
    recover_signer,
    sign_typed_message,
    type_hash,
    typed_data_digest,
)
from ..exceptions import InvalidSignature
from ..logger import get_logger
from .receipts import Support

logger = get_logger(__name__)

BALLOT_TYPEHASH = type_hash(BALLOT_TYPE)


class VoteAuthenticator:
    """
    EIP-712 ballot verification bound to one strategy's domain.

    Domain: ``EIP712Domain(string name,uint256 chainId,address verifyingContract)``
    """

    def __init__(self, domain_name: str, chain_id: int, verifying_contract: str):
        self.domain_name = domain_name
        self.chain_id = chain_id
        self.verifying_contract = normalize_address(verifying_contract)
        self.domain_separator = domain_separator(domain_name, chain_id, self.verifying_contract)

    # ── Digests ───────────────────────────────────────────────────────

    def ballot_struct_hash(self, proposal_id: int, support) -> bytes:
        return keccak(encode(
            ['bytes32', 'uint256', 'uint8'],
            [BALLOT_TYPEHASH, proposal_id, int(Support.coerce(support))],
        ))

    def ballot_digest(self, proposal_id: int, support) -> bytes:
        return typed_data_digest(self.domain_separator, self.ballot_struct_hash(proposal_id, support))

    # ── Resolution ────────────────────────────────────────────────────

    def resolve_direct(self, sender: str) -> str:
        return normalize_address(sender)

    def resolve_signed(self, proposal_id: int, support, signature: SignatureLike) -> str:
        """
        Recover the voter behind a signed ballot.

        Raises:
            InvalidSignature: Malformed signature, failed recovery, or zero address
        """
        digest = self.ballot_digest(proposal_id, support)
        signer = recover_signer(digest, signature)
        if is_zero_address(signer):
            raise InvalidSignature("Signature recovered to the zero address")
        logger.debug(f"Signed ballot for proposal #{proposal_id} recovered {signer}")
        return signer

    # ── Relayer helpers ───────────────────────────────────────────────

    def ballot_typed_data(self, proposal_id: int, support) -> Dict[str, Any]:
        """The wallet-facing EIP-712 message for a ballot."""
        return {
            "types": {
                "EIP712Domain": [
                    {"name": "name", "type": "string"},
                    {"name": "chainId", "type": "uint256"},
                    {"name": "verifyingContract", "type": "address"},
                ],
                "Ballot": [
                    {"name": "proposalId", "type": "uint256"},
                    {"name": "support", "type": "uint8"},
                ],
            },
            "primaryType": "Ballot",
            "domain": {
                "name": self.domain_name,
                "chainId": self.chain_id,
                "verifyingContract": self.verifying_contract,
            },
            "message": {
                "proposalId": proposal_id,
                "support": int(Support.coerce(support)),
            },
        }

    def sign_ballot(self, private_key: Union[bytes, str], proposal_id: int, support) -> bytes:
        """Sign a ballot for relaying; returns the 65-byte signature."""
        return sign_typed_message(private_key, self.ballot_typed_data(proposal_id, support))

    def __repr__(self) -> str:
        return f"<VoteAuthenticator domain={self.domain_name!r} chain={self.chain_id}>"
