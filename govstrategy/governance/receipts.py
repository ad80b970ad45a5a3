"""
Vote receipts

One receipt per (proposal, voter), written once and kept forever as the
audit trail of how and with what weight an address voted.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional

from ..constants import (
    GOVERNANCE_VOTE_ABSTAIN,
    GOVERNANCE_VOTE_AGAINST,
    GOVERNANCE_VOTE_FOR,
)
from ..crypto.address import normalize_address
from ..exceptions import AlreadyVoted, InvalidSupportError
from ..logger import get_logger
from .guards import to_uint96

logger = get_logger(__name__)


class Support(IntEnum):
    """Direction of a vote."""
    AGAINST = GOVERNANCE_VOTE_AGAINST
    FOR = GOVERNANCE_VOTE_FOR
    ABSTAIN = GOVERNANCE_VOTE_ABSTAIN

    @classmethod
    def coerce(cls, value) -> "Support":
        """Convert an int (or Support) into Support, rejecting anything else."""
        if isinstance(value, bool):
            raise InvalidSupportError(f"Invalid support value: {value!r}")
        try:
            return cls(value)
        except ValueError:
            raise InvalidSupportError(f"Invalid support value: {value!r}") from None


@dataclass(frozen=True)
class Receipt:
    """How an address voted on one proposal."""
    has_voted: bool = False
    support: Optional[Support] = None
    weight: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasVoted": self.has_voted,
            "support": self.support.name if self.support is not None else None,
            "weight": self.weight,
        }


EMPTY_RECEIPT = Receipt()


class ReceiptStore:
    """
    Two-level store: proposal_id → voter → Receipt.

    A voter gets at most one receipt per proposal; re-voting is rejected.
    """

    def __init__(self):
        self._receipts: Dict[int, Dict[str, Receipt]] = {}

    def record(self, proposal_id: int, voter: str, support, weight: int) -> Receipt:
        """
        Write the receipt for *voter* on *proposal_id*.

        Raises:
            AlreadyVoted: A receipt already exists
            InvalidSupportError: Support is not against / for / abstain
            WeightOverflow: Weight does not fit in 96 bits
        """
        voter = normalize_address(voter)
        support = Support.coerce(support)
        weight = to_uint96(weight)

        by_voter = self._receipts.get(proposal_id)
        if by_voter is not None and voter in by_voter:
            raise AlreadyVoted(f"{voter} has already voted on proposal #{proposal_id}")

        receipt = Receipt(has_voted=True, support=support, weight=weight)
        self._receipts.setdefault(proposal_id, {})[voter] = receipt
        logger.debug(
            f"Receipt: proposal #{proposal_id} {voter} {support.name} weight={weight}"
        )
        return receipt

    def get(self, proposal_id: int, voter: str) -> Receipt:
        """Receipt for *voter*, or the zero receipt if none was recorded."""
        return self._receipts.get(proposal_id, {}).get(normalize_address(voter), EMPTY_RECEIPT)

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return self.get(proposal_id, voter).has_voted

    def voters(self, proposal_id: int) -> List[str]:
        """Voters on *proposal_id* in the order their votes were recorded."""
        return list(self._receipts.get(proposal_id, {}))

    def voter_count(self, proposal_id: int) -> int:
        return len(self._receipts.get(proposal_id, {}))

    def __repr__(self) -> str:
        return f"<ReceiptStore proposals={len(self._receipts)}>"
