"""
Proposal intake

Accepts proposal notifications from the registered lifecycle module, checks
the proposer's eligibility against the proposal threshold, and pins each
proposal's snapshot point.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from ..chain import ChainContext
from ..crypto.address import normalize_address
from ..exceptions import (
    BelowProposalThreshold,
    InvalidAmountError,
    ProposalAlreadyExists,
    ProposalClosedError,
    ProposalNotFoundError,
    Unauthorized,
)
from ..logger import get_logger
from .events import EventLog, ProposalReceived, ProposalThresholdUpdated
from .oracle import WeightOracle

logger = get_logger(__name__)


@dataclass
class ProposalSnapshot:
    """
    A proposal as seen by the strategy.

    Fields:
        id:                Unique identifier assigned by the lifecycle module
        proposer:          Address that created the proposal
        snapshot_point:    Block at which voting weight is measured (fixed)
        description_hash:  Content digest of the proposal description
        active:            False once the lifecycle module closes it
        received_at:       Block at which the strategy received it
    """
    id: int
    proposer: str
    snapshot_point: int
    description_hash: str
    active: bool = True
    received_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "proposer": self.proposer,
            "snapshotPoint": self.snapshot_point,
            "descriptionHash": self.description_hash,
            "active": self.active,
            "receivedAt": self.received_at,
        }


def _normalize_hash(description_hash) -> str:
    if isinstance(description_hash, (bytes, bytearray)):
        return "0x" + bytes(description_hash).hex()
    return str(description_hash)


class ProposalIntake:
    """
    Registry of received proposals.

    Only ``lifecycle_module`` may deliver or close proposals. Proposal ids
    must be fresh: a repeated id is rejected rather than overwriting the
    stored snapshot.
    """

    def __init__(
        self,
        oracle: WeightOracle,
        chain: ChainContext,
        lifecycle_module: str,
        proposal_threshold: int,
        events: EventLog,
    ):
        if proposal_threshold < 0:
            raise InvalidAmountError("Proposal threshold cannot be negative")
        self.oracle = oracle
        self.chain = chain
        self.lifecycle_module = normalize_address(lifecycle_module)
        self.proposal_threshold = proposal_threshold
        self.events = events

        self._proposals: Dict[int, ProposalSnapshot] = {}

    def _require_lifecycle(self, sender: str):
        if normalize_address(sender) != self.lifecycle_module:
            raise Unauthorized(f"{sender} is not the registered lifecycle module")

    # ── Intake ────────────────────────────────────────────────────────

    def receive_proposal(
        self,
        sender: str,
        proposal_id: int,
        proposer: str,
        description_hash,
        snapshot_point: int,
    ) -> ProposalSnapshot:
        """
        Record a new proposal.

        The proposer's weight one block before now must strictly exceed the
        proposal threshold.

        Raises:
            Unauthorized: Sender is not the lifecycle module
            ProposalAlreadyExists: Proposal id already received
            BelowProposalThreshold: Proposer weight too low
        """
        self._require_lifecycle(sender)
        proposer = normalize_address(proposer)

        if proposal_id in self._proposals:
            raise ProposalAlreadyExists(f"Proposal #{proposal_id} already received")

        weight = self.oracle.weight_at(proposer, self.chain.previous_block)
        if weight <= self.proposal_threshold:
            logger.warning(
                f"Rejected proposal #{proposal_id}: {proposer} weight={weight} "
                f"threshold={self.proposal_threshold}"
            )
            raise BelowProposalThreshold(
                f"{proposer} weight {weight} does not exceed threshold {self.proposal_threshold}"
            )

        proposal = ProposalSnapshot(
            id=proposal_id,
            proposer=proposer,
            snapshot_point=snapshot_point,
            description_hash=_normalize_hash(description_hash),
            received_at=self.chain.block_number,
        )
        self._proposals[proposal_id] = proposal
        self.events.emit(ProposalReceived(proposal_id=proposal_id, timestamp=self.chain.timestamp))
        logger.info(
            f"Received proposal #{proposal_id} from {proposer} "
            f"(snapshot block {snapshot_point}, weight={weight})"
        )
        return proposal

    def close(self, sender: str, proposal_id: int) -> ProposalSnapshot:
        """Mark a proposal closed; only the lifecycle module may do this."""
        self._require_lifecycle(sender)
        proposal = self.get(proposal_id)
        if not proposal.active:
            raise ProposalClosedError(f"Proposal #{proposal_id} is already closed")
        proposal.active = False
        logger.info(f"Closed proposal #{proposal_id}")
        return proposal

    # ── Threshold ─────────────────────────────────────────────────────

    def set_threshold(self, new_threshold: int) -> ProposalThresholdUpdated:
        if isinstance(new_threshold, bool) or not isinstance(new_threshold, int) or new_threshold < 0:
            raise InvalidAmountError(f"Invalid proposal threshold: {new_threshold!r}")
        previous = self.proposal_threshold
        self.proposal_threshold = new_threshold
        event = self.events.emit(ProposalThresholdUpdated(
            previous=previous,
            new=new_threshold,
            timestamp=self.chain.timestamp,
        ))
        logger.info(f"Proposal threshold updated: {previous} → threshold={new_threshold}")
        return event

    # ── Queries ───────────────────────────────────────────────────────

    def get(self, proposal_id: int) -> ProposalSnapshot:
        proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise ProposalNotFoundError(f"Proposal #{proposal_id} not found")
        return proposal

    def exists(self, proposal_id: int) -> bool:
        return proposal_id in self._proposals

    def proposal_ids(self) -> List[int]:
        return list(self._proposals)

    def __repr__(self) -> str:
        return f"<ProposalIntake proposals={len(self._proposals)}>"
