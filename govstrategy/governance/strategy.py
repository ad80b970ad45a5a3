"""
Proposal voting strategies

A strategy is what the proposal-lifecycle module talks to: it accepts new
proposals, records votes, and reports voting weight. Two weighting models
implement the same surface:

  - SnapshotStrategy           : historical token balance at the proposal's snapshot block
  - DepositDelegationStrategy  : tokens deposited and delegated to the voter

Opening and closing the voting window is the lifecycle module's job; it only
forwards votes while a proposal is open.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ..chain import ChainContext
from ..constants import (
    DEFAULT_CHAIN_ID,
    DEFAULT_DOMAIN_NAME,
    DEFAULT_PROPOSAL_THRESHOLD,
    DEFAULT_VOTING_PERIOD_BLOCKS,
    STRATEGY_MODEL_DEPOSIT,
    STRATEGY_MODEL_SNAPSHOT,
)
from ..crypto.address import normalize_address
from ..crypto.signing import SignatureLike
from ..exceptions import AlreadyVoted, ConfigurationError, Unauthorized
from ..logger import get_logger
from .authenticator import VoteAuthenticator
from .delegation import Delegation, DelegationLedger
from .events import EventLog, ProposalThresholdUpdated, VoteCast, VotesDelegated, VotesUndelegated
from .guards import ReentrancyGuard, to_uint96
from .intake import ProposalIntake, ProposalSnapshot
from .oracle import DepositWeightOracle, SnapshotWeightOracle, WeightOracle
from .receipts import Receipt, ReceiptStore, Support

logger = get_logger(__name__)

VoteListener = Callable[[VoteCast], None]


class ProposalVotingStrategy(ABC):
    """
    Common voting surface shared by every weighting model.

    Responsibilities:
        - Accept proposals from the lifecycle module (threshold-gated)
        - Resolve voters directly or from signed ballots
        - Weigh votes at the proposal's fixed snapshot point
        - Keep one receipt per voter per proposal
        - Notify the lifecycle module of every cast vote
    """

    model: str = ""

    def __init__(
        self,
        token,
        chain: ChainContext,
        *,
        address: str,
        owner: str,
        lifecycle_module: str,
        proposal_threshold: int = DEFAULT_PROPOSAL_THRESHOLD,
        voting_period: int = DEFAULT_VOTING_PERIOD_BLOCKS,
        chain_id: int = DEFAULT_CHAIN_ID,
        domain_name: str = DEFAULT_DOMAIN_NAME,
        vote_listener: Optional[VoteListener] = None,
    ):
        """
        Args:
            token:              Governance token ledger (immutable)
            chain:              Block height source
            address:            This strategy's address (custody + EIP-712 verifying contract)
            owner:              Admin allowed to change the proposal threshold
            lifecycle_module:   Only caller allowed to deliver and close proposals
            proposal_threshold: Proposer weight must strictly exceed this
            voting_period:      Voting window in blocks, reported to the lifecycle module
            chain_id:           Chain id for signed ballots
            domain_name:        EIP-712 domain name for signed ballots
            vote_listener:      Callable(VoteCast) notified of every recorded vote
        """
        if voting_period <= 0:
            raise ConfigurationError("Voting period must be positive")

        self._token = token
        self.chain = chain
        self.address = normalize_address(address)
        self.owner = normalize_address(owner)
        self._voting_period = voting_period
        self._vote_listener = vote_listener
        self._vote_guard = ReentrancyGuard(type(self).__name__)

        self.events = EventLog()
        self.receipts = ReceiptStore()
        self.authenticator = VoteAuthenticator(domain_name, chain_id, self.address)
        self.oracle = self._build_oracle()
        self.intake = ProposalIntake(
            oracle=self.oracle,
            chain=chain,
            lifecycle_module=lifecycle_module,
            proposal_threshold=proposal_threshold,
            events=self.events,
        )

        logger.info(
            f"{type(self).__name__} deployed at {self.address} "
            f"(threshold={proposal_threshold}, voting period {voting_period} blocks)"
        )

    @abstractmethod
    def _build_oracle(self) -> WeightOracle:
        ...

    @classmethod
    def from_config(
        cls,
        config,
        token,
        chain: ChainContext,
        vote_listener: Optional[VoteListener] = None,
    ) -> "ProposalVotingStrategy":
        """
        Build a strategy from a validated StrategyConfig.

        Called on the base class, the config's ``model`` picks the variant.
        """
        config.validate()
        if normalize_address(config.token_address) != normalize_address(token.address):
            raise ConfigurationError(
                f"Configured token {config.token_address} does not match {token.address}"
            )
        strategy_cls = cls
        if cls is ProposalVotingStrategy:
            strategy_cls = STRATEGY_CLASSES[config.model]
        elif config.model != cls.model:
            raise ConfigurationError(f"{cls.__name__} cannot run the {config.model!r} model")
        return strategy_cls(
            token,
            chain,
            address=config.strategy_address,
            owner=config.owner,
            lifecycle_module=config.lifecycle_module,
            proposal_threshold=config.proposal_threshold,
            voting_period=config.voting_period,
            chain_id=config.chain_id,
            domain_name=config.domain_name,
            vote_listener=vote_listener,
        )

    # ── Configuration views ───────────────────────────────────────────

    @property
    def token(self):
        return self._token

    @property
    def proposal_threshold(self) -> int:
        return self.intake.proposal_threshold

    @property
    def voting_period(self) -> int:
        return self._voting_period

    @property
    def lifecycle_module(self) -> str:
        return self.intake.lifecycle_module

    @property
    def domain_separator(self) -> bytes:
        return self.authenticator.domain_separator

    # ── Lifecycle boundary ────────────────────────────────────────────

    def receive_proposal(
        self,
        sender: str,
        proposal_id: int,
        proposer: str,
        description_hash,
        snapshot_point: int,
    ) -> ProposalSnapshot:
        """Accept a new proposal from the lifecycle module."""
        return self.intake.receive_proposal(
            sender, proposal_id, proposer, description_hash, snapshot_point
        )

    def close_proposal(self, sender: str, proposal_id: int) -> ProposalSnapshot:
        """Lifecycle module reports that voting on *proposal_id* has ended."""
        proposal = self.intake.close(sender, proposal_id)
        self._on_close(proposal)
        return proposal

    def _on_close(self, proposal: ProposalSnapshot):
        pass

    # ── Voting ────────────────────────────────────────────────────────

    def vote(self, sender: str, proposal_id: int, support) -> Receipt:
        """Cast a vote as the transaction sender."""
        voter = self.authenticator.resolve_direct(sender)
        return self._cast_vote(voter, proposal_id, support, "")

    def vote_with_reason(self, sender: str, proposal_id: int, support, reason: str) -> Receipt:
        """Cast a vote as the transaction sender, recording a free-text reason."""
        voter = self.authenticator.resolve_direct(sender)
        return self._cast_vote(voter, proposal_id, support, reason)

    def vote_by_signature(
        self,
        sender: str,
        proposal_id: int,
        support,
        signature: SignatureLike,
    ) -> Receipt:
        """
        Cast a vote relayed by *sender* on behalf of the ballot's signer.

        Raises:
            InvalidSignature: Signature malformed or unrecoverable
        """
        voter = self.authenticator.resolve_signed(proposal_id, support, signature)
        logger.debug(f"Relayed ballot: {normalize_address(sender)} → {voter} on proposal #{proposal_id}")
        return self._cast_vote(voter, proposal_id, support, "")

    def _cast_vote(self, voter: str, proposal_id: int, support, reason: str) -> Receipt:
        # The listener is external code; a vote cast from inside it is rejected.
        with self._vote_guard:
            # Every check runs before the listener or any store is touched.
            support = Support.coerce(support)
            proposal = self.intake.get(proposal_id)
            if self.receipts.has_voted(proposal_id, voter):
                logger.warning(f"Duplicate vote by {voter} on proposal #{proposal_id}")
                raise AlreadyVoted(f"{voter} has already voted on proposal #{proposal_id}")

            weight = to_uint96(self.oracle.weight_at(voter, proposal.snapshot_point))

            event = VoteCast(
                voter=voter,
                proposal_id=proposal_id,
                support=int(support),
                weight=weight,
                reason=reason,
                timestamp=self.chain.timestamp,
            )
            if self._vote_listener is not None:
                self._vote_listener(event)

            receipt = self.receipts.record(proposal_id, voter, support, weight)
            self._after_vote(voter, proposal)
            self.events.emit(event)

        logger.info(
            f"Vote: {voter} → {support.name} on proposal #{proposal_id} (weight={weight})"
        )
        return receipt

    def _after_vote(self, voter: str, proposal: ProposalSnapshot):
        pass

    # ── Queries ───────────────────────────────────────────────────────

    def calculate_weight(self, voter: str, proposal_id: int) -> int:
        """Voting weight of *voter* on *proposal_id* at its snapshot point."""
        proposal = self.intake.get(proposal_id)
        return self.oracle.weight_at(voter, proposal.snapshot_point)

    def get_receipt(self, proposal_id: int, voter: str) -> Receipt:
        return self.receipts.get(proposal_id, voter)

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return self.receipts.has_voted(proposal_id, voter)

    def get_proposal(self, proposal_id: int) -> ProposalSnapshot:
        return self.intake.get(proposal_id)

    # ── Admin ─────────────────────────────────────────────────────────

    def update_proposal_threshold(self, sender: str, new_threshold: int) -> ProposalThresholdUpdated:
        """Owner-only: change the proposal threshold."""
        if normalize_address(sender) != self.owner:
            raise Unauthorized(f"{sender} is not the owner")
        return self.intake.set_threshold(new_threshold)

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "address": self.address,
            "owner": self.owner,
            "lifecycleModule": self.lifecycle_module,
            "token": self._token.address,
            "proposalThreshold": self.proposal_threshold,
            "votingPeriod": self._voting_period,
            "domainSeparator": "0x" + self.domain_separator.hex(),
            "proposals": {
                pid: self.intake.get(pid).to_dict() for pid in self.intake.proposal_ids()
            },
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.address}>"


class SnapshotStrategy(ProposalVotingStrategy):
    """Weight = the voter's token balance at the proposal's snapshot block."""

    model = STRATEGY_MODEL_SNAPSHOT

    def _build_oracle(self) -> WeightOracle:
        return SnapshotWeightOracle(self._token, self.chain)


class DepositDelegationStrategy(ProposalVotingStrategy):
    """
    Weight = tokens deposited with this strategy and delegated to the voter.

    A delegatee's deposits are locked from its first vote on an open proposal
    until the lifecycle module closes that proposal.
    """

    model = STRATEGY_MODEL_DEPOSIT

    def _build_oracle(self) -> WeightOracle:
        self.ledger = DelegationLedger(
            token=self._token,
            chain=self.chain,
            address=self.address,
            lock_authority=self.address,
            events=self.events,
        )
        self._locked_by_proposal: Dict[int, List[str]] = {}
        return DepositWeightOracle(self.ledger, self.chain)

    # ── Deposits ──────────────────────────────────────────────────────

    def delegate(self, sender: str, delegatee: str, amount: int) -> VotesDelegated:
        """Deposit *amount* (pre-approved to this strategy) and delegate it."""
        return self.ledger.delegate(sender, delegatee, amount)

    def undelegate(self, sender: str, delegatee: str, amount: int) -> VotesUndelegated:
        """Withdraw *amount* of the sender's deposit with *delegatee*."""
        return self.ledger.undelegate(sender, delegatee, amount)

    def get_delegation(self, delegatee: str) -> Delegation:
        return self.ledger.get_delegation(delegatee)

    # ── Locks ─────────────────────────────────────────────────────────

    def _after_vote(self, voter: str, proposal: ProposalSnapshot):
        if not proposal.active:
            return
        locked = self._locked_by_proposal.setdefault(proposal.id, [])
        if voter not in locked:
            self.ledger.lock_for_proposal(self.address, voter)
            locked.append(voter)

    def _on_close(self, proposal: ProposalSnapshot):
        for delegatee in self._locked_by_proposal.pop(proposal.id, []):
            self.ledger.unlock_after_proposal(self.address, delegatee)

    def locked_delegatees(self, proposal_id: int) -> List[str]:
        return list(self._locked_by_proposal.get(proposal_id, []))


STRATEGY_CLASSES = {
    STRATEGY_MODEL_SNAPSHOT: SnapshotStrategy,
    STRATEGY_MODEL_DEPOSIT: DepositDelegationStrategy,
}
