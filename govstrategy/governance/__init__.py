"""
govstrategy Proposal Voting Strategies

Provides:
  - ProposalVotingStrategy / SnapshotStrategy / DepositDelegationStrategy (strategy.py)
  - WeightOracle / SnapshotWeightOracle / DepositWeightOracle              (oracle.py)
  - Delegation / DelegationLedger                                         (delegation.py)
  - Support / Receipt / ReceiptStore                                      (receipts.py)
  - ProposalSnapshot / ProposalIntake                                     (intake.py)
  - VoteAuthenticator                                                     (authenticator.py)
  - EventLog and strategy events                                          (events.py)
"""

from .events import (
    EventLog,
    ProposalReceived,
    ProposalThresholdUpdated,
    VoteCast,
    VotesDelegated,
    VotesUndelegated,
)
from .receipts import EMPTY_RECEIPT, Receipt, ReceiptStore, Support
from .delegation import Delegation, DelegationLedger
from .oracle import DepositWeightOracle, SnapshotWeightOracle, WeightOracle
from .intake import ProposalIntake, ProposalSnapshot
from .authenticator import BALLOT_TYPEHASH, VoteAuthenticator
from .strategy import (
    STRATEGY_CLASSES,
    DepositDelegationStrategy,
    ProposalVotingStrategy,
    SnapshotStrategy,
)

__all__ = [
    # Events
    "EventLog",
    "ProposalReceived",
    "ProposalThresholdUpdated",
    "VoteCast",
    "VotesDelegated",
    "VotesUndelegated",
    # Receipts
    "EMPTY_RECEIPT",
    "Receipt",
    "ReceiptStore",
    "Support",
    # Delegation
    "Delegation",
    "DelegationLedger",
    # Weight
    "DepositWeightOracle",
    "SnapshotWeightOracle",
    "WeightOracle",
    # Intake
    "ProposalIntake",
    "ProposalSnapshot",
    # Authentication
    "BALLOT_TYPEHASH",
    "VoteAuthenticator",
    # Strategies
    "STRATEGY_CLASSES",
    "DepositDelegationStrategy",
    "ProposalVotingStrategy",
    "SnapshotStrategy",
]
