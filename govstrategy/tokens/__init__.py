"""
Governance token ledger

Provides:
  - GovernanceToken : ERC-20-style token with per-block voting checkpoints
"""

from .governance_token import (
    ApprovalEvent,
    Checkpoint,
    GovernanceToken,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    SnapshotNotFinalizedError,
    TokenError,
    TransferEvent,
)

__all__ = [
    "ApprovalEvent",
    "Checkpoint",
    "GovernanceToken",
    "InsufficientAllowanceError",
    "InsufficientBalanceError",
    "SnapshotNotFinalizedError",
    "TokenError",
    "TransferEvent",
]
