"""
govstrategy Exceptions

Named failure conditions raised by the voting strategies. Every failing
operation aborts before (or rolls back) any state change.
"""


class StrategyError(Exception):
    """Base exception for govstrategy."""
    pass


class Unauthorized(StrategyError):
    """Caller does not hold the capability required for the operation."""
    pass


class BelowProposalThreshold(StrategyError):
    """Proposer's snapshot weight does not exceed the proposal threshold."""
    pass


class AlreadyVoted(StrategyError):
    """Resolved voter already has a receipt on this proposal."""
    pass


class InvalidSignature(StrategyError):
    """Signature could not be recovered or recovered to the zero address."""
    pass


class DelegationLocked(StrategyError):
    """Delegatee has active proposals; deposits cannot be withdrawn."""
    pass


class InsufficientDelegatedBalance(StrategyError):
    """Withdrawal exceeds the caller's deposit with the delegatee."""
    pass


class StaleSnapshotViolation(StrategyError):
    """Weight queried at or after the current block, or in the block of the last deposit."""
    pass


class WeightOverflow(StrategyError):
    """Weight does not fit the fixed-width receipt field."""
    pass


class ArithmeticUnderflow(StrategyError):
    """Subtraction would go below zero."""
    pass


class ProposalAlreadyExists(StrategyError):
    """Proposal id was already received."""
    pass


class ProposalNotFoundError(StrategyError):
    """Proposal id was never received."""
    pass


class ProposalClosedError(StrategyError):
    """Proposal is already closed."""
    pass


class InvalidSupportError(StrategyError):
    """Support value is not against / for / abstain."""
    pass


class InvalidAmountError(StrategyError, ValueError):
    """Amount is zero, negative or not an integer."""
    pass


class ReentrancyError(StrategyError):
    """Nested entry into a custody-moving operation."""
    pass


class ConfigurationError(StrategyError):
    """Configuration error."""
    pass
