"""
Deposit-backed delegation ledger

Delegators deposit governance tokens into the ledger's custody and assign them
to a delegatee, whose voting weight is the sum of deposits assigned to it.
Deposits are locked while the delegatee takes part in open proposals.

Policy: deposits are additive. A second ``delegate`` call by the same
delegator adds to its existing deposit, so that
``total_delegated == sum(deposits_by_delegator.values())`` always holds.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..chain import ChainContext
from ..crypto.address import normalize_address
from ..exceptions import (
    DelegationLocked,
    InsufficientDelegatedBalance,
    InvalidAmountError,
    Unauthorized,
)
from ..logger import get_logger
from .events import EventLog, VotesDelegated, VotesUndelegated
from .guards import ReentrancyGuard, checked_sub

logger = get_logger(__name__)

# Last-deposit block of a delegatee that has never received a deposit
NO_DEPOSIT_BLOCK = -1


@dataclass
class Delegation:
    """Deposits assigned to one delegatee."""
    delegatee: str
    deposits_by_delegator: Dict[str, int] = field(default_factory=dict)
    total_delegated: int = 0
    last_deposit_block: int = NO_DEPOSIT_BLOCK
    active_proposal_count: int = 0

    @property
    def is_locked(self) -> bool:
        return self.active_proposal_count > 0

    def deposit_of(self, delegator: str) -> int:
        return self.deposits_by_delegator.get(delegator, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delegatee": self.delegatee,
            "depositsByDelegator": dict(self.deposits_by_delegator),
            "totalDelegated": self.total_delegated,
            "lastDepositBlock": self.last_deposit_block,
            "activeProposalCount": self.active_proposal_count,
        }


def _require_amount(amount: int):
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(f"Amount must be a positive integer, got {amount!r}")


class DelegationLedger:
    """
    Custody and bookkeeping of delegated deposits.

    Token custody sits at ``address``; delegators approve that address before
    calling ``delegate``. Only ``lock_authority`` (the owning strategy) may
    change lock counts.
    """

    def __init__(
        self,
        token,
        chain: ChainContext,
        address: str,
        lock_authority: Optional[str] = None,
        events: Optional[EventLog] = None,
    ):
        """
        Args:
            token: Governance token ledger (transfer / transfer_from)
            chain: Block height source
            address: Custody address holding deposited tokens
            lock_authority: Only caller allowed to lock/unlock (defaults to *address*)
            events: Shared event log
        """
        self.token = token
        self.chain = chain
        self.address = normalize_address(address)
        self.lock_authority = normalize_address(lock_authority or address)
        self.events = events if events is not None else EventLog()

        self._delegations: Dict[str, Delegation] = {}
        self._guard = ReentrancyGuard("DelegationLedger")

    # ── Views ─────────────────────────────────────────────────────────

    def get_delegation(self, delegatee: str) -> Delegation:
        """Copy of the delegatee's record (an empty record if never delegated to)."""
        delegatee = normalize_address(delegatee)
        record = self._delegations.get(delegatee)
        if record is None:
            return Delegation(delegatee=delegatee)
        return copy.deepcopy(record)

    def total_delegated(self, delegatee: str) -> int:
        record = self._delegations.get(normalize_address(delegatee))
        return record.total_delegated if record else 0

    def deposit_of(self, delegatee: str, delegator: str) -> int:
        record = self._delegations.get(normalize_address(delegatee))
        return record.deposit_of(normalize_address(delegator)) if record else 0

    def last_deposit_block(self, delegatee: str) -> int:
        record = self._delegations.get(normalize_address(delegatee))
        return record.last_deposit_block if record else NO_DEPOSIT_BLOCK

    def active_proposal_count(self, delegatee: str) -> int:
        record = self._delegations.get(normalize_address(delegatee))
        return record.active_proposal_count if record else 0

    # ── Deposits ──────────────────────────────────────────────────────

    def delegate(self, sender: str, delegatee: str, amount: int) -> VotesDelegated:
        """
        Deposit *amount* from *sender* and assign it to *delegatee*.

        Bookkeeping is written before the custody transfer; if the transfer
        fails the record is restored and the error propagates.
        """
        _require_amount(amount)
        sender = normalize_address(sender)
        delegatee = normalize_address(delegatee)

        with self._guard:
            existed = delegatee in self._delegations
            record = self._delegations.setdefault(delegatee, Delegation(delegatee=delegatee))
            backup = copy.deepcopy(record)

            record.deposits_by_delegator[sender] = record.deposit_of(sender) + amount
            record.total_delegated += amount
            record.last_deposit_block = self.chain.block_number

            try:
                self.token.transfer_from(self.address, sender, self.address, amount)
            except Exception:
                if existed:
                    self._delegations[delegatee] = backup
                else:
                    del self._delegations[delegatee]
                raise

        event = self.events.emit(VotesDelegated(
            delegator=sender,
            delegatee=delegatee,
            amount=amount,
            block_number=self.chain.block_number,
            timestamp=self.chain.timestamp,
        ))
        logger.info(f"Delegation: {sender} → {delegatee} amount={amount}")
        return event

    def undelegate(self, sender: str, delegatee: str, amount: int) -> VotesUndelegated:
        """
        Withdraw *amount* of *sender*'s deposit with *delegatee*.

        Raises:
            DelegationLocked: The delegatee has active proposals
            InsufficientDelegatedBalance: The deposit is smaller than *amount*
        """
        _require_amount(amount)
        sender = normalize_address(sender)
        delegatee = normalize_address(delegatee)

        with self._guard:
            record = self._delegations.get(delegatee)
            if record is not None and record.is_locked:
                raise DelegationLocked(
                    f"{delegatee} has {record.active_proposal_count} active proposal(s)"
                )
            deposit = record.deposit_of(sender) if record else 0
            if deposit < amount:
                raise InsufficientDelegatedBalance(
                    f"{sender} deposit {deposit} with {delegatee} < withdrawal {amount}"
                )

            backup = copy.deepcopy(record)
            remaining = checked_sub(deposit, amount, "deposit")
            if remaining:
                record.deposits_by_delegator[sender] = remaining
            else:
                del record.deposits_by_delegator[sender]
            record.total_delegated = checked_sub(record.total_delegated, amount, "total delegated")
            record.last_deposit_block = self.chain.block_number

            try:
                self.token.transfer(self.address, sender, amount)
            except Exception:
                self._delegations[delegatee] = backup
                raise

        event = self.events.emit(VotesUndelegated(
            delegator=sender,
            delegatee=delegatee,
            amount=amount,
            block_number=self.chain.block_number,
            timestamp=self.chain.timestamp,
        ))
        logger.info(f"Undelegation: {sender} ← {delegatee} amount={amount}")
        return event

    # ── Locks (strategy only) ─────────────────────────────────────────

    def _require_lock_authority(self, caller: str):
        if normalize_address(caller) != self.lock_authority:
            raise Unauthorized(f"{caller} may not change delegation locks")

    def lock_for_proposal(self, caller: str, delegatee: str) -> int:
        """Increment the delegatee's active proposal count; returns the new count."""
        self._require_lock_authority(caller)
        delegatee = normalize_address(delegatee)
        record = self._delegations.setdefault(delegatee, Delegation(delegatee=delegatee))
        record.active_proposal_count += 1
        logger.debug(f"Lock: {delegatee} active proposals={record.active_proposal_count}")
        return record.active_proposal_count

    def unlock_after_proposal(self, caller: str, delegatee: str) -> int:
        """Decrement the delegatee's active proposal count; never below zero."""
        self._require_lock_authority(caller)
        delegatee = normalize_address(delegatee)
        current = self.active_proposal_count(delegatee)
        remaining = checked_sub(current, 1, "active proposal count")
        self._delegations[delegatee].active_proposal_count = remaining
        logger.debug(f"Unlock: {delegatee} active proposals={remaining}")
        return remaining

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "delegations": {d: r.to_dict() for d, r in self._delegations.items()},
        }

    def __repr__(self) -> str:
        return f"<DelegationLedger delegatees={len(self._delegations)}>"
