"""
Weight oracles

``weight_at(account, snapshot_point)`` answers "how much voting power does
this account have as of this point". Both variants are read-only and
deterministic given ledger state at call time.
"""

from abc import ABC, abstractmethod

from ..chain import ChainContext
from ..crypto.address import normalize_address
from ..exceptions import StaleSnapshotViolation
from ..logger import get_logger
from .delegation import DelegationLedger

logger = get_logger(__name__)


class WeightOracle(ABC):
    """Voting power of an address as of a snapshot point."""

    def __init__(self, chain: ChainContext):
        self.chain = chain

    @abstractmethod
    def weight_at(self, account: str, snapshot_point: int) -> int:
        ...


class SnapshotWeightOracle(WeightOracle):
    """
    Historical token balance at the snapshot block.

    Only finalized blocks are meaningful: a snapshot at or after the current
    block is rejected.
    """

    def __init__(self, token, chain: ChainContext):
        super().__init__(chain)
        self.token = token

    def weight_at(self, account: str, snapshot_point: int) -> int:
        if snapshot_point >= self.chain.block_number:
            raise StaleSnapshotViolation(
                f"Snapshot block {snapshot_point} is not before current block "
                f"{self.chain.block_number}"
            )
        weight = self.token.get_prior_votes(normalize_address(account), snapshot_point)
        logger.debug(f"Weight: {account} at block {snapshot_point} weight={weight}")
        return weight


class DepositWeightOracle(WeightOracle):
    """
    Total deposits delegated to the account.

    There is no history to read, so the snapshot point is ignored; instead the
    last deposit must sit in an earlier block than the query, which closes the
    deposit-then-vote window inside a single block.
    """

    def __init__(self, ledger: DelegationLedger, chain: ChainContext):
        super().__init__(chain)
        self.ledger = ledger

    def weight_at(self, account: str, snapshot_point: int) -> int:
        account = normalize_address(account)
        last_block = self.ledger.last_deposit_block(account)
        if last_block >= self.chain.block_number:
            raise StaleSnapshotViolation(
                f"Deposits for {account} changed in block {last_block}; "
                f"weight is readable from block {last_block + 1}"
            )
        weight = self.ledger.total_delegated(account)
        logger.debug(f"Weight: {account} delegated weight={weight}")
        return weight
