"""
Deposit delegation strategy tests

Coverage:
  - Weight from delegated deposits, same-block deposit rejection
  - Delegatee locks from first vote until the proposal closes
  - Signed votes against delegated weight
"""

import os
import sys
from unittest.mock import MagicMock

import pytest
from eth_keys import keys as eth_keys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govstrategy.chain import ChainContext
from govstrategy.crypto.address import normalize_address
from govstrategy.exceptions import (
    AlreadyVoted,
    BelowProposalThreshold,
    DelegationLocked,
    ProposalClosedError,
    StaleSnapshotViolation,
    Unauthorized,
)
from govstrategy.governance.events import VoteCast, VotesDelegated, VotesUndelegated
from govstrategy.governance.receipts import Support
from govstrategy.governance.strategy import DepositDelegationStrategy
from govstrategy.tokens.governance_token import GovernanceToken


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

ALICE = normalize_address("0x" + "a1" * 20)
BOB = normalize_address("0x" + "b2" * 20)
CAROL = normalize_address("0x" + "c3" * 20)
DEPLOYER = normalize_address("0x" + "d4" * 20)
OWNER = normalize_address("0x" + "0e" * 20)
LIFECYCLE = normalize_address("0x" + "1c" * 20)
RELAYER = normalize_address("0x" + "9e" * 20)
TOKEN_ADDR = normalize_address("0x" + "70" * 20)
STRATEGY_ADDR = normalize_address("0x" + "5e" * 20)

SIGNER_KEY = b"\x07" * 32
SIGNER = eth_keys.PrivateKey(SIGNER_KEY).public_key.to_checksum_address()

DESCRIPTION_HASH = b"\x42" * 32


def make_strategy(threshold=0, vote_listener=None):
    chain = ChainContext(block_number=1)
    token = GovernanceToken(
        name="Governance",
        symbol="GOV",
        chain=chain,
        address=TOKEN_ADDR,
        total_supply=1_000_000,
        deployer=DEPLOYER,
    )
    for account in (ALICE, CAROL):
        token.transfer(DEPLOYER, account, 1_000)
    strategy = DepositDelegationStrategy(
        token,
        chain,
        address=STRATEGY_ADDR,
        owner=OWNER,
        lifecycle_module=LIFECYCLE,
        proposal_threshold=threshold,
        vote_listener=vote_listener,
    )
    return chain, token, strategy


def deposit(token, strategy, delegator, delegatee, amount):
    token.approve(delegator, strategy.address, amount)
    return strategy.delegate(delegator, delegatee, amount)


def open_proposal(strategy, pid=1, proposer=BOB):
    snapshot_point = strategy.chain.previous_block
    return strategy.receive_proposal(LIFECYCLE, pid, proposer, DESCRIPTION_HASH, snapshot_point)


class TestDepositWeight:

    def test_same_block_deposit_cannot_vote(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        open_proposal(strategy)

        deposit(token, strategy, CAROL, BOB, 50)
        with pytest.raises(StaleSnapshotViolation):
            strategy.vote(BOB, 1, Support.FOR)
        assert not strategy.has_voted(1, BOB)

        chain.mine()
        assert strategy.vote(BOB, 1, Support.FOR).weight == 150

    def test_proposer_needs_settled_deposit(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, BOB, 100)
        with pytest.raises(StaleSnapshotViolation):
            open_proposal(strategy)
        chain.mine()
        open_proposal(strategy)

    def test_proposer_threshold_uses_delegated_weight(self):
        chain, token, strategy = make_strategy(threshold=100)
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        with pytest.raises(BelowProposalThreshold):
            open_proposal(strategy)
        deposit(token, strategy, CAROL, BOB, 1)
        chain.mine()
        open_proposal(strategy)

    def test_delegator_has_no_weight_of_its_own(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        open_proposal(strategy)
        assert strategy.calculate_weight(ALICE, 1) == 0
        assert strategy.calculate_weight(BOB, 1) == 100

    def test_delegation_events_share_strategy_log(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        strategy.undelegate(ALICE, BOB, 40)
        assert isinstance(strategy.events.events[0], VotesDelegated)
        assert isinstance(strategy.events.last(), VotesUndelegated)
        assert strategy.get_delegation(BOB).total_delegated == 60


class TestDepositLocks:

    def test_vote_locks_until_close(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        open_proposal(strategy)

        strategy.vote(BOB, 1, Support.FOR)
        assert strategy.get_delegation(BOB).active_proposal_count == 1
        assert strategy.locked_delegatees(1) == [BOB]

        with pytest.raises(DelegationLocked):
            strategy.undelegate(ALICE, BOB, 100)
        assert token.balance_of(ALICE) == 900

        strategy.close_proposal(LIFECYCLE, 1)
        assert strategy.get_delegation(BOB).active_proposal_count == 0
        assert strategy.locked_delegatees(1) == []

        strategy.undelegate(ALICE, BOB, 100)
        assert token.balance_of(ALICE) == 1_000
        assert token.balance_of(STRATEGY_ADDR) == 0

    def test_lock_per_open_proposal(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        open_proposal(strategy, pid=1)
        open_proposal(strategy, pid=2)

        strategy.vote(BOB, 1, Support.FOR)
        strategy.vote(BOB, 2, Support.AGAINST)
        assert strategy.get_delegation(BOB).active_proposal_count == 2

        strategy.close_proposal(LIFECYCLE, 1)
        with pytest.raises(DelegationLocked):
            strategy.undelegate(ALICE, BOB, 1)
        strategy.close_proposal(LIFECYCLE, 2)
        strategy.undelegate(ALICE, BOB, 1)

    def test_failed_vote_does_not_lock(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        open_proposal(strategy)
        strategy.vote(BOB, 1, Support.FOR)
        with pytest.raises(AlreadyVoted):
            strategy.vote(BOB, 1, Support.FOR)
        assert strategy.get_delegation(BOB).active_proposal_count == 1

    def test_vote_after_close_does_not_lock(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        open_proposal(strategy)
        strategy.close_proposal(LIFECYCLE, 1)
        strategy.vote(BOB, 1, Support.FOR)
        assert strategy.get_delegation(BOB).active_proposal_count == 0

    def test_close_only_by_lifecycle(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        open_proposal(strategy)
        with pytest.raises(Unauthorized):
            strategy.close_proposal(ALICE, 1)
        strategy.close_proposal(LIFECYCLE, 1)
        with pytest.raises(ProposalClosedError):
            strategy.close_proposal(LIFECYCLE, 1)

    def test_outsiders_cannot_touch_locks(self):
        chain, token, strategy = make_strategy()
        with pytest.raises(Unauthorized):
            strategy.ledger.lock_for_proposal(BOB, BOB)

    def test_listener_failure_leaves_delegatee_unlocked(self):
        listener = MagicMock(side_effect=RuntimeError("nope"))
        chain, token, strategy = make_strategy(vote_listener=listener)
        deposit(token, strategy, ALICE, BOB, 100)
        chain.mine()
        open_proposal(strategy)
        with pytest.raises(RuntimeError):
            strategy.vote(BOB, 1, Support.FOR)
        assert strategy.get_delegation(BOB).active_proposal_count == 0


class TestDepositSignedVoting:

    def test_relayed_vote_uses_delegated_weight(self):
        chain, token, strategy = make_strategy()
        deposit(token, strategy, ALICE, SIGNER, 300)
        chain.mine()
        open_proposal(strategy, proposer=SIGNER)
        signature = strategy.authenticator.sign_ballot(SIGNER_KEY, 1, Support.ABSTAIN)

        receipt = strategy.vote_by_signature(RELAYER, 1, Support.ABSTAIN, signature)

        assert receipt.weight == 300
        assert strategy.locked_delegatees(1) == [SIGNER]
        assert strategy.events.last(VoteCast).voter == SIGNER
