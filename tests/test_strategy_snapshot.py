"""
Snapshot strategy tests

Coverage:
  - Proposal delivery and threshold administration
  - Direct, reasoned and relayed votes weighted at the snapshot block
  - One vote per voter, atomic failure, lifecycle notification
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
from govstrategy.constants import MAX_WEIGHT
from govstrategy.crypto.address import normalize_address
from govstrategy.exceptions import (
    AlreadyVoted,
    InvalidSignature,
    InvalidSupportError,
    ProposalNotFoundError,
    ReentrancyError,
    StaleSnapshotViolation,
    Unauthorized,
    WeightOverflow,
)
from govstrategy.governance.events import ProposalThresholdUpdated, VoteCast
from govstrategy.governance.receipts import Support
from govstrategy.governance.strategy import SnapshotStrategy
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


def make_strategy(threshold=0, vote_listener=None, balances=None):
    """Token with balances fixed at block 1, strategy deployed at block 2."""
    chain = ChainContext(block_number=1)
    token = GovernanceToken(
        name="Governance",
        symbol="GOV",
        chain=chain,
        address=TOKEN_ADDR,
        total_supply=1_000_000,
        deployer=DEPLOYER,
    )
    for account, amount in (balances or {ALICE: 500, BOB: 40, SIGNER: 70}).items():
        token.transfer(DEPLOYER, account, amount)
    chain.mine()
    strategy = SnapshotStrategy(
        token,
        chain,
        address=STRATEGY_ADDR,
        owner=OWNER,
        lifecycle_module=LIFECYCLE,
        proposal_threshold=threshold,
        vote_listener=vote_listener,
    )
    return chain, token, strategy


def open_proposal(strategy, pid=1, proposer=ALICE, snapshot_point=1):
    return strategy.receive_proposal(LIFECYCLE, pid, proposer, DESCRIPTION_HASH, snapshot_point)


class TestSnapshotProposals:

    def test_configuration_views(self):
        chain, token, strategy = make_strategy(threshold=10)
        assert strategy.token is token
        assert strategy.proposal_threshold == 10
        assert strategy.lifecycle_module == LIFECYCLE
        assert strategy.voting_period > 0
        assert strategy.model == "snapshot"
        assert len(strategy.domain_separator) == 32

    def test_receive_and_get(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        proposal = strategy.get_proposal(1)
        assert proposal.proposer == ALICE
        assert proposal.snapshot_point == 1
        assert strategy.to_dict()["proposals"][1]["snapshotPoint"] == 1

    def test_update_threshold_owner_only(self):
        chain, token, strategy = make_strategy()
        with pytest.raises(Unauthorized):
            strategy.update_proposal_threshold(ALICE, 5)
        event = strategy.update_proposal_threshold(OWNER, 100)
        assert isinstance(event, ProposalThresholdUpdated)
        assert strategy.proposal_threshold == 100
        assert strategy.events.last() is event

    def test_weight_of_unknown_proposal(self):
        chain, token, strategy = make_strategy()
        with pytest.raises(ProposalNotFoundError):
            strategy.calculate_weight(BOB, 1)


class TestSnapshotVoting:

    def test_weight_fixed_at_snapshot(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        # Balances move after the snapshot block
        token.transfer(BOB, CAROL, 40)
        token.transfer(DEPLOYER, CAROL, 1_000)
        chain.mine()

        assert strategy.calculate_weight(BOB, 1) == 40
        assert strategy.calculate_weight(CAROL, 1) == 0

        receipt = strategy.vote(BOB, 1, Support.FOR)
        assert receipt.has_voted
        assert receipt.support is Support.FOR
        assert receipt.weight == 40

    def test_second_vote_rejected(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        strategy.vote(BOB, 1, Support.FOR)
        with pytest.raises(AlreadyVoted):
            strategy.vote(BOB, 1, Support.AGAINST)
        receipt = strategy.get_receipt(1, BOB)
        assert receipt.support is Support.FOR
        assert receipt.weight == 40
        assert len(strategy.events.of_type(VoteCast)) == 1

    def test_votes_on_separate_proposals(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy, pid=1)
        open_proposal(strategy, pid=2)
        strategy.vote(BOB, 1, Support.FOR)
        strategy.vote(BOB, 2, Support.ABSTAIN)
        assert strategy.get_receipt(2, BOB).support is Support.ABSTAIN

    def test_zero_weight_vote_recorded(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        receipt = strategy.vote(CAROL, 1, Support.AGAINST)
        assert receipt.has_voted
        assert receipt.weight == 0

    def test_vote_with_reason(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        strategy.vote_with_reason(ALICE, 1, 1, "ship it")
        event = strategy.events.last(VoteCast)
        assert event.reason == "ship it"
        assert event.weight == 500

    def test_invalid_support(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        with pytest.raises(InvalidSupportError):
            strategy.vote(BOB, 1, 3)
        assert not strategy.has_voted(1, BOB)

    def test_snapshot_not_yet_finalized(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy, snapshot_point=chain.block_number)
        with pytest.raises(StaleSnapshotViolation):
            strategy.vote(BOB, 1, Support.FOR)
        assert not strategy.has_voted(1, BOB)
        chain.mine()
        assert strategy.vote(BOB, 1, Support.FOR).weight == 40

    def test_weight_overflow_aborts_vote(self):
        chain, token, strategy = make_strategy(balances={ALICE: 500})
        token.mint(DEPLOYER, CAROL, MAX_WEIGHT + 1)
        chain.mine()
        open_proposal(strategy, snapshot_point=2)
        with pytest.raises(WeightOverflow):
            strategy.vote(CAROL, 1, Support.FOR)
        assert not strategy.has_voted(1, CAROL)


class TestSignedVoting:

    def test_relayed_vote_credits_signer(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        signature = strategy.authenticator.sign_ballot(SIGNER_KEY, 1, Support.FOR)

        receipt = strategy.vote_by_signature(RELAYER, 1, Support.FOR, signature)

        assert receipt.weight == 70
        assert strategy.has_voted(1, SIGNER)
        assert not strategy.has_voted(1, RELAYER)

    def test_replayed_signature_rejected(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        signature = strategy.authenticator.sign_ballot(SIGNER_KEY, 1, Support.FOR)
        strategy.vote_by_signature(RELAYER, 1, Support.FOR, signature)
        with pytest.raises(AlreadyVoted):
            strategy.vote_by_signature(ALICE, 1, Support.FOR, signature)

    def test_signed_then_direct_rejected(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        signature = strategy.authenticator.sign_ballot(SIGNER_KEY, 1, Support.AGAINST)
        strategy.vote_by_signature(RELAYER, 1, Support.AGAINST, signature)
        with pytest.raises(AlreadyVoted):
            strategy.vote(SIGNER, 1, Support.FOR)

    def test_tampered_support_does_not_credit_signer(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        signature = strategy.authenticator.sign_ballot(SIGNER_KEY, 1, Support.FOR)
        strategy.vote_by_signature(RELAYER, 1, Support.AGAINST, signature)
        assert not strategy.has_voted(1, SIGNER)

    def test_malformed_signature(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        with pytest.raises(InvalidSignature):
            strategy.vote_by_signature(RELAYER, 1, Support.FOR, b"\x00" * 10)


class TestVoteListener:

    def test_listener_notified(self):
        listener = MagicMock()
        chain, token, strategy = make_strategy(vote_listener=listener)
        open_proposal(strategy)
        strategy.vote(ALICE, 1, Support.FOR)

        listener.assert_called_once()
        event = listener.call_args[0][0]
        assert isinstance(event, VoteCast)
        assert event.voter == ALICE
        assert event.proposal_id == 1
        assert event.support == Support.FOR
        assert event.weight == 500

    def test_listener_failure_aborts_vote(self):
        listener = MagicMock(side_effect=RuntimeError("lifecycle rejected"))
        chain, token, strategy = make_strategy(vote_listener=listener)
        open_proposal(strategy)
        with pytest.raises(RuntimeError, match="lifecycle rejected"):
            strategy.vote(ALICE, 1, Support.FOR)
        assert not strategy.has_voted(1, ALICE)
        assert strategy.events.of_type(VoteCast) == []

    def test_listener_not_called_on_duplicate(self):
        listener = MagicMock()
        chain, token, strategy = make_strategy(vote_listener=listener)
        open_proposal(strategy)
        strategy.vote(ALICE, 1, Support.FOR)
        with pytest.raises(AlreadyVoted):
            strategy.vote(ALICE, 1, Support.FOR)
        assert listener.call_count == 1

    def test_vote_from_inside_listener_rejected(self):
        seen = []
        strategies = []

        def listener(event):
            seen.append((event.voter, event.weight))
            with pytest.raises(ReentrancyError):
                strategies[0].vote(BOB, 1, Support.AGAINST)

        chain, token, strategy = make_strategy(vote_listener=listener)
        strategies.append(strategy)
        open_proposal(strategy)

        receipt = strategy.vote(BOB, 1, Support.FOR)

        assert seen == [(BOB, 40)]
        assert receipt.support is Support.FOR
        assert strategy.get_receipt(1, BOB).support is Support.FOR
        assert len(strategy.events.of_type(VoteCast)) == 1

    def test_reentrant_listener_failure_aborts_outer_vote(self):
        seen = []
        strategies = []
        signature = []

        def listener(event):
            seen.append(event.voter)
            if len(seen) == 1:
                strategies[0].vote_by_signature(RELAYER, 1, Support.FOR, signature[0])

        chain, token, strategy = make_strategy(vote_listener=listener)
        strategies.append(strategy)
        signature.append(strategy.authenticator.sign_ballot(SIGNER_KEY, 1, Support.FOR))
        open_proposal(strategy)

        with pytest.raises(ReentrancyError):
            strategy.vote(BOB, 1, Support.FOR)
        assert seen == [BOB]
        assert not strategy.has_voted(1, BOB)
        assert not strategy.has_voted(1, SIGNER)

        # Guard is released once the outer vote unwinds
        strategy.vote(BOB, 1, Support.FOR)
        assert seen == [BOB, BOB]
        assert strategy.has_voted(1, BOB)

    def test_vote_event_uses_chain_time(self):
        chain, token, strategy = make_strategy()
        open_proposal(strategy)
        strategy.vote(ALICE, 1, Support.FOR)
        assert strategy.events.last(VoteCast).timestamp == chain.timestamp
