"""
Receipt store, support values and checked arithmetic.
"""

import os
import sys

import pytest

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from govstrategy.constants import MAX_WEIGHT
from govstrategy.crypto.address import normalize_address
from govstrategy.exceptions import (
    AlreadyVoted,
    ArithmeticUnderflow,
    InvalidSupportError,
    ReentrancyError,
    WeightOverflow,
)
from govstrategy.governance.guards import ReentrancyGuard, checked_sub, to_uint96
from govstrategy.governance.receipts import EMPTY_RECEIPT, Receipt, ReceiptStore, Support


ALICE = normalize_address("0x" + "a1" * 20)
BOB = normalize_address("0x" + "b2" * 20)


class TestSupport:

    def test_values(self):
        assert Support.AGAINST == 0
        assert Support.FOR == 1
        assert Support.ABSTAIN == 2

    def test_coerce_int(self):
        assert Support.coerce(1) is Support.FOR

    @pytest.mark.parametrize("value", [3, -1, "for", None, True])
    def test_coerce_rejects(self, value):
        with pytest.raises(InvalidSupportError):
            Support.coerce(value)


class TestReceiptStore:

    def test_default_receipt_is_empty(self):
        store = ReceiptStore()
        receipt = store.get(1, ALICE)
        assert receipt == EMPTY_RECEIPT
        assert receipt.has_voted is False
        assert receipt.weight == 0

    def test_record_and_read_back(self):
        store = ReceiptStore()
        receipt = store.record(1, ALICE.lower(), Support.FOR, 40)
        assert receipt == Receipt(has_voted=True, support=Support.FOR, weight=40)
        assert store.get(1, ALICE) == receipt
        assert store.has_voted(1, ALICE)
        assert not store.has_voted(2, ALICE)

    def test_second_vote_rejected_and_first_kept(self):
        store = ReceiptStore()
        store.record(1, ALICE, Support.FOR, 40)
        with pytest.raises(AlreadyVoted):
            store.record(1, ALICE, Support.AGAINST, 40)
        assert store.get(1, ALICE).support is Support.FOR

    def test_zero_weight_vote_recorded(self):
        store = ReceiptStore()
        store.record(1, BOB, Support.ABSTAIN, 0)
        assert store.has_voted(1, BOB)

    def test_weight_overflow(self):
        store = ReceiptStore()
        store.record(1, ALICE, Support.FOR, MAX_WEIGHT)
        with pytest.raises(WeightOverflow):
            store.record(1, BOB, Support.FOR, MAX_WEIGHT + 1)
        assert not store.has_voted(1, BOB)

    def test_voters_in_order(self):
        store = ReceiptStore()
        store.record(7, BOB, 0, 1)
        store.record(7, ALICE, 1, 2)
        assert store.voters(7) == [BOB, ALICE]
        assert store.voter_count(7) == 2

    def test_to_dict(self):
        assert Receipt(True, Support.ABSTAIN, 3).to_dict() == {
            "hasVoted": True, "support": "ABSTAIN", "weight": 3,
        }


class TestGuards:

    def test_checked_sub(self):
        assert checked_sub(5, 5) == 0
        with pytest.raises(ArithmeticUnderflow, match="count underflow"):
            checked_sub(0, 1, "count")

    def test_to_uint96_bounds(self):
        assert to_uint96(MAX_WEIGHT) == MAX_WEIGHT
        with pytest.raises(WeightOverflow):
            to_uint96(2 ** 96)
        with pytest.raises(ArithmeticUnderflow):
            to_uint96(-1)

    def test_reentrancy_guard(self):
        guard = ReentrancyGuard("test")
        with guard:
            assert guard.entered
            with pytest.raises(ReentrancyError):
                with guard:
                    pass
        assert not guard.entered

    def test_guard_released_after_exception(self):
        guard = ReentrancyGuard()
        with pytest.raises(RuntimeError):
            with guard:
                raise RuntimeError("boom")
        with guard:
            pass
