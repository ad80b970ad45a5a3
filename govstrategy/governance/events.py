"""
Strategy events: an append-only audit log, not queryable state.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type, TypeVar

E = TypeVar("E")


@dataclass(frozen=True)
class ProposalReceived:
    """Emitted when the lifecycle module hands a proposal to the strategy."""
    proposal_id: int
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalReceived",
            "proposalId": self.proposal_id,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ProposalThresholdUpdated:
    previous: int
    new: int
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "ProposalThresholdUpdated",
            "previous": self.previous,
            "new": self.new,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class VotesDelegated:
    delegator: str
    delegatee: str
    amount: int
    block_number: int
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VotesDelegated",
            "delegator": self.delegator,
            "delegatee": self.delegatee,
            "amount": self.amount,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class VotesUndelegated:
    delegator: str
    delegatee: str
    amount: int
    block_number: int
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VotesUndelegated",
            "delegator": self.delegator,
            "delegatee": self.delegatee,
            "amount": self.amount,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class VoteCast:
    """A recorded vote, forwarded to the lifecycle module for quorum math."""
    voter: str
    proposal_id: int
    support: int
    weight: int
    timestamp: float
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "VoteCast",
            "voter": self.voter,
            "proposalId": self.proposal_id,
            "support": self.support,
            "weight": self.weight,
            "reason": self.reason,
            "timestamp": self.timestamp,
        }


class EventLog:
    """Append-only event log."""

    def __init__(self):
        self._events: List[Any] = []

    def emit(self, event: E) -> E:
        self._events.append(event)
        return event

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    def of_type(self, event_type: Type[E]) -> List[E]:
        return [e for e in self._events if isinstance(e, event_type)]

    def last(self, event_type: Optional[Type[E]] = None) -> Optional[Any]:
        events = self._events if event_type is None else self.of_type(event_type)
        return events[-1] if events else None

    def __len__(self) -> int:
        return len(self._events)

    def __repr__(self) -> str:
        return f"<EventLog events={len(self._events)}>"
