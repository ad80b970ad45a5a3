"""
Logical time for the strategies.

The host ledger orders every call into blocks; the strategies only ever need
the current block height (snapshot points are block heights) and a timestamp
for events. ChainContext is that view, and it is the only place time moves.
"""

import time
from typing import Any, Dict, Optional

from .constants import DEFAULT_BLOCK_TIME
from .exceptions import ArithmeticUnderflow


class ChainContext:
    """Current block height and timestamp seen by a strategy."""

    def __init__(
        self,
        block_number: int = 1,
        timestamp: Optional[float] = None,
        block_time: int = DEFAULT_BLOCK_TIME,
    ):
        if block_number < 0:
            raise ValueError("Block number cannot be negative")
        if block_time <= 0:
            raise ValueError("Block time must be positive")
        self._block_number = block_number
        self._timestamp = time.time() if timestamp is None else timestamp
        self.block_time = block_time

    @property
    def block_number(self) -> int:
        return self._block_number

    @property
    def timestamp(self) -> float:
        return self._timestamp

    @property
    def previous_block(self) -> int:
        """Height one unit before now; the latest finalized snapshot point."""
        if self._block_number == 0:
            raise ArithmeticUnderflow("No block precedes the genesis block")
        return self._block_number - 1

    def mine(self, blocks: int = 1) -> int:
        """Advance the chain by *blocks* and return the new height."""
        if blocks <= 0:
            raise ValueError("Must mine at least one block")
        self._block_number += blocks
        self._timestamp += blocks * self.block_time
        return self._block_number

    def to_dict(self) -> Dict[str, Any]:
        return {
            "blockNumber": self._block_number,
            "timestamp": self._timestamp,
            "blockTime": self.block_time,
        }

    def __repr__(self) -> str:
        return f"<ChainContext block={self._block_number}>"
