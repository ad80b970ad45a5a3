"""
Checkpointed Governance Token

An ERC-20-style fungible token whose every balance change is checkpointed by
block height, so that the voting power of any account can be read as of any
finalized block:
  - ERC-20 interface (transfer, approve, transfer_from, balance_of)
  - Owner-only mint
  - get_prior_votes(account, block) for snapshot-based weighting
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ..chain import ChainContext
from ..crypto.address import normalize_address
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class TokenError(Exception):
    """Base exception for token operations."""


class InsufficientBalanceError(TokenError):
    """Raised when sender balance is too low."""


class InsufficientAllowanceError(TokenError):
    """Raised when spender allowance is too low."""


class SnapshotNotFinalizedError(TokenError):
    """Raised when prior votes are requested for the current or a future block."""


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TransferEvent:
    """Emitted on every successful transfer or mint."""
    token_symbol: str
    sender: str
    recipient: str
    amount: int
    block_number: int
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "token": self.token_symbol,
            "from": self.sender,
            "to": self.recipient,
            "amount": self.amount,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ApprovalEvent:
    """Emitted on every successful approve."""
    token_symbol: str
    owner: str
    spender: str
    amount: int
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Approval",
            "token": self.token_symbol,
            "owner": self.owner,
            "spender": self.spender,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Checkpoint:
    """Balance of an account as of the end of ``from_block``."""
    from_block: int
    votes: int


# ══════════════════════════════════════════════════════════════════════
#  GOVERNANCE TOKEN
# ══════════════════════════════════════════════════════════════════════

MINT_ADDRESS = "0x" + "00" * 20


class GovernanceToken:
    """
    Governance token with per-block balance checkpoints.

    Mirrors ERC-20 semantics:
        - balance_of(address) → int
        - transfer(sender, recipient, amount)
        - approve(owner, spender, amount)
        - transfer_from(spender, owner, recipient, amount)
        - total_supply → int

    Voting power is the account balance; get_prior_votes reads it back as of
    any block strictly before the current one.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        chain: ChainContext,
        address: str,
        total_supply: int = 0,
        deployer: str = "",
    ):
        """
        Args:
            name: Human-readable token name
            symbol: Short ticker
            chain: Block height source for checkpoints
            address: Token contract address
            total_supply: Initial minted supply, credited to *deployer*
            deployer: Address of deploying account (mint authority)
        """
        if not name:
            raise TokenError("Token name cannot be empty")
        if not symbol:
            raise TokenError("Token symbol cannot be empty")
        if total_supply < 0:
            raise TokenError("Total supply cannot be negative")

        self.name = name
        self.symbol = symbol
        self.chain = chain
        self.address = normalize_address(address)
        self.deployer = normalize_address(deployer) if deployer else ""
        self._total_supply = 0

        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)
        self._checkpoints: Dict[str, List[Checkpoint]] = {}

        self._events: List[Any] = []

        if total_supply > 0:
            if not self.deployer:
                raise TokenError("Initial supply requires a deployer")
            self._mint(self.deployer, total_supply)

        logger.info(f"Token deployed: {symbol} ({name}) at {self.address}, supply={total_supply}")

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    def checkpoints(self, account: str) -> List[Checkpoint]:
        return list(self._checkpoints.get(normalize_address(account), []))

    # ── Historical voting power ───────────────────────────────────────

    def get_current_votes(self, account: str) -> int:
        return self.balance_of(account)

    def get_prior_votes(self, account: str, block_number: int) -> int:
        """
        Voting power of *account* at the end of *block_number*.

        Only finalized blocks can be queried: the current block may still
        change within the same height.
        """
        if block_number >= self.chain.block_number:
            raise SnapshotNotFinalizedError(
                f"Block {block_number} not yet determined (current={self.chain.block_number})"
            )
        history = self._checkpoints.get(normalize_address(account))
        if not history:
            return 0
        idx = bisect_right([cp.from_block for cp in history], block_number)
        if idx == 0:
            return 0
        return history[idx - 1].votes

    def _write_checkpoint(self, account: str, new_votes: int):
        history = self._checkpoints.setdefault(account, [])
        block = self.chain.block_number
        if history and history[-1].from_block == block:
            history[-1] = Checkpoint(from_block=block, votes=new_votes)
        else:
            history.append(Checkpoint(from_block=block, votes=new_votes))

    # ── Core ERC-20 operations ────────────────────────────────────────

    def _move(self, sender: str, recipient: str, amount: int) -> TransferEvent:
        bal = self._balances.get(sender, 0)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )
        self._balances[sender] = bal - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        self._write_checkpoint(sender, self._balances[sender])
        self._write_checkpoint(recipient, self._balances[recipient])

        event = TransferEvent(
            token_symbol=self.symbol,
            sender=sender,
            recipient=recipient,
            amount=amount,
            block_number=self.chain.block_number,
            timestamp=self.chain.timestamp,
        )
        self._events.append(event)
        return event

    def transfer(self, sender: str, recipient: str, amount: int) -> TransferEvent:
        """Move *amount* from *sender* to *recipient*."""
        if amount <= 0:
            raise TokenError("Transfer amount must be positive")
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        if sender == recipient:
            raise TokenError("Cannot transfer to self")

        event = self._move(sender, recipient, amount)
        logger.debug(f"Transfer: {sender} → {recipient} {amount} {self.symbol}")
        return event

    def approve(self, owner: str, spender: str, amount: int) -> ApprovalEvent:
        """Set spender allowance."""
        if amount < 0:
            raise TokenError("Allowance amount cannot be negative")
        owner = normalize_address(owner)
        spender = normalize_address(spender)

        self._allowances[(owner, spender)] = amount

        event = ApprovalEvent(
            token_symbol=self.symbol,
            owner=owner,
            spender=spender,
            amount=amount,
            timestamp=self.chain.timestamp,
        )
        self._events.append(event)
        logger.debug(f"Approve: {owner} → {spender} allowance={amount} {self.symbol}")
        return event

    def transfer_from(
        self,
        spender: str,
        owner: str,
        recipient: str,
        amount: int,
    ) -> TransferEvent:
        """Transfer on behalf of *owner* using spender's allowance."""
        if amount <= 0:
            raise TokenError("Transfer amount must be positive")
        spender = normalize_address(spender)
        owner = normalize_address(owner)
        recipient = normalize_address(recipient)

        allow = self._allowances.get((owner, spender), 0)
        if allow < amount:
            raise InsufficientAllowanceError(
                f"Allowance {allow} < transfer amount {amount}"
            )

        event = self._move(owner, recipient, amount)
        self._allowances[(owner, spender)] = allow - amount
        logger.debug(
            f"transferFrom: spender={spender} {owner} → {recipient} {amount} {self.symbol}"
        )
        return event

    # ── Mint ──────────────────────────────────────────────────────────

    def _mint(self, recipient: str, amount: int) -> TransferEvent:
        self._total_supply += amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        self._write_checkpoint(recipient, self._balances[recipient])
        event = TransferEvent(
            token_symbol=self.symbol,
            sender=MINT_ADDRESS,
            recipient=recipient,
            amount=amount,
            block_number=self.chain.block_number,
            timestamp=self.chain.timestamp,
        )
        self._events.append(event)
        return event

    def mint(self, operator: str, recipient: str, amount: int) -> TransferEvent:
        """Mint new tokens; only the deployer may mint."""
        if not self.deployer or normalize_address(operator) != self.deployer:
            raise TokenError(f"{operator} is not the mint authority")
        if amount <= 0:
            raise TokenError("Mint amount must be positive")
        event = self._mint(normalize_address(recipient), amount)
        logger.info(f"Mint: {amount} {self.symbol} → {event.recipient}")
        return event

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "address": self.address,
            "totalSupply": self._total_supply,
            "deployer": self.deployer,
            "holders": len([b for b in self._balances.values() if b > 0]),
        }

    def __repr__(self) -> str:
        return f"<GovernanceToken {self.symbol} supply={self._total_supply}>"
