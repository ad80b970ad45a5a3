"""
govstrategy TOML Configuration Loader

Loads the ``[strategy]`` section of a TOML file with environment variable
overrides (dataclass + from_dict + from_file).

Environment variable mapping:
    [strategy] model               → GOVSTRATEGY_MODEL
    [strategy] proposal_threshold  → GOVSTRATEGY_PROPOSAL_THRESHOLD
    [strategy] voting_period       → GOVSTRATEGY_VOTING_PERIOD
    [strategy] token_address       → GOVSTRATEGY_TOKEN_ADDRESS
    [strategy] owner               → GOVSTRATEGY_OWNER
    [strategy] lifecycle_module    → GOVSTRATEGY_LIFECYCLE_MODULE
    [strategy] strategy_address    → GOVSTRATEGY_STRATEGY_ADDRESS
    [strategy] chain_id            → GOVSTRATEGY_CHAIN_ID
    [strategy] domain_name         → GOVSTRATEGY_DOMAIN_NAME
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    DEFAULT_CHAIN_ID,
    DEFAULT_DOMAIN_NAME,
    DEFAULT_PROPOSAL_THRESHOLD,
    DEFAULT_VOTING_PERIOD_BLOCKS,
    STRATEGY_MODEL_SNAPSHOT,
    STRATEGY_MODELS,
)
from ..crypto.address import is_valid_address, is_zero_address
from ..exceptions import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "GOVSTRATEGY_"


@dataclass
class StrategyConfig:
    """[strategy] section."""
    model: str = STRATEGY_MODEL_SNAPSHOT
    proposal_threshold: int = DEFAULT_PROPOSAL_THRESHOLD
    voting_period: int = DEFAULT_VOTING_PERIOD_BLOCKS
    token_address: str = ""
    owner: str = ""
    lifecycle_module: str = ""
    strategy_address: str = ""
    chain_id: int = DEFAULT_CHAIN_ID
    domain_name: str = DEFAULT_DOMAIN_NAME

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StrategyConfig":
        return cls(
            model=data.get("model", STRATEGY_MODEL_SNAPSHOT),
            proposal_threshold=int(data.get("proposal_threshold", DEFAULT_PROPOSAL_THRESHOLD)),
            voting_period=int(data.get("voting_period", DEFAULT_VOTING_PERIOD_BLOCKS)),
            token_address=data.get("token_address", ""),
            owner=data.get("owner", ""),
            lifecycle_module=data.get("lifecycle_module", ""),
            strategy_address=data.get("strategy_address", ""),
            chain_id=int(data.get("chain_id", DEFAULT_CHAIN_ID)),
            domain_name=data.get("domain_name", DEFAULT_DOMAIN_NAME),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StrategyConfig":
        """Load from a TOML file containing a ``[strategy]`` table."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        with open(path, "rb") as f:
            try:
                data = tomli.load(f)
            except tomli.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e
        return cls.from_dict(data.get("strategy", {}))

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get(f"{ENV_PREFIX}MODEL"):
            self.model = v
        if v := os.environ.get(f"{ENV_PREFIX}PROPOSAL_THRESHOLD"):
            self.proposal_threshold = int(v)
        if v := os.environ.get(f"{ENV_PREFIX}VOTING_PERIOD"):
            self.voting_period = int(v)
        if v := os.environ.get(f"{ENV_PREFIX}TOKEN_ADDRESS"):
            self.token_address = v
        if v := os.environ.get(f"{ENV_PREFIX}OWNER"):
            self.owner = v
        if v := os.environ.get(f"{ENV_PREFIX}LIFECYCLE_MODULE"):
            self.lifecycle_module = v
        if v := os.environ.get(f"{ENV_PREFIX}STRATEGY_ADDRESS"):
            self.strategy_address = v
        if v := os.environ.get(f"{ENV_PREFIX}CHAIN_ID"):
            self.chain_id = int(v)
        if v := os.environ.get(f"{ENV_PREFIX}DOMAIN_NAME"):
            self.domain_name = v

    def validate(self) -> None:
        """Raise ConfigurationError on any unusable value."""
        if self.model not in STRATEGY_MODELS:
            raise ConfigurationError(
                f"Unknown strategy model {self.model!r}; expected one of {STRATEGY_MODELS}"
            )
        if self.proposal_threshold < 0:
            raise ConfigurationError("proposal_threshold cannot be negative")
        if self.voting_period <= 0:
            raise ConfigurationError("voting_period must be positive")
        if self.chain_id <= 0:
            raise ConfigurationError("chain_id must be positive")
        if not self.domain_name:
            raise ConfigurationError("domain_name cannot be empty")
        for name in ("token_address", "owner", "lifecycle_module", "strategy_address"):
            value = getattr(self, name)
            if not is_valid_address(value):
                raise ConfigurationError(f"{name} is not a valid address: {value!r}")
            if is_zero_address(value):
                raise ConfigurationError(f"{name} cannot be the zero address")


def load_config(path: Optional[Union[str, Path]] = None) -> StrategyConfig:
    """
    Load configuration from TOML (if given), apply env overrides, validate.

    Args:
        path: Optional TOML file; defaults are used when omitted
    """
    config = StrategyConfig.from_file(path) if path else StrategyConfig()
    config.apply_env()
    config.validate()
    logger.info(
        f"Loaded {config.model} strategy config (chain {config.chain_id}, "
        f"threshold={config.proposal_threshold})"
    )
    return config
