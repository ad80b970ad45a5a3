"""
govstrategy Configuration

Loads the [strategy] section of a TOML file. Environment variables override
TOML values.
"""

from .loader import StrategyConfig, load_config

__all__ = [
    "StrategyConfig",
    "load_config",
]
