"""
govstrategy Constants

This module consolidates the protocol constants of the voting strategies and
the environment configuration used by the logging system. Constants are
organized by category for easy reference and maintenance.
"""
import ast

from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_TO_FILE':                     'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# RECEIPT STORAGE
# ==================================================================================
WEIGHT_BITS = 96
MAX_WEIGHT = 2 ** WEIGHT_BITS - 1


# ==================================================================================
# VOTE SUPPORT CODES
# ==================================================================================
GOVERNANCE_VOTE_AGAINST = 0
GOVERNANCE_VOTE_FOR = 1
GOVERNANCE_VOTE_ABSTAIN = 2


# ==================================================================================
# ADDRESSES
# ==================================================================================
ZERO_ADDRESS = '0x' + '00' * 20


# ==================================================================================
# TYPED-DATA SIGNING (EIP-712)
# ==================================================================================
EIP712_DOMAIN_TYPE = 'EIP712Domain(string name,uint256 chainId,address verifyingContract)'
BALLOT_TYPE = 'Ballot(uint256 proposalId,uint8 support)'
EIP712_PREFIX = b'\x19\x01'


# ==================================================================================
# STRATEGY DEFAULTS
# ==================================================================================
DEFAULT_DOMAIN_NAME = 'Voting Strategy'
DEFAULT_CHAIN_ID = 1
DEFAULT_PROPOSAL_THRESHOLD = 0
DEFAULT_VOTING_PERIOD_BLOCKS = 21_600  # ~3 days of 12s blocks
DEFAULT_BLOCK_TIME = 12  # seconds

STRATEGY_MODEL_SNAPSHOT = 'snapshot'
STRATEGY_MODEL_DEPOSIT = 'deposit'
STRATEGY_MODELS = (STRATEGY_MODEL_SNAPSHOT, STRATEGY_MODEL_DEPOSIT)


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        return ast.literal_eval(s.title())
    return v

for key, default_raw in LOGGER_DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
