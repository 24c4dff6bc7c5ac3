"""
Diamond DAO Constants

This module consolidates all global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

DAO_DEFAULTS = {
    'DAO_PROPOSAL_PHASE_DURATION':     str(14 * 24 * 60 * 60),
    'DAO_VOTING_PHASE_DURATION':       str(14 * 24 * 60 * 60),
    'DAO_MAX_NEW_PROPOSALS':           '100',
    'DAO_EXECUTION_WINDOW_PHASES':     '2',
    'DAO_RPC_URL':                     'http://127.0.0.1:8540',
    'DAO_RPC_TIMEOUT':                 '10',
}

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
    'LOG_INCLUDE_RPC_CONTENT':         'False',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# ==================================================================================
# LEDGER PRIMITIVES
# ==================================================================================
ZERO_ADDRESS = '0x' + '00' * 20
SELECTOR_SIZE = 4


# ==================================================================================
# GOVERNANCE PARAMETERS
# ==================================================================================
# Quorum margins are expressed in sixths of the total stake so that both
# thresholds (1/3 and 1/2) compare as exact integers.
QUORUM_SCALE = 6
LOW_MAJORITY_NUMERATOR = 2   # 2/6 == 1/3
HIGH_MAJORITY_NUMERATOR = 3  # 3/6 == 1/2


# ==================================================================================
# DAO SETTER SIGNATURES
# ==================================================================================
SET_CREATE_PROPOSAL_FEE_SIGNATURE = 'setCreateProposalFee(uint256)'
SET_IS_CORE_CONTRACT_SIGNATURE = 'setIsCoreContract(address,bool)'
SET_CHANGEABLE_PARAMETERS_SIGNATURE = 'setChangeAbleParameters(address,string,string,uint256[])'
CREATE_PROPOSAL_FEE_GETTER_SIGNATURE = 'createProposalFee()'
LOW_MAJORITY_EXECUTE_SIGNATURE = 'execute(uint256,address[],uint256[],bytes[])'

# DAO entry points reachable through ledger calls
EXECUTE_SIGNATURE = 'execute(uint256)'
FINALIZE_SIGNATURE = 'finalize(uint256)'
SWITCH_PHASE_SIGNATURE = 'switchPhase()'
DAO_PHASE_COUNT_GETTER_SIGNATURE = 'daoPhaseCount()'
GOVERNANCE_POT_GETTER_SIGNATURE = 'governancePot()'

# Stake ledger / validator roster views consumed over JSON-RPC
STAKE_AMOUNT_TOTAL_SIGNATURE = 'stakeAmountTotal(address)'
TOTAL_STAKED_AMOUNT_SIGNATURE = 'totalStakedAmount()'
IS_VALIDATOR_SIGNATURE = 'isValidator(address)'
IS_VALIDATOR_BANNED_SIGNATURE = 'isValidatorBanned(address)'


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
DEFAULTS = DAO_DEFAULTS | LOGGER_DEFAULTS
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

for key, default_raw in DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)


# ==================================================================================
# NUMERIC GOVERNANCE DEFAULTS
# ==================================================================================
PROPOSAL_PHASE_DURATION = int(namespace['DAO_PROPOSAL_PHASE_DURATION'])
VOTING_PHASE_DURATION = int(namespace['DAO_VOTING_PHASE_DURATION'])
MAX_NEW_PROPOSALS = int(namespace['DAO_MAX_NEW_PROPOSALS'])
EXECUTION_WINDOW_PHASES = int(namespace['DAO_EXECUTION_WINDOW_PHASES'])
