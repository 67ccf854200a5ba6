"""
optionkit Constants

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

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'False',
    'LOG_FILE_PATH':                   'logs/optionkit.log',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW MIRROR THE DEPLOYED PROTOCOL CONTRACTS. CHANGING THEM
# PRODUCES QUOTES, FEES AND TOKEN IDS THAT THE CONTRACTS WILL REJECT.

# ==================================================================================
# FIXED POINT
# ==================================================================================
WAD_DECIMALS = 18
WAD = 10 ** WAD_DECIMALS


# ==================================================================================
# TICK LATTICE
# ==================================================================================
MIN_TICK_DISTANCE = WAD // 1000  # 0.001
MIN_TICK_PRICE = MIN_TICK_DISTANCE
MAX_TICK_PRICE = WAD

# Range widths (in ticks) accepted by the pool
VALID_WIDTHS = (
    1, 2, 4, 5, 8, 10, 16, 20, 25, 32, 40, 50, 64, 80, 100, 125, 128,
    160, 200, 250, 256, 320, 400, 500, 512, 625, 640, 800,
)


# ==================================================================================
# POSITION TOKEN IDS
# ==================================================================================
TOKEN_ID_VERSION = 1

TICK_INDEX_BITS = 10
ADDRESS_BITS = 160
ORDER_TYPE_BITS = 4
VERSION_BITS = 4

LOWER_TICK_OFFSET = 0
UPPER_TICK_OFFSET = 10
OPERATOR_OFFSET = 20
ORDER_TYPE_OFFSET = 180
VERSION_OFFSET = 252

STRIKE_BITS = 128
MATURITY_BITS = 120
TOKEN_TYPE_BITS = 8
MATURITY_OFFSET = 128
TOKEN_TYPE_OFFSET = 248

TOKEN_ID_BITS = 256


# ==================================================================================
# FEES (WAD fractions)
# ==================================================================================
PREMIUM_FEE_PERCENT = 3 * 10 ** 16                     # 0.03
NOTIONAL_FEE_PERCENT = 3 * 10 ** 15                    # 0.003
ORDERBOOK_NOTIONAL_FEE_PERCENT = 8 * 10 ** 14          # 0.0008
MAX_PREMIUM_FEE_PERCENT = 125 * 10 ** 15               # 0.125
EXERCISE_NOTIONAL_FEE_PERCENT = 3 * 10 ** 15           # 0.003
MAX_EXERCISE_FEE_PERCENT = 125 * 10 ** 15              # 0.125


# ==================================================================================
# QUOTES & STREAMS
# ==================================================================================
ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'
DEFAULT_REFERRER = '0x3e4906976cd967c99fbf0b32823e59ab96ddbe3f'

QUOTE_TTL_SECONDS = 60 * 60       # quotes are valid for one hour
STREAM_INTERVAL_SECONDS = 15.0    # periodic re-evaluation of streamed quotes


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
    Leaves every other value untouched.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
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
