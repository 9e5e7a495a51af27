"""
core/constants.py
Hard-coded settlement rules and system constants.
These values are fixed by the account format and are not read from the environment.
"""

from typing import Final

# ---------------------------------------------------------------------------
# Payout
# ---------------------------------------------------------------------------
WINNER_PAYOUT_PCT: Final[int] = 90              # Winners receive 90% of stake
MAX_FEE_BPS: Final[int] = 10_000                # 10000 bps = 100%

# ---------------------------------------------------------------------------
# Integer bounds for on-ledger fields
# ---------------------------------------------------------------------------
U64_MAX: Final[int] = 2**64 - 1
I64_MAX: Final[int] = 2**63 - 1

ADDRESS_LENGTH: Final[int] = 32                 # Raw identity size in bytes

# SQL BIGINT is signed; the bundled store caps unsigned fields here.
STORAGE_INT_MAX: Final[int] = I64_MAX

# ---------------------------------------------------------------------------
# Singleton / error codes
# ---------------------------------------------------------------------------
PLATFORM_CONFIG_ID: Final[int] = 1              # The only PlatformConfig row
ERROR_CODE_BASE: Final[int] = 6000

# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------
MAX_LEADERBOARD_LIMIT: Final[int] = 1000

# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------
SYSTEM_VERSION: Final[str] = "v1.0-updown-settlement"
