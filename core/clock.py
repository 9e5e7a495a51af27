"""
core/clock.py
Ledger time in whole unix seconds.
"""

import time


def unix_now() -> int:
    return int(time.time())
