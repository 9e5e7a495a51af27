"""
core/errors.py
Typed failures for every rejected operation.

Each error carries a stable numeric code so callers can tell failures apart
without parsing messages. Codes start at ERROR_CODE_BASE and never change
once assigned.
"""

from core.constants import ERROR_CODE_BASE


class SettlementError(Exception):
    """Base class for every caller-visible engine failure."""

    code: int = ERROR_CODE_BASE - 1
    message: str = "Settlement engine error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(detail or self.message)

    @property
    def name(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {
            "error": self.name,
            "code": self.code,
            "message": self.detail or self.message,
        }


class PlatformInactive(SettlementError):
    code = ERROR_CODE_BASE + 0
    message = "Platform is inactive"


class BetTooSmall(SettlementError):
    code = ERROR_CODE_BASE + 1
    message = "Bet amount too small"


class BetTooLarge(SettlementError):
    code = ERROR_CODE_BASE + 2
    message = "Bet amount too large"


class BetAlreadySettled(SettlementError):
    code = ERROR_CODE_BASE + 3
    message = "Bet already settled"


class BetNotExpired(SettlementError):
    code = ERROR_CODE_BASE + 4
    message = "Bet not expired"


class PriceAlreadySet(SettlementError):
    code = ERROR_CODE_BASE + 5
    message = "Price already set"


class PlatformAlreadyInitialized(SettlementError):
    code = ERROR_CODE_BASE + 6
    message = "Platform already initialized"


class PlatformNotInitialized(SettlementError):
    code = ERROR_CODE_BASE + 7
    message = "Platform not initialized"


class Unauthorized(SettlementError):
    code = ERROR_CODE_BASE + 8
    message = "Caller lacks the required capability"


class BetNotFound(SettlementError):
    code = ERROR_CODE_BASE + 9
    message = "Bet not found"


class InvalidParameter(SettlementError):
    code = ERROR_CODE_BASE + 10
    message = "Invalid parameter"


class InsufficientFunds(SettlementError):
    code = ERROR_CODE_BASE + 11
    message = "Insufficient funds"
