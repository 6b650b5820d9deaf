"""Exception types for the bonding-curve core.

Every failure the core can report is a ``CurveError`` subclass carrying a
stable ``CurveErrorCode``. Pure functions raise; the integration shell maps the
code onto ``TradeResult.code``.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class CurveErrorCode(Enum):
    MATH_OVERFLOW = "MathOverflow"
    DIV_BY_ZERO = "DivByZero"
    INSUFFICIENT_OUT = "InsufficientOut"
    INSUFFICIENT_IN = "InsufficientIn"
    INSUFFICIENT_INVENTORY = "InsufficientInventory"
    GRADUATED = "Graduated"
    BAD_ACCOUNT = "BadAccount"
    BAD_FEE = "BadFee"
    SELL_DISABLED = "SellDisabled"
    UNAUTHORIZED = "Unauthorized"


class CurveError(Exception):
    """Base class. Subclasses pin ``code``."""

    code: CurveErrorCode

    def __init__(self, message: str = "") -> None:
        self.message = message or self.code.value
        super().__init__(f"{self.code.value}: {self.message}")


class MathOverflowError(CurveError):
    """Raised when an intermediate does not fit its fixed-width domain."""

    code = CurveErrorCode.MATH_OVERFLOW


class DivByZeroError(CurveError):
    code = CurveErrorCode.DIV_BY_ZERO


class InsufficientOutError(CurveError):
    """Raised when a quote falls below the caller's slippage bound."""

    code = CurveErrorCode.INSUFFICIENT_OUT


class InsufficientInError(CurveError):
    code = CurveErrorCode.INSUFFICIENT_IN


class InsufficientInventoryError(CurveError):
    """Raised for a zero supply cap."""

    code = CurveErrorCode.INSUFFICIENT_INVENTORY


class GraduatedError(CurveError):
    code = CurveErrorCode.GRADUATED


class BadAccountError(CurveError):
    """Raised when a supplied record does not match the one bound to the curve/config."""

    code = CurveErrorCode.BAD_ACCOUNT


class BadFeeError(CurveError):
    code = CurveErrorCode.BAD_FEE


class SellDisabledError(CurveError):
    code = CurveErrorCode.SELL_DISABLED


class UnauthorizedError(CurveError):
    """Raised when a trade request signature or nonce does not check out."""

    code = CurveErrorCode.UNAUTHORIZED


class CurveInvariantError(Exception):
    """Raised when a planned post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")


ERROR_BY_CODE: dict[CurveErrorCode, type[CurveError]] = {
    cls.code: cls
    for cls in (
        MathOverflowError,
        DivByZeroError,
        InsufficientOutError,
        InsufficientInError,
        InsufficientInventoryError,
        GraduatedError,
        BadAccountError,
        BadFeeError,
        SellDisabledError,
        UnauthorizedError,
    )
}
