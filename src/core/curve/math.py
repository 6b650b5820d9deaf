"""Pure fixed-point arithmetic for the bonding curve.

Every function is stateless and operates on plain Python ints. Python ints do
not overflow, so the on-record widths (u64 amounts, u128 reserves, a 256-bit
intermediate product) are enforced explicitly: any value that leaves its
domain raises ``MathOverflowError`` instead of wrapping or saturating.

Rounding: every division floors. Fees are taken outside the invariant in both
directions, so ``k_scaled`` stays exact and the only approximation is the
truncation of the post-trade reserve, which always favours the curve.
"""

from __future__ import annotations

from .errors import BadFeeError, DivByZeroError, InsufficientInError, MathOverflowError
from .types import BuyQuote, SellQuote

# Fixed-point scale applied to both virtual reserves.
SCALE: int = 10_000
BPS_DENOMINATOR: int = 10_000

U64_MAX: int = (1 << 64) - 1
U128_MAX: int = (1 << 128) - 1
U256_MAX: int = (1 << 256) - 1


# -- Width checks --------------------------------------------------------------

def _as_uint(value: int, limit: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0 or value > limit:
        raise MathOverflowError(f"{name} out of range: {value}")
    return int(value)


def as_u64(value: int, name: str = "value") -> int:
    return _as_uint(value, U64_MAX, name)


def as_u128(value: int, name: str = "value") -> int:
    return _as_uint(value, U128_MAX, name)


def checked_add(a: int, b: int, limit: int = U128_MAX) -> int:
    total = a + b
    if total > limit:
        raise MathOverflowError(f"addition overflow: {a} + {b}")
    return total


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise MathOverflowError(f"subtraction underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int, limit: int = U128_MAX) -> int:
    product = a * b
    if product > limit:
        raise MathOverflowError(f"multiplication overflow: {a} * {b}")
    return product


def check_fee_bps(fee_bps: int) -> int:
    """Validate a fee rate. Raises ``BadFeeError`` outside ``[0, 10_000]``."""
    if not isinstance(fee_bps, int) or isinstance(fee_bps, bool):
        raise BadFeeError(f"fee_bps must be an int, got {type(fee_bps).__name__}")
    if not (0 <= fee_bps <= BPS_DENOMINATOR):
        raise BadFeeError(f"fee_bps must be in [0, {BPS_DENOMINATOR}]: {fee_bps}")
    return fee_bps


# -- Core primitives -------------------------------------------------------------

def mul_div(a: int, b: int, d: int) -> int:
    """``floor(a * b / d)`` over u128 operands with a 256-bit product.

    Raises ``DivByZeroError`` when ``d == 0`` and ``MathOverflowError`` when the
    product exceeds 256 bits or the quotient does not narrow back to u128.
    """
    a = as_u128(a, "a")
    b = as_u128(b, "b")
    d = as_u128(d, "d")
    if d == 0:
        raise DivByZeroError("mul_div denominator is zero")
    product = a * b
    if product > U256_MAX:
        raise MathOverflowError("mul_div product exceeds 256 bits")
    quotient = product // d
    if quotient > U128_MAX:
        raise MathOverflowError("mul_div result exceeds u128")
    return quotient


def x_from_k_y(k_scaled: int, y_scaled: int) -> int:
    """Virtual collateral reserve implied by the invariant: ``k // y``."""
    if y_scaled <= 0:
        raise DivByZeroError("virtual token reserve is zero")
    return mul_div(k_scaled, 1, y_scaled)


def fee_on(amount: int, fee_bps: int) -> int:
    """``floor(amount * fee_bps / 10_000)``, narrowed to u64."""
    return as_u64(mul_div(amount, fee_bps, BPS_DENOMINATOR), "fee_amount")


# -- Quotes ------------------------------------------------------------------------

def quote_buy(k_scaled: int, y0_scaled: int, gross_in: int, fee_bps: int) -> BuyQuote:
    """Quote tokens out for ``gross_in`` collateral paid.

    The buy fee is removed from the gross amount before it enters the
    invariant; only ``net_in`` moves the curve.
    """
    check_fee_bps(fee_bps)
    if y0_scaled <= 0:
        raise DivByZeroError("virtual token reserve is zero")
    k_scaled = as_u128(k_scaled, "k_scaled")
    y0_scaled = as_u128(y0_scaled, "y0_scaled")
    gross_in = as_u64(gross_in, "gross_in")

    fee_amount = fee_on(gross_in, fee_bps)
    if fee_amount > gross_in:
        raise InsufficientInError(f"fee {fee_amount} exceeds gross input {gross_in}")
    net_in = gross_in - fee_amount
    net_in_scaled = checked_mul(net_in, SCALE)

    a = x_from_k_y(k_scaled, y0_scaled)
    denom = checked_add(a, net_in_scaled)
    if denom == 0:
        raise DivByZeroError("virtual collateral reserve is zero")
    y1_scaled = mul_div(k_scaled, 1, denom)
    if y1_scaled == 0:
        raise DivByZeroError("purchase would drain the virtual token reserve")
    dy_scaled = checked_sub(y0_scaled, y1_scaled)
    tokens_out = as_u64(dy_scaled // SCALE, "tokens_out")

    return BuyQuote(
        tokens_out=tokens_out,
        fee_amount=fee_amount,
        net_in=net_in,
        next_y_v_scaled=y1_scaled,
    )


def quote_sell(k_scaled: int, y0_scaled: int, tokens_in: int, fee_bps: int) -> SellQuote:
    """Quote collateral paid out for ``tokens_in`` returned to the curve.

    The sell fee is taken from the gross payout after it leaves the invariant.
    """
    check_fee_bps(fee_bps)
    if y0_scaled <= 0:
        raise DivByZeroError("virtual token reserve is zero")
    k_scaled = as_u128(k_scaled, "k_scaled")
    y0_scaled = as_u128(y0_scaled, "y0_scaled")
    tokens_in = as_u64(tokens_in, "tokens_in")

    tokens_in_scaled = checked_mul(tokens_in, SCALE)
    y1_scaled = checked_add(y0_scaled, tokens_in_scaled)

    x_before = x_from_k_y(k_scaled, y0_scaled)
    x_after = x_from_k_y(k_scaled, y1_scaled)
    dx_scaled = checked_sub(x_before, x_after)
    gross_out = as_u64(dx_scaled // SCALE, "gross_out")

    fee_amount = fee_on(gross_out, fee_bps)
    net_out = checked_sub(gross_out, fee_amount)

    return SellQuote(
        net_out=net_out,
        fee_amount=fee_amount,
        gross_out=gross_out,
        tokens_in=tokens_in,
        next_y_v_scaled=y1_scaled,
    )


# -- Read helpers --------------------------------------------------------------------

def spot_price_scaled(k_scaled: int, y_scaled: int, precision: int = SCALE) -> int:
    """Marginal price of one token in collateral units, times ``precision``.

    ``x / y`` with both reserves scaled by the same factor, so the scale cancels.
    """
    x_scaled = x_from_k_y(k_scaled, y_scaled)
    return mul_div(x_scaled, precision, y_scaled)
