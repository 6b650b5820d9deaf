"""`curve`: virtual-reserve constant-product bonding curve.

- deterministic, integer-only math with explicit u64/u128 widths,
- immutable state (frozen dataclasses),
- fail-closed guards and invariant checks,
- two-phase trades: a pure plan, then an atomic commit through ports.

Public API:
- `quote_buy(k, y0, gross_in, fee_bps) -> BuyQuote`
- `quote_sell(k, y0, tokens_in, fee_bps) -> SellQuote`
- `init_curve(token_ref, x0, y0, cap) -> CurveState`
- `init_config(admin, fee_recipient, buy_bps, sell_bps, allow_sell_pre_grad) -> ConfigPolicy`
- `plan_buy(...)` / `plan_sell(...) -> TradePlan`
- `TradeOrchestrator(...).buy(...)` / `.sell(...)`
"""

from .config import ConfigPolicy, config_from_dict, config_to_dict, init_config
from .engine import TradeOrchestrator, plan_buy, plan_sell
from .errors import (
    BadAccountError,
    BadFeeError,
    CurveError,
    CurveErrorCode,
    CurveInvariantError,
    DivByZeroError,
    GraduatedError,
    InsufficientInError,
    InsufficientInventoryError,
    InsufficientOutError,
    MathOverflowError,
    SellDisabledError,
    UnauthorizedError,
)
from .math import BPS_DENOMINATOR, SCALE, mul_div, quote_buy, quote_sell, spot_price_scaled
from .state import (
    apply_buy,
    apply_sell,
    curve_from_dict,
    curve_to_dict,
    init_curve,
    phase,
    remaining_inventory,
)
from .types import (
    BuyExecuted,
    BuyQuote,
    CurveGraduated,
    CurveState,
    Event,
    Phase,
    SellExecuted,
    SellQuote,
    TradeAccounts,
    TradePlan,
)

__all__ = [
    "SCALE",
    "BPS_DENOMINATOR",
    "mul_div",
    "quote_buy",
    "quote_sell",
    "spot_price_scaled",
    "init_curve",
    "apply_buy",
    "apply_sell",
    "phase",
    "remaining_inventory",
    "curve_to_dict",
    "curve_from_dict",
    "ConfigPolicy",
    "init_config",
    "config_to_dict",
    "config_from_dict",
    "plan_buy",
    "plan_sell",
    "TradeOrchestrator",
    "BuyQuote",
    "SellQuote",
    "CurveState",
    "Phase",
    "Event",
    "BuyExecuted",
    "SellExecuted",
    "CurveGraduated",
    "TradeAccounts",
    "TradePlan",
    "CurveError",
    "CurveErrorCode",
    "CurveInvariantError",
    "MathOverflowError",
    "DivByZeroError",
    "InsufficientOutError",
    "InsufficientInError",
    "InsufficientInventoryError",
    "GraduatedError",
    "BadAccountError",
    "BadFeeError",
    "SellDisabledError",
    "UnauthorizedError",
]
