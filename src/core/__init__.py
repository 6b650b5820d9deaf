"""
Core bonding-curve algorithms
"""

from .curve import (
    ConfigPolicy,
    CurveState,
    TradeOrchestrator,
    init_config,
    init_curve,
    plan_buy,
    plan_sell,
    quote_buy,
    quote_sell,
)

__all__ = [
    "ConfigPolicy",
    "CurveState",
    "TradeOrchestrator",
    "init_config",
    "init_curve",
    "plan_buy",
    "plan_sell",
    "quote_buy",
    "quote_sell",
]
