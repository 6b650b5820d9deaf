"""
Bonding-curve host integration layer
"""

from .curve_engine import CurveHost, CurveHostConfig, TradeResult
from .ledger import InsufficientFundsError, Ledger
from .settings import (
    config_policy_from_settings,
    host_config_from_settings,
    host_from_settings,
    load_settings_yaml,
)
from .trade_requests import (
    SignedTradeRequest,
    TradeKind,
    TradeRequest,
    parse_signed_trade_request,
    parse_trade_request,
    sign_trade_request,
)

__all__ = [
    "CurveHost",
    "CurveHostConfig",
    "TradeResult",
    "Ledger",
    "InsufficientFundsError",
    "load_settings_yaml",
    "config_policy_from_settings",
    "host_config_from_settings",
    "host_from_settings",
    "TradeKind",
    "TradeRequest",
    "SignedTradeRequest",
    "parse_trade_request",
    "parse_signed_trade_request",
    "sign_trade_request",
]
