"""
State management for the bonding curve host
"""

from .addresses import canonical_identity, curve_addresses, derive_address
from .balances import NATIVE_ASSET, BalanceTable
from .event_log import EventLog
from .nonces import NonceTable

__all__ = [
    "BalanceTable",
    "NATIVE_ASSET",
    "EventLog",
    "NonceTable",
    "canonical_identity",
    "curve_addresses",
    "derive_address",
]
