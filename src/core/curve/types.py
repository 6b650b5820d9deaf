"""Data types for the bonding-curve core.

All types are frozen dataclasses (immutable). State transitions return new
instances via ``dataclasses.replace()``.

Units/conventions:
- ``*_scaled`` reserves are multiplied by ``SCALE`` (10_000) and fit u128.
- token and collateral amounts are integer base units and fit u64.
- ``*_bps`` rates are basis points (1/10_000).
- ``*_ref`` and identity fields are 0x-prefixed 32-byte hex strings.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum, unique
from typing import Any, ClassVar, Union


@unique
class Phase(Enum):
    ACTIVE = "active"
    GRADUATED = "graduated"


@unique
class Event(Enum):
    BUY_EXECUTED = "BuyExecuted"
    SELL_EXECUTED = "SellExecuted"
    GRADUATED = "Graduated"


@dataclass(frozen=True)
class CurveState:
    """Persisted record of one curve (one per token)."""

    # Binding
    token_ref: str
    vault_ref: str
    mint_authority_ref: str

    # Virtual reserves and invariant (scaled)
    x_v_scaled: int
    y_v_scaled: int
    k_scaled: int
    scale: int

    # Inventory
    curve_supply_cap: int
    tokens_sold: int = 0
    graduated: bool = False


@dataclass(frozen=True)
class BuyQuote:
    tokens_out: int
    fee_amount: int
    net_in: int
    next_y_v_scaled: int

    @property
    def gross_in(self) -> int:
        return self.net_in + self.fee_amount


@dataclass(frozen=True)
class SellQuote:
    net_out: int
    fee_amount: int
    gross_out: int
    tokens_in: int
    next_y_v_scaled: int


Quote = Union[BuyQuote, SellQuote]


@dataclass(frozen=True)
class TradeAccounts:
    """Records a caller supplies alongside a trade; each must match its binding."""

    token_ref: str
    vault_ref: str
    mint_authority_ref: str
    fee_recipient: str


@dataclass(frozen=True)
class MintAuthority:
    """Capability to mint/burn ``token_ref``, held by the curve's derived authority."""

    token_ref: str
    authority_ref: str


# -- Side effects (executed by the host, in order) -----------------------------

@dataclass(frozen=True)
class Transfer:
    """Move native collateral between two identities."""

    source: str
    dest: str
    amount: int


@dataclass(frozen=True)
class MintTo:
    authority: MintAuthority
    dest: str
    amount: int


@dataclass(frozen=True)
class Burn:
    authority: MintAuthority
    owner: str
    amount: int


SideEffect = Union[Transfer, MintTo, Burn]


# -- Events --------------------------------------------------------------------

@dataclass(frozen=True)
class BuyExecuted:
    EVENT: ClassVar[Event] = Event.BUY_EXECUTED

    token_ref: str
    buyer: str
    gross_paid: int
    fee_amount: int
    tokens_out: int
    x_v_after: int
    y_v_after: int

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.EVENT.value, **asdict(self)}


@dataclass(frozen=True)
class SellExecuted:
    EVENT: ClassVar[Event] = Event.SELL_EXECUTED

    token_ref: str
    seller: str
    tokens_in: int
    fee_amount: int
    net_out: int
    x_v_after: int
    y_v_after: int

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.EVENT.value, **asdict(self)}


@dataclass(frozen=True)
class CurveGraduated:
    EVENT: ClassVar[Event] = Event.GRADUATED

    token_ref: str
    tokens_sold: int
    x_v_final: int
    y_v_final: int

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.EVENT.value, **asdict(self)}


CurveEvent = Union[BuyExecuted, SellExecuted, CurveGraduated]


@dataclass(frozen=True)
class TradePlan:
    """Everything a trade will do, computed before anything is committed."""

    quote: Quote
    state: CurveState
    effects: tuple[SideEffect, ...]
    events: tuple[CurveEvent, ...]
    graduated_now: bool = False
