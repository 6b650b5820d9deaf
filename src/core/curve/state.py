"""Curve construction, state transitions and serialization.

Transitions are pure: each returns a new ``CurveState`` and never mutates its
input. The only phase transition is ``ACTIVE -> GRADUATED``, taken by
``apply_buy`` in the same call that reaches the supply cap.

Round-trip property (tested): ``curve_from_dict(curve_to_dict(c)) == c``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from ...state.addresses import canonical_identity, curve_addresses
from .config import ConfigPolicy
from .errors import (
    InsufficientInError,
    InsufficientInventoryError,
    MathOverflowError,
    SellDisabledError,
)
from .guards import require_active
from .math import SCALE, U64_MAX, as_u64, checked_add, checked_mul, checked_sub, x_from_k_y
from .types import BuyQuote, CurveState, Phase, SellQuote

# Auto-derived from CurveState field definitions (single source of truth).
CURVE_FIELDS: tuple[str, ...] = tuple(CurveState.__dataclass_fields__)

_BOOL_FIELDS = frozenset({"graduated"})
_STR_FIELDS = frozenset({"token_ref", "vault_ref", "mint_authority_ref"})


def init_curve(token_ref: str, x0: int, y0: int, curve_supply_cap: int) -> CurveState:
    """Create the curve for ``token_ref`` from unscaled virtual reserves.

    Raises:
        InsufficientInventoryError: ``curve_supply_cap`` is zero.
        InsufficientInError: ``x0`` or ``y0`` is zero.
        MathOverflowError: an input is not u64 or ``k`` does not fit u128.
    """
    x0 = as_u64(x0, "x0")
    y0 = as_u64(y0, "y0")
    curve_supply_cap = as_u64(curve_supply_cap, "curve_supply_cap")
    if curve_supply_cap == 0:
        raise InsufficientInventoryError("curve_supply_cap must be positive")
    if x0 == 0 or y0 == 0:
        raise InsufficientInError("initial virtual reserves must be positive")

    x_v_scaled = checked_mul(x0, SCALE)
    y_v_scaled = checked_mul(y0, SCALE)
    k_scaled = checked_mul(x_v_scaled, y_v_scaled)

    token_ref = canonical_identity(token_ref, name="token_ref")
    addrs = curve_addresses(token_ref)
    return CurveState(
        token_ref=token_ref,
        vault_ref=addrs.vault_ref,
        mint_authority_ref=addrs.mint_authority_ref,
        x_v_scaled=x_v_scaled,
        y_v_scaled=y_v_scaled,
        k_scaled=k_scaled,
        scale=SCALE,
        curve_supply_cap=curve_supply_cap,
        tokens_sold=0,
        graduated=False,
    )


def phase(curve: CurveState) -> Phase:
    return Phase.GRADUATED if curve.graduated else Phase.ACTIVE


def remaining_inventory(curve: CurveState) -> int:
    """Tokens still issuable before the curve graduates."""
    if curve.graduated:
        return 0
    return curve.curve_supply_cap - curve.tokens_sold


def apply_buy(curve: CurveState, quote: BuyQuote) -> CurveState:
    """Commit a buy quote. Graduates the curve once ``tokens_sold`` reaches the cap.

    The graduating buy is filled in full, so ``tokens_sold`` may end above the cap.
    """
    require_active(curve)
    tokens_sold = checked_add(curve.tokens_sold, quote.tokens_out, limit=U64_MAX)
    return replace(
        curve,
        y_v_scaled=quote.next_y_v_scaled,
        x_v_scaled=x_from_k_y(curve.k_scaled, quote.next_y_v_scaled),
        tokens_sold=tokens_sold,
        graduated=tokens_sold >= curve.curve_supply_cap,
    )


def check_sell_allowed(curve: CurveState, config: ConfigPolicy) -> None:
    """A graduated curve is closed in both directions; before graduation selling
    requires ``allow_sell_pre_grad``."""
    require_active(curve)
    if not config.allow_sell_pre_grad:
        raise SellDisabledError("selling is disabled before graduation")


def apply_sell(curve: CurveState, quote: SellQuote, config: ConfigPolicy) -> CurveState:
    """Commit a sell quote. Never changes ``graduated``."""
    check_sell_allowed(curve, config)
    try:
        tokens_sold = checked_sub(curve.tokens_sold, quote.tokens_in)
    except MathOverflowError:
        raise MathOverflowError(
            f"cannot redeem {quote.tokens_in} tokens, only {curve.tokens_sold} sold"
        ) from None
    return replace(
        curve,
        y_v_scaled=quote.next_y_v_scaled,
        x_v_scaled=x_from_k_y(curve.k_scaled, quote.next_y_v_scaled),
        tokens_sold=tokens_sold,
    )


def curve_to_dict(curve: CurveState) -> dict[str, bool | int | str]:
    return {name: getattr(curve, name) for name in CURVE_FIELDS}


def curve_from_dict(d: Mapping[str, Any]) -> CurveState:
    """Deserialize a dict to a CurveState. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in CURVE_FIELDS:
        val = d[name]
        if name in _BOOL_FIELDS:
            if not isinstance(val, bool):
                raise TypeError(f"curve field {name!r} must be bool, got {type(val).__name__}")
            kwargs[name] = val
        elif name in _STR_FIELDS:
            kwargs[name] = canonical_identity(val, name=name)
        elif isinstance(val, int) and not isinstance(val, bool):
            kwargs[name] = int(val)
        else:
            raise TypeError(f"curve field {name!r} must be int, got {type(val).__name__}")
    return CurveState(**kwargs)
