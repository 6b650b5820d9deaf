"""Invariant checkers for a single curve record.

Each function returns True when the invariant holds; ``check_all()`` returns the
list of violated invariant IDs (empty = all pass). ``check_transition()`` adds
the pre/post checks that only make sense across one committed trade.
"""

from __future__ import annotations

from typing import Callable

from .math import SCALE, U64_MAX, U128_MAX
from .types import CurveState


def inv_y_positive(c: CurveState) -> bool:
    return c.y_v_scaled > 0


def inv_x_derived(c: CurveState) -> bool:
    return c.y_v_scaled > 0 and c.x_v_scaled == c.k_scaled // c.y_v_scaled


def inv_scale_fixed(c: CurveState) -> bool:
    return c.scale == SCALE


def inv_reserve_widths(c: CurveState) -> bool:
    return all(0 <= v <= U128_MAX for v in (c.x_v_scaled, c.y_v_scaled, c.k_scaled))


def inv_inventory_widths(c: CurveState) -> bool:
    return 0 <= c.tokens_sold <= U64_MAX and 0 < c.curve_supply_cap <= U64_MAX


def inv_sold_within_cap(c: CurveState) -> bool:
    # The graduating buy may overshoot the cap.
    return c.graduated or c.tokens_sold <= c.curve_supply_cap


def inv_graduated_at_cap(c: CurveState) -> bool:
    # Sells never leave the graduated phase, so only the converse is checked.
    if c.tokens_sold >= c.curve_supply_cap:
        return c.graduated
    return True


INVARIANT_REGISTRY: dict[str, Callable[[CurveState], bool]] = {
    "inv_y_positive": inv_y_positive,
    "inv_x_derived": inv_x_derived,
    "inv_scale_fixed": inv_scale_fixed,
    "inv_reserve_widths": inv_reserve_widths,
    "inv_inventory_widths": inv_inventory_widths,
    "inv_sold_within_cap": inv_sold_within_cap,
    "inv_graduated_at_cap": inv_graduated_at_cap,
}


def check_all(curve: CurveState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(curve)
    ]


def check_transition(before: CurveState, after: CurveState) -> list[str]:
    """Invariants relating a committed trade's pre- and post-state."""
    violations = check_all(after)
    if after.k_scaled != before.k_scaled:
        violations.append("tr_k_unchanged")
    if before.graduated and not after.graduated:
        violations.append("tr_graduation_monotone")
    if after.curve_supply_cap != before.curve_supply_cap:
        violations.append("tr_cap_unchanged")
    if (after.token_ref, after.vault_ref, after.mint_authority_ref) != (
        before.token_ref, before.vault_ref, before.mint_authority_ref,
    ):
        violations.append("tr_binding_unchanged")
    return violations
