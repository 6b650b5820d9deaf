"""Guard functions for curve trades.

Each guard raises the specific ``CurveError`` when its precondition does not
hold in the PRE-state and returns None otherwise.
"""

from __future__ import annotations

from .config import ConfigPolicy
from .errors import BadAccountError, GraduatedError, InsufficientOutError
from .types import CurveState, TradeAccounts


def require_active(curve: CurveState) -> None:
    if curve.graduated:
        raise GraduatedError("curve already graduated")


def require_min_out(amount_out: int, min_out: int, *, what: str) -> None:
    if amount_out < min_out:
        raise InsufficientOutError(f"{what} {amount_out} below minimum {min_out}")


def require_accounts(curve: CurveState, config: ConfigPolicy, accounts: TradeAccounts | None) -> None:
    """Check supplied records against the curve's bindings and the config."""
    if accounts is None:
        return
    expected = (
        ("token_ref", curve.token_ref),
        ("vault_ref", curve.vault_ref),
        ("mint_authority_ref", curve.mint_authority_ref),
        ("fee_recipient", config.fee_recipient),
    )
    for name, want in expected:
        got = getattr(accounts, name)
        if not isinstance(got, str) or got.lower() != want:
            raise BadAccountError(f"{name} mismatch: got {got!r}, expected {want}")
