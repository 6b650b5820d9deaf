"""Trade planning and orchestration.

A trade runs in two phases:

1. ``plan_buy`` / ``plan_sell`` (pure): check preconditions, quote, enforce the
   slippage bound, compute the next ``CurveState`` and list every side effect
   and event in execution order. Nothing is touched.
2. ``TradeOrchestrator`` executes a plan inside the host's ``atomic()`` scope:
   side effects through the ports, then the state write, then the events. The
   orchestrator has no rollback logic of its own; a failure anywhere propagates
   out of the scope and the host discards everything.
"""

from __future__ import annotations

from .config import ConfigPolicy
from .errors import CurveInvariantError
from .guards import require_accounts, require_active, require_min_out
from .invariants import check_transition
from .math import as_u64, quote_buy, quote_sell
from .ports import AssetTransfer, CurveStore, EventSink, TokenMinter, TransactionHost
from .state import apply_buy, apply_sell, check_sell_allowed
from .types import (
    Burn,
    BuyExecuted,
    CurveEvent,
    CurveGraduated,
    CurveState,
    MintAuthority,
    MintTo,
    SellExecuted,
    SideEffect,
    TradeAccounts,
    TradePlan,
    Transfer,
)


def _checked_next(before: CurveState, after: CurveState) -> CurveState:
    violations = check_transition(before, after)
    if violations:
        raise CurveInvariantError(violations)
    return after


def mint_authority(curve: CurveState) -> MintAuthority:
    return MintAuthority(token_ref=curve.token_ref, authority_ref=curve.mint_authority_ref)


def plan_buy(
    curve: CurveState,
    config: ConfigPolicy,
    buyer: str,
    max_pay_gross: int,
    min_tokens_out: int,
    accounts: TradeAccounts | None = None,
) -> TradePlan:
    """Plan a buy of tokens for at most ``max_pay_gross`` collateral.

    Raises:
        GraduatedError: the curve is closed.
        BadAccountError: a supplied record does not match its binding.
        InsufficientOutError: the quote is below ``min_tokens_out``.
        MathOverflowError / DivByZeroError / BadFeeError: from the quote.
    """
    require_active(curve)
    require_accounts(curve, config, accounts)
    min_tokens_out = as_u64(min_tokens_out, "min_tokens_out")

    quote = quote_buy(curve.k_scaled, curve.y_v_scaled, max_pay_gross, config.buy_fee_bps)
    require_min_out(quote.tokens_out, min_tokens_out, what="tokens_out")

    effects: list[SideEffect] = []
    if quote.fee_amount > 0:
        effects.append(Transfer(source=buyer, dest=config.fee_recipient, amount=quote.fee_amount))
    if quote.net_in > 0:
        effects.append(Transfer(source=buyer, dest=curve.vault_ref, amount=quote.net_in))
    effects.append(MintTo(authority=mint_authority(curve), dest=buyer, amount=quote.tokens_out))

    after = _checked_next(curve, apply_buy(curve, quote))

    events: list[CurveEvent] = [
        BuyExecuted(
            token_ref=curve.token_ref,
            buyer=buyer,
            gross_paid=quote.gross_in,
            fee_amount=quote.fee_amount,
            tokens_out=quote.tokens_out,
            x_v_after=after.x_v_scaled,
            y_v_after=after.y_v_scaled,
        )
    ]
    graduated_now = after.graduated and not curve.graduated
    if graduated_now:
        events.append(
            CurveGraduated(
                token_ref=curve.token_ref,
                tokens_sold=after.tokens_sold,
                x_v_final=after.x_v_scaled,
                y_v_final=after.y_v_scaled,
            )
        )

    return TradePlan(
        quote=quote,
        state=after,
        effects=tuple(effects),
        events=tuple(events),
        graduated_now=graduated_now,
    )


def plan_sell(
    curve: CurveState,
    config: ConfigPolicy,
    seller: str,
    tokens_in: int,
    min_net_out: int,
    accounts: TradeAccounts | None = None,
) -> TradePlan:
    """Plan a redemption of ``tokens_in`` for collateral.

    Raises:
        GraduatedError / SellDisabledError: selling is not open.
        BadAccountError: a supplied record does not match its binding.
        InsufficientOutError: the net payout is below ``min_net_out``.
        MathOverflowError: ``tokens_in`` exceeds the tokens sold, or a width check failed.
    """
    check_sell_allowed(curve, config)
    require_accounts(curve, config, accounts)
    min_net_out = as_u64(min_net_out, "min_net_out")

    quote = quote_sell(curve.k_scaled, curve.y_v_scaled, tokens_in, config.sell_fee_bps)
    require_min_out(quote.net_out, min_net_out, what="net_out")

    after = _checked_next(curve, apply_sell(curve, quote, config))

    effects: list[SideEffect] = [
        Burn(authority=mint_authority(curve), owner=seller, amount=quote.tokens_in),
    ]
    if quote.net_out > 0:
        effects.append(Transfer(source=curve.vault_ref, dest=seller, amount=quote.net_out))
    if quote.fee_amount > 0:
        effects.append(Transfer(source=curve.vault_ref, dest=config.fee_recipient, amount=quote.fee_amount))

    event = SellExecuted(
        token_ref=curve.token_ref,
        seller=seller,
        tokens_in=quote.tokens_in,
        fee_amount=quote.fee_amount,
        net_out=quote.net_out,
        x_v_after=after.x_v_scaled,
        y_v_after=after.y_v_scaled,
    )
    return TradePlan(quote=quote, state=after, effects=tuple(effects), events=(event,))


class TradeOrchestrator:
    """Sequences one trade against the ports: plan, side effects, state, events."""

    def __init__(
        self,
        *,
        store: CurveStore,
        host: TransactionHost,
        transfers: AssetTransfer,
        minter: TokenMinter,
        events: EventSink,
    ) -> None:
        self._store = store
        self._host = host
        self._transfers = transfers
        self._minter = minter
        self._events = events

    def buy(
        self,
        token_ref: str,
        buyer: str,
        max_pay_gross: int,
        min_tokens_out: int,
        accounts: TradeAccounts | None = None,
    ) -> TradePlan:
        with self._host.atomic(token_ref):
            curve = self._store.load_curve(token_ref)
            config = self._store.load_config()
            plan = plan_buy(curve, config, buyer, max_pay_gross, min_tokens_out, accounts)
            self._execute(plan)
        return plan

    def sell(
        self,
        token_ref: str,
        seller: str,
        tokens_in: int,
        min_net_out: int,
        accounts: TradeAccounts | None = None,
    ) -> TradePlan:
        with self._host.atomic(token_ref):
            curve = self._store.load_curve(token_ref)
            config = self._store.load_config()
            plan = plan_sell(curve, config, seller, tokens_in, min_net_out, accounts)
            self._execute(plan)
        return plan

    def _execute(self, plan: TradePlan) -> None:
        for effect in plan.effects:
            if isinstance(effect, Transfer):
                self._transfers.transfer(effect.source, effect.dest, effect.amount)
            elif isinstance(effect, MintTo):
                self._minter.mint_to(effect.authority, effect.dest, effect.amount)
            elif isinstance(effect, Burn):
                self._minter.burn(effect.authority, effect.owner, effect.amount)
            else:
                raise TypeError(f"unknown side effect: {effect!r}")
        self._store.save_curve(plan.state)
        for event in plan.events:
            self._events.emit(event)
