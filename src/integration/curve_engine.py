"""
Bonding-curve execution host.

This is an imperative-shell wrapper around the functional core:
- Owns the persisted records (config, one curve per token), the asset ledger,
  the event log and the per-trader nonces.
- Implements every port ``TradeOrchestrator`` consumes.
- Serializes transactions and stages all writes: a transaction works on a copy
  of the ledger and records, and the copy replaces the live state only when the
  whole transaction succeeded.
- Optionally verifies BLS-signed trade requests and enforces sequential nonces.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..core.curve.config import ConfigPolicy, init_config
from ..core.curve.engine import TradeOrchestrator
from ..core.curve.errors import (
    BadAccountError,
    CurveError,
    CurveInvariantError,
    UnauthorizedError,
)
from ..core.curve.ports import SignatureVerifier
from ..core.curve.state import init_curve
from ..core.curve.types import CurveEvent, CurveState, MintAuthority, Quote, TradeAccounts, TradePlan
from ..state.addresses import canonical_identity
from ..state.event_log import EventLog
from ..state.nonces import NonceTable
from .ledger import InsufficientFundsError, Ledger
from .trade_requests import (
    BlsSignatureVerifier,
    SignedTradeRequest,
    TradeKind,
    parse_signed_trade_request,
    request_message_hash,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurveHostConfig:
    # Replay/signature binding: signatures are only valid for one deployment.
    chain_id: str = "curve-local"
    # If True, `submit()` rejects requests without a valid BLS signature.
    require_signatures: bool = False
    # If True, `submit()` requires nonce == last accepted nonce + 1 per trader.
    enforce_nonces: bool = False


@dataclass(frozen=True)
class TradeResult:
    ok: bool
    state: Optional[CurveState] = None
    quote: Optional[Quote] = None
    events: Tuple[CurveEvent, ...] = ()
    error: Optional[str] = None
    code: Optional[str] = None


@dataclass
class _Tx:
    ledger: Ledger
    curves: Dict[str, CurveState]
    config: Optional[ConfigPolicy]
    nonces: NonceTable
    events: List[CurveEvent] = field(default_factory=list)


def _error_code(exc: Exception) -> str:
    if isinstance(exc, CurveError):
        return exc.code.value
    if isinstance(exc, CurveInvariantError):
        return "InvariantViolation"
    if isinstance(exc, InsufficientFundsError):
        return "InsufficientFunds"
    return "BadRequest"


_EXPECTED_ERRORS = (CurveError, CurveInvariantError, InsufficientFundsError, ValueError, TypeError)


class CurveHost:
    """In-memory, transaction-serializing host for every curve of one deployment.

    All transactions are serialized by one re-entrant lock because the ledger is
    shared across curves; a nested ``atomic()`` joins the enclosing transaction.
    """

    def __init__(
        self,
        config: CurveHostConfig = CurveHostConfig(),
        *,
        ledger: Optional[Ledger] = None,
        verifier: Optional[SignatureVerifier] = None,
    ) -> None:
        self.host_config = config
        self._ledger = ledger if ledger is not None else Ledger()
        self._curves: Dict[str, CurveState] = {}
        self._config: Optional[ConfigPolicy] = None
        self._nonces = NonceTable()
        self._event_log = EventLog()
        self._verifier: SignatureVerifier = verifier or BlsSignatureVerifier()
        self._lock = threading.RLock()
        self._tx: Optional[_Tx] = None
        self._orchestrator = TradeOrchestrator(
            store=self, host=self, transfers=self, minter=self, events=self,
        )

    # -- Read side (committed state only) ---------------------------------------

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def nonces(self) -> NonceTable:
        return self._nonces

    @property
    def config(self) -> ConfigPolicy:
        if self._config is None:
            raise BadAccountError("config not initialized")
        return self._config

    def curve(self, token_ref: str) -> CurveState:
        token = canonical_identity(token_ref, name="token_ref")
        try:
            return self._curves[token]
        except KeyError:
            raise BadAccountError(f"no curve for token {token}") from None

    def curves(self) -> Dict[str, CurveState]:
        return dict(self._curves)

    # -- TransactionHost ----------------------------------------------------------

    @contextmanager
    def atomic(self, token_ref: str = "") -> Iterator[None]:
        with self._lock:
            if self._tx is not None:
                yield
                return
            self._tx = _Tx(
                ledger=self._ledger.copy(),
                curves=dict(self._curves),
                config=self._config,
                nonces=self._nonces.copy(),
            )
            try:
                yield
            except BaseException:
                logger.debug("transaction on %s aborted; staged writes discarded", token_ref or "-")
                raise
            else:
                tx = self._tx
                self._ledger = tx.ledger
                self._curves = tx.curves
                self._config = tx.config
                self._nonces = tx.nonces
                self._event_log.extend(tx.events)
            finally:
                self._tx = None

    def _active(self) -> _Tx:
        if self._tx is None:
            raise RuntimeError("no active transaction")
        return self._tx

    # -- CurveStore -------------------------------------------------------------

    def load_curve(self, token_ref: str) -> CurveState:
        token = canonical_identity(token_ref, name="token_ref")
        try:
            return self._active().curves[token]
        except KeyError:
            raise BadAccountError(f"no curve for token {token}") from None

    def save_curve(self, curve: CurveState) -> None:
        self._active().curves[curve.token_ref] = curve

    def load_config(self) -> ConfigPolicy:
        config = self._active().config
        if config is None:
            raise BadAccountError("config not initialized")
        return config

    # -- AssetTransfer / TokenMinter / EventSink ------------------------------------

    def transfer(self, source: str, dest: str, amount: int) -> None:
        self._active().ledger.transfer(source, dest, amount)

    def mint_to(self, authority: MintAuthority, dest: str, amount: int) -> None:
        self._active().ledger.mint_to(authority, dest, amount)

    def burn(self, authority: MintAuthority, owner: str, amount: int) -> None:
        self._active().ledger.burn(authority, owner, amount)

    def emit(self, event: CurveEvent) -> None:
        self._active().events.append(event)

    # -- Administrative operations ---------------------------------------------------

    def init_config(
        self,
        admin: str,
        fee_recipient: str,
        buy_fee_bps: int,
        sell_fee_bps: int,
        allow_sell_pre_grad: bool,
    ) -> ConfigPolicy:
        """One-time per deployment. ``admin`` becomes the config admin."""
        with self.atomic():
            tx = self._active()
            if tx.config is not None:
                raise BadAccountError("config already initialized")
            tx.config = init_config(admin, fee_recipient, buy_fee_bps, sell_fee_bps, allow_sell_pre_grad)
        logger.info(
            "config initialized: buy_fee_bps=%d sell_fee_bps=%d allow_sell_pre_grad=%s",
            buy_fee_bps, sell_fee_bps, allow_sell_pre_grad,
        )
        return self.config

    def init_curve(
        self,
        admin: str,
        token_ref: str,
        x0: int,
        y0: int,
        curve_supply_cap: int,
        *,
        take_mint_authority: bool = False,
        current_mint_authority: Optional[str] = None,
    ) -> CurveState:
        """Create the curve for an existing token. Admin only.

        With ``take_mint_authority`` the token's mint authority is handed to the
        curve's derived authority; ``current_mint_authority`` must be supplied.
        """
        with self.atomic(token_ref):
            config = self.load_config()
            if canonical_identity(admin, name="admin") != config.admin:
                raise BadAccountError("caller is not the config admin")
            curve = init_curve(token_ref, x0, y0, curve_supply_cap)
            tx = self._active()
            if curve.token_ref in tx.curves:
                raise BadAccountError(f"curve already exists for {curve.token_ref}")
            if take_mint_authority:
                if current_mint_authority is None:
                    raise BadAccountError("current mint authority required to hand over minting")
                tx.ledger.set_mint_authority(curve.token_ref, current_mint_authority, curve.mint_authority_ref)
            tx.curves[curve.token_ref] = curve
        logger.info(
            "curve initialized: token=%s x0=%d y0=%d cap=%d take_mint_authority=%s",
            curve.token_ref, x0, y0, curve_supply_cap, take_mint_authority,
        )
        return curve

    # -- Trading -------------------------------------------------------------------------

    def buy_or_raise(
        self,
        buyer: str,
        token_ref: str,
        max_pay_gross: int,
        min_tokens_out: int,
        accounts: Optional[TradeAccounts] = None,
    ) -> TradePlan:
        buyer = canonical_identity(buyer, name="buyer")
        plan = self._orchestrator.buy(token_ref, buyer, max_pay_gross, min_tokens_out, accounts)
        self._log_commit(plan)
        return plan

    def sell_or_raise(
        self,
        seller: str,
        token_ref: str,
        tokens_in: int,
        min_net_out: int,
        accounts: Optional[TradeAccounts] = None,
    ) -> TradePlan:
        seller = canonical_identity(seller, name="seller")
        plan = self._orchestrator.sell(token_ref, seller, tokens_in, min_net_out, accounts)
        self._log_commit(plan)
        return plan

    def buy(
        self,
        buyer: str,
        token_ref: str,
        max_pay_gross: int,
        min_tokens_out: int,
        accounts: Optional[TradeAccounts] = None,
    ) -> TradeResult:
        return self._run(
            "buy", token_ref, lambda: self.buy_or_raise(buyer, token_ref, max_pay_gross, min_tokens_out, accounts)
        )

    def sell(
        self,
        seller: str,
        token_ref: str,
        tokens_in: int,
        min_net_out: int,
        accounts: Optional[TradeAccounts] = None,
    ) -> TradeResult:
        return self._run(
            "sell", token_ref, lambda: self.sell_or_raise(seller, token_ref, tokens_in, min_net_out, accounts)
        )

    def submit(self, signed_request: Any) -> TradeResult:
        """Parse, authenticate and execute a (signed) trade request object."""
        try:
            signed = parse_signed_trade_request(signed_request)
        except ValueError as exc:
            logger.warning("rejected malformed trade request: %s", exc)
            return TradeResult(ok=False, error=str(exc), code="BadRequest")

        req = signed.request

        def _execute() -> TradePlan:
            with self.atomic(req.token_ref):
                self._authenticate(signed)
                if req.kind is TradeKind.BUY:
                    return self.buy_or_raise(req.trader, req.token_ref, req.amount, req.limit)
                return self.sell_or_raise(req.trader, req.token_ref, req.amount, req.limit)

        return self._run(req.kind.value.lower(), req.token_ref, _execute)

    def _authenticate(self, signed: SignedTradeRequest) -> None:
        req = signed.request
        cfg = self.host_config
        if cfg.require_signatures:
            if signed.signature is None:
                raise UnauthorizedError("trade request signature required")
            message = request_message_hash(req, chain_id=cfg.chain_id)
            if not self._verifier.verify(req.trader, message, signed.signature):
                raise UnauthorizedError("invalid trade request signature")
        if cfg.enforce_nonces:
            nonces = self._active().nonces
            if not nonces.is_next(req.trader, req.nonce):
                raise UnauthorizedError(
                    f"bad nonce {req.nonce}, expected {nonces.get_last(req.trader) + 1}"
                )
            nonces.set_last(req.trader, req.nonce)

    def _run(self, op: str, token_ref: str, fn: Callable[[], TradePlan]) -> TradeResult:
        try:
            plan = fn()
        except _EXPECTED_ERRORS as exc:
            code = _error_code(exc)
            logger.warning("%s on %s rejected: %s", op, token_ref, exc)
            return TradeResult(ok=False, error=str(exc), code=code)
        except Exception:
            logger.error("%s on %s aborted by an unexpected error", op, token_ref, exc_info=True)
            raise
        return TradeResult(ok=True, state=plan.state, quote=plan.quote, events=plan.events)

    def _log_commit(self, plan: TradePlan) -> None:
        for event in plan.events:
            logger.info("committed %s", event.to_dict())
        if plan.graduated_now:
            logger.info(
                "curve %s graduated at tokens_sold=%d", plan.state.token_ref, plan.state.tokens_sold
            )
