"""Tests for src/core/curve/engine.py: trade planning and the orchestrator.

The orchestrator is exercised against a recording fake that implements every
port, so the commit order can be asserted directly.
"""

from contextlib import contextmanager

import pytest

from src.core.curve import (
    BadAccountError,
    BuyExecuted,
    CurveGraduated,
    CurveInvariantError,
    Event,
    GraduatedError,
    InsufficientOutError,
    MathOverflowError,
    SCALE,
    SellDisabledError,
    SellExecuted,
    TradeAccounts,
    TradeOrchestrator,
    init_config,
    init_curve,
    plan_buy,
    plan_sell,
)
from src.core.curve.engine import mint_authority
from src.core.curve.types import Burn, MintTo, Transfer

TOKEN = "0x" + "70" * 32
ADMIN = "0x" + "aa" * 32
FEE_RECIPIENT = "0x" + "fe" * 32
BUYER = "0x" + "11" * 32


def _config(buy_fee_bps=0, sell_fee_bps=0, allow_sell_pre_grad=True):
    return init_config(ADMIN, FEE_RECIPIENT, buy_fee_bps, sell_fee_bps, allow_sell_pre_grad)


def _accounts(curve, **overrides):
    kwargs = dict(
        token_ref=curve.token_ref,
        vault_ref=curve.vault_ref,
        mint_authority_ref=curve.mint_authority_ref,
        fee_recipient=FEE_RECIPIENT,
    )
    kwargs.update(overrides)
    return TradeAccounts(**kwargs)


# ---------------------------------------------------------------------------
# plan_buy
# ---------------------------------------------------------------------------

class TestPlanBuy:
    def test_effects_in_order(self):
        curve = init_curve(TOKEN, 1_000_000, 1_000_000, 500_000)
        plan = plan_buy(curve, _config(buy_fee_bps=100), BUYER, 1000, 989)
        assert plan.quote.tokens_out == 989
        assert plan.effects == (
            Transfer(source=BUYER, dest=FEE_RECIPIENT, amount=10),
            Transfer(source=BUYER, dest=curve.vault_ref, amount=990),
            MintTo(authority=mint_authority(curve), dest=BUYER, amount=989),
        )
        assert plan.state.tokens_sold == 989
        assert plan.graduated_now is False

    def test_event_payload(self):
        curve = init_curve(TOKEN, 1_000_000, 1_000_000, 500_000)
        plan = plan_buy(curve, _config(buy_fee_bps=100), BUYER, 1000, 0)
        (event,) = plan.events
        assert isinstance(event, BuyExecuted)
        assert event.gross_paid == 1000
        assert event.fee_amount == 10
        assert event.tokens_out == 989
        assert event.x_v_after == plan.state.x_v_scaled
        assert event.y_v_after == plan.state.y_v_scaled
        assert event.to_dict()["event"] == Event.BUY_EXECUTED.value

    def test_zero_fee_skips_fee_transfer(self):
        curve = init_curve(TOKEN, 100, 100, 60)
        plan = plan_buy(curve, _config(), BUYER, 100, 50)
        assert [type(e) for e in plan.effects] == [Transfer, MintTo]

    def test_slippage_leaves_input_untouched(self):
        curve = init_curve(TOKEN, 1_000_000, 1_000_000, 500_000)
        with pytest.raises(InsufficientOutError):
            plan_buy(curve, _config(buy_fee_bps=100), BUYER, 1000, 990)
        assert curve.tokens_sold == 0
        assert curve.y_v_scaled == 1_000_000 * SCALE

    def test_min_out_must_be_u64(self):
        curve = init_curve(TOKEN, 100, 100, 60)
        with pytest.raises(MathOverflowError):
            plan_buy(curve, _config(), BUYER, 100, -1)

    def test_graduation_scenario(self):
        curve = init_curve(TOKEN, 100, 100, 50)
        plan = plan_buy(curve, _config(), BUYER, 100, 50)
        assert plan.graduated_now is True
        assert plan.state.graduated is True
        buy_event, grad_event = plan.events
        assert isinstance(buy_event, BuyExecuted)
        assert isinstance(grad_event, CurveGraduated)
        assert grad_event.tokens_sold == 50
        assert grad_event.x_v_final == 200 * SCALE
        assert grad_event.y_v_final == 50 * SCALE
        assert grad_event.to_dict()["event"] == "Graduated"

        with pytest.raises(GraduatedError):
            plan_buy(plan.state, _config(), BUYER, 1, 0)

    def test_overshoot_graduates(self):
        curve = init_curve(TOKEN, 100, 100, 49)
        plan = plan_buy(curve, _config(), BUYER, 100, 0)
        assert plan.quote.tokens_out == 50
        assert plan.graduated_now is True
        assert plan.effects[-1] == MintTo(authority=mint_authority(curve), dest=BUYER, amount=50)
        _, grad_event = plan.events
        assert isinstance(grad_event, CurveGraduated)
        assert grad_event.tokens_sold == 50

    def test_matching_accounts(self):
        curve = init_curve(TOKEN, 100, 100, 60)
        accounts = _accounts(curve, vault_ref=curve.vault_ref.upper().replace("0X", "0x"))
        plan = plan_buy(curve, _config(), BUYER, 100, 0, accounts)
        assert plan.quote.tokens_out == 50

    @pytest.mark.parametrize("field", ["token_ref", "vault_ref", "mint_authority_ref", "fee_recipient"])
    def test_bad_account(self, field):
        curve = init_curve(TOKEN, 100, 100, 60)
        accounts = _accounts(curve, **{field: "0x" + "99" * 32})
        with pytest.raises(BadAccountError):
            plan_buy(curve, _config(), BUYER, 100, 0, accounts)


# ---------------------------------------------------------------------------
# plan_sell
# ---------------------------------------------------------------------------

class TestPlanSell:
    def _bought(self, cap=1_000):
        curve = init_curve(TOKEN, 100, 100, cap)
        return plan_buy(curve, _config(), BUYER, 100, 50).state

    def test_effects_in_order(self):
        curve = self._bought()
        plan = plan_sell(curve, _config(sell_fee_bps=100), BUYER, 50, 99)
        assert plan.quote.gross_out == 100
        assert plan.effects == (
            Burn(authority=mint_authority(curve), owner=BUYER, amount=50),
            Transfer(source=curve.vault_ref, dest=BUYER, amount=99),
            Transfer(source=curve.vault_ref, dest=FEE_RECIPIENT, amount=1),
        )
        assert plan.state.tokens_sold == 0
        assert plan.state.y_v_scaled == 100 * SCALE

    def test_event_payload(self):
        curve = self._bought()
        plan = plan_sell(curve, _config(sell_fee_bps=100), BUYER, 50, 0)
        (event,) = plan.events
        assert isinstance(event, SellExecuted)
        assert (event.tokens_in, event.fee_amount, event.net_out) == (50, 1, 99)
        assert event.to_dict()["seller"] == BUYER

    def test_slippage(self):
        with pytest.raises(InsufficientOutError):
            plan_sell(self._bought(), _config(sell_fee_bps=100), BUYER, 50, 100)

    def test_sell_disabled(self):
        with pytest.raises(SellDisabledError):
            plan_sell(self._bought(), _config(allow_sell_pre_grad=False), BUYER, 10, 0)

    def test_graduated(self):
        curve = self._bought(cap=50)
        assert curve.graduated
        with pytest.raises(GraduatedError):
            plan_sell(curve, _config(), BUYER, 10, 0)

    def test_more_than_sold(self):
        with pytest.raises(MathOverflowError):
            plan_sell(self._bought(), _config(), BUYER, 51, 0)

    def test_bad_account(self):
        curve = self._bought()
        accounts = _accounts(curve, mint_authority_ref=curve.vault_ref)
        with pytest.raises(BadAccountError):
            plan_sell(curve, _config(), BUYER, 10, 0, accounts)


# ---------------------------------------------------------------------------
# TradeOrchestrator
# ---------------------------------------------------------------------------

class _RecordingPorts:
    """Implements every port; records calls and stages the curve per transaction."""

    def __init__(self, curve, config, fail_on=None):
        self.curve = curve
        self.config = config
        self.calls = []
        self.fail_on = fail_on
        self._staged = None

    @contextmanager
    def atomic(self, token_ref):
        self.calls.append(("begin", token_ref))
        self._staged = self.curve
        try:
            yield
        except BaseException:
            self.calls.append(("abort",))
            raise
        else:
            self.curve = self._staged
            self.calls.append(("commit",))
        finally:
            self._staged = None

    def load_curve(self, token_ref):
        return self._staged

    def load_config(self):
        return self.config

    def save_curve(self, curve):
        self.calls.append(("save", curve.tokens_sold))
        self._staged = curve

    def _record(self, name, *args):
        if name == self.fail_on:
            raise RuntimeError(f"{name} failed")
        self.calls.append((name,) + args)

    def transfer(self, source, dest, amount):
        self._record("transfer", source, dest, amount)

    def mint_to(self, authority, dest, amount):
        self._record("mint_to", dest, amount)

    def burn(self, authority, owner, amount):
        self._record("burn", owner, amount)

    def emit(self, event):
        self._record("emit", event.EVENT.value)


def _orchestrator(ports):
    return TradeOrchestrator(store=ports, host=ports, transfers=ports, minter=ports, events=ports)


class TestOrchestrator:
    def test_buy_commit_order(self):
        curve = init_curve(TOKEN, 100, 100, 50)
        ports = _RecordingPorts(curve, _config(buy_fee_bps=100))
        plan = _orchestrator(ports).buy(TOKEN, BUYER, 101, 50)
        assert ports.calls == [
            ("begin", TOKEN),
            ("transfer", BUYER, FEE_RECIPIENT, 1),
            ("transfer", BUYER, curve.vault_ref, 100),
            ("mint_to", BUYER, 50),
            ("save", 50),
            ("emit", "BuyExecuted"),
            ("emit", "Graduated"),
            ("commit",),
        ]
        assert ports.curve == plan.state
        assert ports.curve.graduated

    def test_sell_commit_order(self):
        curve = plan_buy(init_curve(TOKEN, 100, 100, 60), _config(), BUYER, 100, 50).state
        ports = _RecordingPorts(curve, _config())
        _orchestrator(ports).sell(TOKEN, BUYER, 50, 100)
        assert ports.calls == [
            ("begin", TOKEN),
            ("burn", BUYER, 50),
            ("transfer", curve.vault_ref, BUYER, 100),
            ("save", 0),
            ("emit", "SellExecuted"),
            ("commit",),
        ]

    def test_collaborator_failure_aborts(self):
        curve = init_curve(TOKEN, 100, 100, 60)
        ports = _RecordingPorts(curve, _config(), fail_on="mint_to")
        with pytest.raises(RuntimeError):
            _orchestrator(ports).buy(TOKEN, BUYER, 100, 0)
        assert ports.calls[-1] == ("abort",)
        assert not any(c[0] == "save" for c in ports.calls)
        assert ports.curve is curve

    def test_guard_failure_touches_nothing(self):
        curve = init_curve(TOKEN, 100, 100, 60)
        ports = _RecordingPorts(curve, _config())
        with pytest.raises(InsufficientOutError):
            _orchestrator(ports).buy(TOKEN, BUYER, 100, 51)
        assert ports.calls == [("begin", TOKEN), ("abort",)]


def test_invariant_error_carries_violations():
    err = CurveInvariantError(["inv_x_derived", "tr_k_unchanged"])
    assert err.violations == ["inv_x_derived", "tr_k_unchanged"]
    assert "inv_x_derived" in str(err)


def test_every_error_code_has_a_class():
    from src.core.curve.errors import ERROR_BY_CODE, CurveErrorCode

    assert set(ERROR_BY_CODE) == set(CurveErrorCode)
    for code, cls in ERROR_BY_CODE.items():
        err = cls("boom")
        assert err.code is code
        assert str(err) == f"{code.value}: boom"
