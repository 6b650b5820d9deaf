from __future__ import annotations

import pytest

from src.core.curve.types import BuyExecuted, CurveGraduated
from src.state import BalanceTable, EventLog, NATIVE_ASSET, NonceTable, canonical_identity, curve_addresses, derive_address
from src.state.addresses import config_address
from src.state.nonces import MAX_NONCE

TOKEN = "0x" + "70" * 32
ALICE = "0x" + "11" * 32
BOB = "0x" + "22" * 32


# ---------------------------------------------------------------------------
# Identities and derived addresses
# ---------------------------------------------------------------------------

def test_canonical_identity_sizes() -> None:
    assert canonical_identity("0X" + "AB" * 32) == "0x" + "ab" * 32
    assert canonical_identity("cd" * 48) == "0x" + "cd" * 48
    with pytest.raises(ValueError):
        canonical_identity("0x" + "ab" * 20)


def test_derived_addresses_deterministic_and_distinct() -> None:
    a = curve_addresses(TOKEN)
    assert a == curve_addresses(TOKEN.upper().replace("0X", "0x"))
    assert len({a.curve_ref, a.vault_ref, a.mint_authority_ref}) == 3
    assert curve_addresses("0x" + "71" * 32).vault_ref != a.vault_ref
    assert all(len(ref) == 66 and ref.startswith("0x") for ref in a)


def test_config_address_unscoped() -> None:
    assert config_address() == derive_address("config")
    assert config_address() != derive_address("config", TOKEN)


# ---------------------------------------------------------------------------
# BalanceTable
# ---------------------------------------------------------------------------

def test_balance_table_sparse() -> None:
    t = BalanceTable()
    t.add(ALICE, NATIVE_ASSET, 100)
    t.subtract(ALICE, NATIVE_ASSET, 100)
    assert t.get(ALICE, NATIVE_ASSET) == 0
    assert t.get_balances_for_asset(NATIVE_ASSET) == {}


def test_balance_table_move() -> None:
    t = BalanceTable()
    t.set(ALICE, NATIVE_ASSET, 50)
    t.move(ALICE, BOB, NATIVE_ASSET, 20)
    assert t.get(ALICE, NATIVE_ASSET) == 30
    assert t.get(BOB, NATIVE_ASSET) == 20
    assert t.total(NATIVE_ASSET) == 50
    with pytest.raises(ValueError):
        t.move(ALICE, BOB, NATIVE_ASSET, 31)
    # A failed move leaves both sides unchanged.
    assert t.get(ALICE, NATIVE_ASSET) == 30
    assert t.get(BOB, NATIVE_ASSET) == 20


def test_balance_table_rejects_negatives() -> None:
    t = BalanceTable()
    with pytest.raises(ValueError):
        t.set(ALICE, NATIVE_ASSET, -1)
    with pytest.raises(ValueError):
        t.subtract(ALICE, NATIVE_ASSET, -1)
    with pytest.raises(ValueError):
        t.move(ALICE, BOB, NATIVE_ASSET, -1)


def test_balance_table_copy_is_independent() -> None:
    t = BalanceTable()
    t.set(ALICE, TOKEN, 5)
    c = t.copy()
    assert c == t
    c.add(ALICE, TOKEN, 1)
    assert t.get(ALICE, TOKEN) == 5
    assert c != t


# ---------------------------------------------------------------------------
# NonceTable
# ---------------------------------------------------------------------------

def test_nonce_sequence() -> None:
    n = NonceTable()
    assert n.get_last(ALICE) == 0
    assert n.is_next(ALICE, 1)
    assert not n.is_next(ALICE, 2)
    n.set_last(ALICE.upper().replace("0X", "0x"), 1)
    assert n.get_last(ALICE) == 1
    assert n.is_next(ALICE, 2)
    assert n.get_all() == {ALICE: 1}


def test_nonce_bounds() -> None:
    n = NonceTable()
    with pytest.raises(TypeError):
        n.set_last(ALICE, -1)
    with pytest.raises(TypeError):
        n.set_last(ALICE, MAX_NONCE + 1)


def test_nonce_copy_is_independent() -> None:
    n = NonceTable()
    n.set_last(ALICE, 3)
    c = n.copy()
    c.set_last(ALICE, 4)
    assert n.get_last(ALICE) == 3


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------

def _events():
    return [
        BuyExecuted(
            token_ref=TOKEN, buyer=ALICE, gross_paid=101, fee_amount=1,
            tokens_out=50, x_v_after=2_000_000, y_v_after=500_000,
        ),
        CurveGraduated(token_ref=TOKEN, tokens_sold=50, x_v_final=2_000_000, y_v_final=500_000),
    ]


def test_event_log_entries() -> None:
    log = EventLog()
    log.extend(_events())
    entries = log.entries()
    assert len(log) == 2
    assert [e["seq"] for e in entries] == [0, 1]
    assert entries[0]["event"] == "BuyExecuted"
    assert entries[0]["tokens_out"] == 50
    assert entries[1]["event"] == "Graduated"


def test_event_log_digest_is_order_sensitive() -> None:
    a, b = EventLog(), EventLog()
    first, second = _events()
    a.emit(first)
    a.emit(second)
    b.emit(second)
    b.emit(first)
    assert a.digest() != b.digest()
    c = EventLog()
    c.extend(_events())
    assert c.digest() == a.digest()
