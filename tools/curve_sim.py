#!/usr/bin/env python3
"""Offline bonding-curve simulation.

Creates one curve on an in-memory host, funds a trader, runs a sequence of
buys/sells and prints the committed event log as JSON.

    python tools/curve_sim.py --x0 1000000 --y0 1000000 --cap 500000 \\
        --trades buy:10000,buy:50000,sell:1000
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Tuple

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.core.curve.math import spot_price_scaled
from src.core.curve.state import curve_to_dict, remaining_inventory
from src.integration.curve_engine import CurveHost, CurveHostConfig
from src.integration.settings import host_from_settings, load_settings_yaml

ADMIN = "0x" + "aa" * 32
FEE_RECIPIENT = "0x" + "fe" * 32
TOKEN = "0x" + "70" * 32
TRADER = "0x" + "11" * 32


def _parse_trades(raw: str) -> List[Tuple[str, int]]:
    out: List[Tuple[str, int]] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        kind, _, amount = part.partition(":")
        kind = kind.strip().lower()
        if kind not in ("buy", "sell"):
            raise SystemExit(f"unknown trade kind: {kind!r}")
        try:
            out.append((kind, int(amount)))
        except ValueError:
            raise SystemExit(f"bad trade amount: {part!r}") from None
    return out


def main() -> int:
    ap = argparse.ArgumentParser(description="Run buys/sells against an in-memory bonding curve")
    ap.add_argument("--settings", type=str, default="", help="YAML settings file (config/host sections)")
    ap.add_argument("--x0", type=int, default=1_000_000, help="initial virtual collateral reserve")
    ap.add_argument("--y0", type=int, default=1_000_000, help="initial virtual token reserve")
    ap.add_argument("--cap", type=int, default=500_000, help="curve supply cap")
    ap.add_argument("--buy-fee-bps", type=int, default=100)
    ap.add_argument("--sell-fee-bps", type=int, default=100)
    ap.add_argument("--no-sell-pre-grad", action="store_true")
    ap.add_argument("--fund", type=int, default=10**12, help="collateral credited to the trader")
    ap.add_argument("--trades", type=str, default="buy:10000,buy:50000,sell:1000")
    ap.add_argument("--verbose", action="store_true")
    ap.add_argument("--out", type=str, default="")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.settings:
        host = host_from_settings(load_settings_yaml(args.settings))
        admin = host.config.admin
    else:
        host = CurveHost(CurveHostConfig())
        host.init_config(
            ADMIN, FEE_RECIPIENT, args.buy_fee_bps, args.sell_fee_bps, not args.no_sell_pre_grad
        )
        admin = ADMIN

    host.ledger.create_token(TOKEN, admin)
    host.init_curve(
        admin, TOKEN, args.x0, args.y0, args.cap,
        take_mint_authority=True, current_mint_authority=admin,
    )
    host.ledger.credit_native(TRADER, args.fund)

    results = []
    for kind, amount in _parse_trades(args.trades):
        if kind == "buy":
            res = host.buy(TRADER, TOKEN, amount, 0)
        else:
            res = host.sell(TRADER, TOKEN, amount, 0)
        results.append({"trade": kind, "amount": amount, "ok": res.ok, "code": res.code, "error": res.error})

    curve = host.curve(TOKEN)
    report = {
        "schema": "bondcurve/sim/v1",
        "curve": curve_to_dict(curve),
        "spot_price_scaled": spot_price_scaled(curve.k_scaled, curve.y_v_scaled),
        "remaining_inventory": remaining_inventory(curve),
        "trader": {
            "collateral": host.ledger.native_balance(TRADER),
            "tokens": host.ledger.token_balance(TRADER, TOKEN),
        },
        "vault_collateral": host.ledger.native_balance(curve.vault_ref),
        "fees_collected": host.ledger.native_balance(host.config.fee_recipient),
        "trades": results,
        "events": host.event_log.entries(),
        "event_log_digest": host.event_log.digest(),
    }
    payload = json.dumps(report, indent=2, sort_keys=True)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload + "\n", encoding="utf-8")
        print(f"Wrote {out_path}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
