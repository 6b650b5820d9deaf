"""
Trade request parsing and BLS12-381 request signatures.

A request is a plain JSON object:

    {"kind": "BUY", "token_ref": "0x..", "trader": "0x..", "amount": 1000,
     "limit": 990, "nonce": 1}

For BUY, ``amount`` is the maximum gross collateral paid and ``limit`` the
minimum tokens out. For SELL, ``amount`` is the tokens redeemed and ``limit``
the minimum net collateral out.

Signing: sign SHA256( domain_sep(f"curve_trade_sig:{chain_id}", v1) ||
canonical_json_bytes(request.to_dict()) ) with the trader's BLS key (G2Basic).
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, unique
from typing import Any, Dict, Optional

from py_ecc.bls import G2Basic

from ..core.curve.math import U64_MAX
from ..state.addresses import canonical_identity
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, hex_to_bytes_allow_0x
from ..state.nonces import MAX_NONCE

BLS_PUBKEY_BYTES = 48
BLS_SIGNATURE_BYTES = 96


@unique
class TradeKind(Enum):
    BUY = "BUY"
    SELL = "SELL"


def _require_str(value: Any, *, name: str, max_len: int = 256) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str, lo: int = 0, hi: int = U64_MAX) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an int")
    if value < lo or value > hi:
        raise ValueError(f"{name} must be in [{lo}, {hi}]")
    return int(value)


@dataclass(frozen=True)
class TradeRequest:
    kind: TradeKind
    token_ref: str
    trader: str
    amount: int
    limit: int
    nonce: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "token_ref": self.token_ref,
            "trader": self.trader,
            "amount": self.amount,
            "limit": self.limit,
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class SignedTradeRequest:
    request: TradeRequest
    signature: Optional[str] = None


def parse_trade_request(obj: Any) -> TradeRequest:
    """
    Parse and canonicalize a trade request object.

    Raises:
        ValueError: If the object is malformed or a field is out of range
    """
    if not isinstance(obj, Mapping):
        raise ValueError("trade request must be an object")
    kind_raw = _require_str(obj.get("kind"), name="kind").upper()
    try:
        kind = TradeKind(kind_raw)
    except ValueError:
        raise ValueError(f"unknown trade kind: {kind_raw}") from None
    return TradeRequest(
        kind=kind,
        token_ref=canonical_identity(_require_str(obj.get("token_ref"), name="token_ref"), name="token_ref"),
        trader=canonical_identity(_require_str(obj.get("trader"), name="trader"), name="trader"),
        amount=_require_int(obj.get("amount"), name="amount"),
        limit=_require_int(obj.get("limit"), name="limit"),
        nonce=_require_int(obj.get("nonce", 0), name="nonce", hi=MAX_NONCE),
    )


def parse_signed_trade_request(obj: Any) -> SignedTradeRequest:
    """Parse ``{"request": {...}, "signature": "0x.."}`` (signature optional)."""
    if not isinstance(obj, Mapping):
        raise ValueError("signed trade request must be an object")
    request = parse_trade_request(obj.get("request"))
    signature = obj.get("signature")
    if signature is not None:
        signature = _require_str(signature, name="signature", max_len=2 + 2 * BLS_SIGNATURE_BYTES)
    return SignedTradeRequest(request=request, signature=signature)


def request_message_hash(request: TradeRequest, *, chain_id: str) -> bytes:
    msg = domain_sep_bytes(f"curve_trade_sig:{chain_id}", version=1) + canonical_json_bytes(request.to_dict())
    return hashlib.sha256(msg).digest()


def sign_trade_request(request: TradeRequest, private_key: int, *, chain_id: str) -> SignedTradeRequest:
    sig = G2Basic.Sign(private_key, request_message_hash(request, chain_id=chain_id))
    return SignedTradeRequest(request=request, signature="0x" + sig.hex())


class BlsSignatureVerifier:
    """``SignatureVerifier`` over BLS12-381 G2Basic signatures."""

    def verify(self, identity: str, message: bytes, signature: str) -> bool:
        try:
            pubkey = hex_to_bytes_allow_0x(identity, name="identity", nbytes=BLS_PUBKEY_BYTES)
            sig = hex_to_bytes_allow_0x(signature, name="signature", nbytes=BLS_SIGNATURE_BYTES)
        except (TypeError, ValueError):
            return False
        return bool(G2Basic.Verify(pubkey, message, sig))


def verify_trade_request(
    signed: SignedTradeRequest,
    *,
    chain_id: str,
    verifier: Optional[BlsSignatureVerifier] = None,
) -> bool:
    if signed.signature is None:
        return False
    verifier = verifier or BlsSignatureVerifier()
    message = request_message_hash(signed.request, chain_id=chain_id)
    return verifier.verify(signed.request.trader, message, signed.signature)
