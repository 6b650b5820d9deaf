"""
Identities and deterministic record addresses.

Identities are 0x-prefixed hex strings: 32 bytes for derived records and plain
accounts, 48 bytes for BLS12-381 public keys of signing traders.

Derived addresses bind a record to one token:

    derive_address(seed, token_ref) = sha256(domain_sep("addr:<seed>") || len||token_ref_bytes)

so the curve, its collateral vault and its mint authority can be recomputed
from the token alone, and a supplied record can be checked against them.
"""

from __future__ import annotations

import hashlib
from typing import NamedTuple

from .canonical import domain_sep_bytes, encode_bytes, hex_to_bytes_allow_0x

SEED_CONFIG = "config"
SEED_CURVE = "curve"
SEED_VAULT = "vault"
SEED_MINT_AUTH = "mint_auth"

_IDENTITY_SIZES = (32, 48)


def canonical_identity(value: str, *, name: str = "identity") -> str:
    """Lowercase, 0x-prefixed form of a 32- or 48-byte hex identity."""
    raw = hex_to_bytes_allow_0x(value, name=name)
    if len(raw) not in _IDENTITY_SIZES:
        raise ValueError(f"{name} must be 32 or 48 bytes, got {len(raw)}")
    return "0x" + raw.hex()


def derive_address(seed: str, token_ref: str | None = None) -> str:
    """Deterministic 32-byte address for ``seed`` (optionally scoped to a token)."""
    msg = domain_sep_bytes(f"addr:{seed}", version=1)
    if token_ref is not None:
        msg += encode_bytes(hex_to_bytes_allow_0x(canonical_identity(token_ref, name="token_ref"), name="token_ref"))
    return "0x" + hashlib.sha256(msg).hexdigest()


class CurveAddresses(NamedTuple):
    curve_ref: str
    vault_ref: str
    mint_authority_ref: str


def curve_addresses(token_ref: str) -> CurveAddresses:
    return CurveAddresses(
        curve_ref=derive_address(SEED_CURVE, token_ref),
        vault_ref=derive_address(SEED_VAULT, token_ref),
        mint_authority_ref=derive_address(SEED_MINT_AUTH, token_ref),
    )


def config_address() -> str:
    return derive_address(SEED_CONFIG)
