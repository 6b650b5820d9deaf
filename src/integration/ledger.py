"""
In-memory asset ledger: the reference collateral-transfer and mint/burn
collaborator for ``TradeOrchestrator``.

Collateral lives under ``NATIVE_ASSET``; each curve-issued token lives under its
own ``token_ref``. Minting and burning require the ``MintAuthority`` capability
whose ``authority_ref`` matches the token's registered mint authority.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from ..core.curve.errors import BadAccountError, MathOverflowError
from ..core.curve.math import U64_MAX
from ..core.curve.types import MintAuthority
from ..state.addresses import canonical_identity
from ..state.balances import NATIVE_ASSET, Amount, BalanceTable, Identity


class InsufficientFundsError(ValueError):
    """Raised when a debit exceeds the available balance."""


@dataclass
class Ledger:
    balances: BalanceTable = field(default_factory=BalanceTable)
    mint_authorities: Dict[str, Identity] = field(default_factory=dict)
    supplies: Dict[str, Amount] = field(default_factory=dict)

    # -- Collateral --------------------------------------------------------------

    def native_balance(self, owner: Identity) -> Amount:
        return self.balances.get(canonical_identity(owner, name="owner"), NATIVE_ASSET)

    def credit_native(self, owner: Identity, amount: Amount) -> None:
        """Fund an account from outside the system (deposits, test faucets)."""
        self.balances.add(canonical_identity(owner, name="owner"), NATIVE_ASSET, amount)

    def transfer(self, source: Identity, dest: Identity, amount: Amount) -> None:
        src = canonical_identity(source, name="source")
        dst = canonical_identity(dest, name="dest")
        try:
            self.balances.move(src, dst, NATIVE_ASSET, amount)
        except ValueError as exc:
            raise InsufficientFundsError(f"transfer {src} -> {dst} of {amount}: {exc}") from exc

    # -- Tokens --------------------------------------------------------------------

    def create_token(self, token_ref: str, mint_authority: Identity) -> None:
        token = canonical_identity(token_ref, name="token_ref")
        if token in self.mint_authorities:
            raise ValueError(f"token already exists: {token}")
        self.mint_authorities[token] = canonical_identity(mint_authority, name="mint_authority")
        self.supplies[token] = 0

    def mint_authority_of(self, token_ref: str) -> Identity:
        token = canonical_identity(token_ref, name="token_ref")
        try:
            return self.mint_authorities[token]
        except KeyError:
            raise BadAccountError(f"unknown token: {token}") from None

    def set_mint_authority(self, token_ref: str, current: Identity, new: Identity) -> None:
        token = canonical_identity(token_ref, name="token_ref")
        if self.mint_authority_of(token) != canonical_identity(current, name="current"):
            raise BadAccountError("current mint authority does not match")
        self.mint_authorities[token] = canonical_identity(new, name="new")

    def token_balance(self, owner: Identity, token_ref: str) -> Amount:
        return self.balances.get(
            canonical_identity(owner, name="owner"), canonical_identity(token_ref, name="token_ref")
        )

    def _require_authority(self, authority: MintAuthority) -> str:
        token = canonical_identity(authority.token_ref, name="token_ref")
        if self.mint_authority_of(token) != canonical_identity(authority.authority_ref, name="authority_ref"):
            raise BadAccountError(f"mint authority mismatch for {token}")
        return token

    def mint_to(self, authority: MintAuthority, dest: Identity, amount: Amount) -> None:
        token = self._require_authority(authority)
        new_supply = self.supplies[token] + amount
        if new_supply > U64_MAX:
            raise MathOverflowError(f"token supply overflow for {token}")
        self.balances.add(canonical_identity(dest, name="dest"), token, amount)
        self.supplies[token] = new_supply

    def burn(self, authority: MintAuthority, owner: Identity, amount: Amount) -> None:
        token = self._require_authority(authority)
        try:
            self.balances.subtract(canonical_identity(owner, name="owner"), token, amount)
        except ValueError as exc:
            raise InsufficientFundsError(f"burn of {amount} {token}: {exc}") from exc
        self.supplies[token] -= amount

    def copy(self) -> "Ledger":
        return Ledger(
            balances=self.balances.copy(),
            mint_authorities=dict(self.mint_authorities),
            supplies=dict(self.supplies),
        )
