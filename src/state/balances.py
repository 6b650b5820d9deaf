"""
Balance tracking for the native collateral asset and curve-issued tokens.

Implements BalanceTable[Identity, AssetId] -> Amount
"""

from typing import Dict, Tuple


# Type aliases
Identity = str  # 0x-prefixed 32- or 48-byte hex
AssetId = str  # NATIVE_ASSET or a token_ref
Amount = int  # Non-negative integer

# Native (collateral) asset identifier
NATIVE_ASSET = "0x" + "00" * 32


class BalanceTable:
    """
    Balance table mapping (identity, asset) -> amount.

    Balances are stored sparsely: a zero balance is the absence of an entry.
    Do not rely on dict iteration order; sort keys at serialization boundaries.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Identity, AssetId], Amount] = {}

    def get(self, owner: Identity, asset: AssetId) -> Amount:
        """Get balance for (owner, asset). Returns 0 if not found."""
        return self._balances.get((owner, asset), 0)

    def set(self, owner: Identity, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (owner, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((owner, asset), None)
        else:
            self._balances[(owner, asset)] = amount

    def add(self, owner: Identity, asset: AssetId, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(owner, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(owner, asset, new_balance)

    def subtract(self, owner: Identity, asset: AssetId, delta: Amount) -> None:
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(owner, asset, -delta)

    def move(self, source: Identity, dest: Identity, asset: AssetId, amount: Amount) -> None:
        """Debit ``source`` and credit ``dest``; the debit is checked first."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        self.subtract(source, asset, amount)
        self.add(dest, asset, amount)

    def total(self, asset: AssetId) -> Amount:
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def get_balances_for_asset(self, asset: AssetId) -> Dict[Identity, Amount]:
        return {owner: amount for (owner, a), amount in self._balances.items() if a == asset}

    def copy(self) -> "BalanceTable":
        out = BalanceTable()
        out._balances = dict(self._balances)
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BalanceTable):
            return NotImplemented
        return self._balances == other._balances

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
