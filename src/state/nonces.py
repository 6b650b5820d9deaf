"""
Nonce table for trade-request replay protection.

We track, per trader identity, the last accepted request nonce. Policy is
strict sequential nonces: a request must carry ``last + 1``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from .addresses import canonical_identity
from .balances import Identity

MAX_NONCE = 0xFFFFFFFF


@dataclass
class NonceTable:
    """Mutable mapping: trader identity -> last used nonce."""

    _last: Dict[Identity, int] = field(default_factory=dict)

    def get_last(self, identity: Identity) -> int:
        return self._last.get(canonical_identity(identity, name="identity"), 0)

    def set_last(self, identity: Identity, last_nonce: int) -> None:
        if not isinstance(last_nonce, int) or isinstance(last_nonce, bool) or last_nonce < 0:
            raise TypeError("last_nonce must be a non-negative int")
        if last_nonce > MAX_NONCE:
            raise TypeError("last_nonce must fit in u32")
        self._last[canonical_identity(identity, name="identity")] = int(last_nonce)

    def is_next(self, identity: Identity, nonce: int) -> bool:
        return nonce == self.get_last(identity) + 1

    def copy(self) -> "NonceTable":
        return NonceTable(dict(self._last))

    def get_all(self) -> Mapping[Identity, int]:
        # Return a shallow copy to avoid accidental mutation during iteration.
        return dict(self._last)
