"""Collaborator interfaces consumed by the trade orchestrator.

The core never moves funds, mints, logs events or persists records itself; it
asks these ports to. ``src/integration/curve_engine.py`` provides the in-memory
reference implementations.
"""

from __future__ import annotations

from typing import ContextManager, Protocol

from .config import ConfigPolicy
from .types import CurveEvent, CurveState, MintAuthority


class AssetTransfer(Protocol):
    def transfer(self, source: str, dest: str, amount: int) -> None:
        """Move native collateral. Raises on insufficient funds."""


class TokenMinter(Protocol):
    def mint_to(self, authority: MintAuthority, dest: str, amount: int) -> None:
        ...

    def burn(self, authority: MintAuthority, owner: str, amount: int) -> None:
        ...


class EventSink(Protocol):
    def emit(self, event: CurveEvent) -> None:
        ...


class CurveStore(Protocol):
    def load_curve(self, token_ref: str) -> CurveState:
        ...

    def save_curve(self, curve: CurveState) -> None:
        ...

    def load_config(self) -> ConfigPolicy:
        ...


class TransactionHost(Protocol):
    def atomic(self, token_ref: str) -> ContextManager[None]:
        """Exclusive, all-or-nothing scope for one trade against ``token_ref``.

        Nothing done inside the scope may become visible unless the scope exits
        without an exception.
        """


class SignatureVerifier(Protocol):
    def verify(self, identity: str, message: bytes, signature: str) -> bool:
        ...
