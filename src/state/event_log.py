"""
Append-only event log.

Events are stored as emitted; ``entries()`` renders them to plain dicts with a
monotonically increasing sequence number for export and hashing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .canonical import canonical_json_bytes, sha256_hex


@dataclass
class EventLog:
    _events: List[Any] = field(default_factory=list)

    def emit(self, event: Any) -> None:
        self._events.append(event)

    def extend(self, events: List[Any]) -> None:
        self._events.extend(events)

    def __len__(self) -> int:
        return len(self._events)

    def events(self) -> List[Any]:
        return list(self._events)

    def entries(self) -> List[Dict[str, Any]]:
        return [{"seq": i, **ev.to_dict()} for i, ev in enumerate(self._events)]

    def digest(self) -> str:
        """Hash of the canonical JSON of every entry, in order."""
        return sha256_hex(canonical_json_bytes(self.entries()))
