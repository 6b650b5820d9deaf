"""Fee and sell policy shared by every curve of a deployment.

The policy is owned by an external administrator and is read-only during a
trade: the orchestrator receives a ``ConfigPolicy`` snapshot per call and never
mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ...state.addresses import canonical_identity
from .math import check_fee_bps


@dataclass(frozen=True)
class ConfigPolicy:
    admin: str
    fee_recipient: str
    buy_fee_bps: int
    sell_fee_bps: int
    allow_sell_pre_grad: bool

    def __post_init__(self) -> None:
        check_fee_bps(self.buy_fee_bps)
        check_fee_bps(self.sell_fee_bps)
        if not isinstance(self.allow_sell_pre_grad, bool):
            raise TypeError("allow_sell_pre_grad must be a bool")
        object.__setattr__(self, "admin", canonical_identity(self.admin, name="admin"))
        object.__setattr__(
            self, "fee_recipient", canonical_identity(self.fee_recipient, name="fee_recipient")
        )


def init_config(
    admin: str,
    fee_recipient: str,
    buy_fee_bps: int,
    sell_fee_bps: int,
    allow_sell_pre_grad: bool,
) -> ConfigPolicy:
    """Create the deployment config. ``admin`` is the signer of the call.

    Raises ``BadFeeError`` when either rate exceeds 10_000 bps.
    """
    return ConfigPolicy(
        admin=admin,
        fee_recipient=fee_recipient,
        buy_fee_bps=buy_fee_bps,
        sell_fee_bps=sell_fee_bps,
        allow_sell_pre_grad=allow_sell_pre_grad,
    )


CONFIG_FIELDS: tuple[str, ...] = tuple(ConfigPolicy.__dataclass_fields__)


def config_to_dict(config: ConfigPolicy) -> dict[str, Any]:
    return {name: getattr(config, name) for name in CONFIG_FIELDS}


def config_from_dict(d: Mapping[str, Any]) -> ConfigPolicy:
    """Deserialize a dict to a ConfigPolicy. Raises KeyError on missing fields."""
    return ConfigPolicy(**{name: d[name] for name in CONFIG_FIELDS})
