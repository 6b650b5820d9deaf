"""
Deployment settings: YAML files and environment variables.

YAML layout (both sections optional except where a caller needs them):

    config:
      admin: "0x.."
      fee_recipient: "0x.."
      buy_fee_bps: 100
      sell_fee_bps: 100
      allow_sell_pre_grad: true
    host:
      chain_id: curve-local
      require_signatures: false
      enforce_nonces: false

Environment overrides for the host section: ``CURVE_CHAIN_ID``,
``CURVE_REQUIRE_SIGNATURES``, ``CURVE_ENFORCE_NONCES``.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..core.curve.config import ConfigPolicy, config_from_dict
from .curve_engine import CurveHost, CurveHostConfig

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings_yaml(path: Union[str, Path]) -> Mapping[str, Any]:
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return {}
    if not isinstance(obj, Mapping):
        raise TypeError("settings YAML must be a mapping")
    return obj


def config_policy_from_settings(settings: Mapping[str, Any]) -> ConfigPolicy:
    section = settings.get("config")
    if not isinstance(section, Mapping):
        raise ValueError("settings must contain a 'config' mapping")
    return config_from_dict(section)


def host_config_from_settings(settings: Optional[Mapping[str, Any]] = None) -> CurveHostConfig:
    """Host config from the ``host`` section, then environment overrides."""
    cfg = CurveHostConfig()
    section = (settings or {}).get("host") or {}
    if not isinstance(section, Mapping):
        raise ValueError("'host' settings must be a mapping")
    unknown = set(section) - set(CurveHostConfig.__dataclass_fields__)
    if unknown:
        raise ValueError(f"unknown host settings: {sorted(unknown)}")
    if not isinstance(section.get("chain_id", cfg.chain_id), str):
        raise ValueError("host.chain_id must be a string")
    for name in ("require_signatures", "enforce_nonces"):
        if not isinstance(section.get(name, False), bool):
            raise ValueError(f"host.{name} must be a boolean")
    cfg = replace(cfg, **dict(section))
    return CurveHostConfig(
        chain_id=_env_str("CURVE_CHAIN_ID", cfg.chain_id),
        require_signatures=_env_bool("CURVE_REQUIRE_SIGNATURES", cfg.require_signatures),
        enforce_nonces=_env_bool("CURVE_ENFORCE_NONCES", cfg.enforce_nonces),
    )


def host_from_settings(settings: Mapping[str, Any]) -> CurveHost:
    """Build a host and install the ``config`` section as its deployment config."""
    host = CurveHost(host_config_from_settings(settings))
    policy = config_policy_from_settings(settings)
    host.init_config(
        policy.admin,
        policy.fee_recipient,
        policy.buy_fee_bps,
        policy.sell_fee_bps,
        policy.allow_sell_pre_grad,
    )
    return host
