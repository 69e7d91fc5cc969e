"""Protocol configuration.

`ProtocolConfig` is the immutable input to `state.initial_state()`. It is
loaded from YAML: the packaged `defaults.yaml` first, then an optional
deployment file whose keys override the defaults. Unknown keys are rejected
(fail-closed) so a typo never silently falls back to a default.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from importlib.resources import files
from pathlib import Path
from typing import Any, Mapping

import yaml

from .math import is_amount
from .tiers import validate_tier
from .types import PolicyTier

_DEFAULTS_RESOURCE = "defaults.yaml"


@dataclass(frozen=True)
class ProtocolConfig:
    owner: str = "insurepool:owner"
    custody: str = "insurepool:custody"
    base_premium: int = 0
    claim_ceiling: int = 100_000_000
    risk_threshold: int = 75
    cooldown_period: int = 144
    lock_period: int = 2160
    reward_rate: int = 100
    min_stake: int = 1_000_000
    tiers: Mapping[int, PolicyTier] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.owner, str) or not self.owner:
            raise ValueError("owner must be a non-empty str")
        if not isinstance(self.custody, str) or not self.custody:
            raise ValueError("custody must be a non-empty str")
        if self.owner == self.custody:
            raise ValueError("owner and custody must differ")
        for name in (
            "base_premium", "claim_ceiling", "risk_threshold", "cooldown_period",
            "lock_period", "reward_rate", "min_stake",
        ):
            if not is_amount(getattr(self, name)):
                raise ValueError(f"{name} must be a non-negative int")
        if self.claim_ceiling == 0:
            raise ValueError("claim_ceiling must be positive")
        if self.risk_threshold > 100:
            raise ValueError("risk_threshold must be in [0, 100]")
        for tier_id, tier in self.tiers.items():
            reason = validate_tier(tier_id, tier)
            if reason is not None:
                raise ValueError(f"tier {tier_id!r}: invalid {reason}")


_SCALAR_KEYS = frozenset(f.name for f in fields(ProtocolConfig)) - {"tiers"}
_TIER_KEYS = frozenset(f.name for f in fields(PolicyTier))


def _parse_tiers(raw: Any) -> dict[int, PolicyTier]:
    if not isinstance(raw, Mapping):
        raise TypeError("tiers must be a mapping of id -> tier")
    out: dict[int, PolicyTier] = {}
    for key, entry in raw.items():
        if not isinstance(entry, Mapping):
            raise TypeError(f"tier {key!r} must be a mapping")
        unknown = set(entry) - _TIER_KEYS
        if unknown:
            raise ValueError(f"tier {key!r}: unknown keys {sorted(unknown)}")
        missing = _TIER_KEYS - set(entry)
        if missing:
            raise ValueError(f"tier {key!r}: missing keys {sorted(missing)}")
        out[int(key)] = PolicyTier(**{k: entry[k] for k in _TIER_KEYS})
    return out


def config_from_dict(d: Mapping[str, Any], base: ProtocolConfig | None = None) -> ProtocolConfig:
    """Build a config from a plain mapping, overriding *base* (or the dataclass defaults)."""
    unknown = set(d) - _SCALAR_KEYS - {"tiers"}
    if unknown:
        raise ValueError(f"unknown config keys: {sorted(unknown)}")
    cfg = base if base is not None else ProtocolConfig()
    kwargs: dict[str, Any] = {k: d[k] for k in _SCALAR_KEYS if k in d}
    if "tiers" in d:
        kwargs["tiers"] = _parse_tiers(d["tiers"])
    return replace(cfg, **kwargs)


def _load_yaml_mapping(text: str, origin: str) -> Mapping[str, Any]:
    obj = yaml.safe_load(text)
    if obj is None:
        return {}
    if not isinstance(obj, Mapping):
        raise TypeError(f"config YAML must be a mapping: {origin}")
    return obj


def default_config() -> ProtocolConfig:
    """The packaged defaults (Basic / Premium / Elite catalog)."""
    text = files("insurepool").joinpath(_DEFAULTS_RESOURCE).read_text(encoding="utf-8")
    return config_from_dict(_load_yaml_mapping(text, _DEFAULTS_RESOURCE))


def load_config(path: str | Path | None = None) -> ProtocolConfig:
    """Load packaged defaults, then overlay the YAML file at *path* if given.

    A `tiers` key in the overlay replaces the default catalog as a whole.
    """
    cfg = default_config()
    if path is None:
        return cfg
    p = Path(path)
    return config_from_dict(_load_yaml_mapping(p.read_text(encoding="utf-8"), str(p)), base=cfg)
