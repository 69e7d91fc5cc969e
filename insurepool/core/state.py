"""State construction and serialization for insurepool.

`initial_state(config)` returns a fresh `ProtocolState` for a deployment.

`state_to_dict()` produces the persisted layout: the singleton protocol record
plus five keyed maps (tiers, risk_profiles, policies, claims, stakes). All keys
are strings and all values are bool/int/str, so the dict is directly usable
with `canonical_json_bytes()`. Claims nest as ``claims[account][str(claim_id)]``.

Round-trip property (tested): `state_from_dict(state_to_dict(s)) == s`.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Mapping

from .config import ProtocolConfig, default_config
from .types import (
    Claim,
    InsurancePolicy,
    PolicyStatus,
    PolicyTier,
    ProtocolState,
    RiskProfile,
    StakeAccount,
    Verdict,
)

MAP_NAMES: tuple[str, ...] = ("tiers", "risk_profiles", "policies", "claims", "stakes")
SCALAR_NAMES: tuple[str, ...] = tuple(
    f.name for f in fields(ProtocolState) if f.name not in MAP_NAMES
)


def initial_state(config: ProtocolConfig | None = None) -> ProtocolState:
    """Fresh state for *config* (packaged defaults when omitted)."""
    cfg = config if config is not None else default_config()
    return ProtocolState(
        owner=cfg.owner,
        custody=cfg.custody,
        base_premium=cfg.base_premium,
        claim_ceiling=cfg.claim_ceiling,
        risk_threshold=cfg.risk_threshold,
        cooldown_period=cfg.cooldown_period,
        lock_period=cfg.lock_period,
        reward_rate=cfg.reward_rate,
        min_stake=cfg.min_stake,
        tiers=dict(cfg.tiers),
    )


# -- record <-> dict ---------------------------------------------------------

def _record_to_dict(obj: Any) -> dict[str, bool | int | str]:
    out: dict[str, bool | int | str] = {}
    for f in fields(obj):
        v = getattr(obj, f.name)
        out[f.name] = v.value if isinstance(v, (PolicyStatus, Verdict)) else v
    return out


def _policy_from_dict(d: Mapping[str, Any]) -> InsurancePolicy:
    kwargs = {f.name: d[f.name] for f in fields(InsurancePolicy)}
    kwargs["status"] = PolicyStatus(kwargs["status"])
    return InsurancePolicy(**kwargs)


def _claim_from_dict(d: Mapping[str, Any]) -> Claim:
    kwargs = {f.name: d[f.name] for f in fields(Claim)}
    kwargs["verdict"] = Verdict(kwargs["verdict"])
    return Claim(**kwargs)


def _plain_from_dict(cls: type, d: Mapping[str, Any]) -> Any:
    return cls(**{f.name: d[f.name] for f in fields(cls)})


def state_to_dict(state: ProtocolState) -> dict[str, Any]:
    """Serialize a ProtocolState to the persisted plain-dict layout."""
    out: dict[str, Any] = {name: getattr(state, name) for name in SCALAR_NAMES}
    out["tiers"] = {str(k): _record_to_dict(v) for k, v in state.tiers.items()}
    out["risk_profiles"] = {k: _record_to_dict(v) for k, v in state.risk_profiles.items()}
    out["policies"] = {k: _record_to_dict(v) for k, v in state.policies.items()}
    claims: dict[str, dict[str, Any]] = {}
    for (account, claim_id), claim in state.claims.items():
        claims.setdefault(account, {})[str(claim_id)] = _record_to_dict(claim)
    out["claims"] = claims
    out["stakes"] = {k: _record_to_dict(v) for k, v in state.stakes.items()}
    return out


def state_from_dict(d: Mapping[str, Any]) -> ProtocolState:
    """Deserialize the persisted layout. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in SCALAR_NAMES:
        val = d[name]
        if isinstance(val, bool) or not isinstance(val, (int, str)):
            raise TypeError(f"state var {name!r} must be int|str, got {type(val).__name__}")
        kwargs[name] = val
    kwargs["tiers"] = {int(k): _plain_from_dict(PolicyTier, v) for k, v in d["tiers"].items()}
    kwargs["risk_profiles"] = {k: _plain_from_dict(RiskProfile, v) for k, v in d["risk_profiles"].items()}
    kwargs["policies"] = {k: _policy_from_dict(v) for k, v in d["policies"].items()}
    kwargs["claims"] = {
        (account, int(claim_id)): _claim_from_dict(claim)
        for account, by_id in d["claims"].items()
        for claim_id, claim in by_id.items()
    }
    kwargs["stakes"] = {k: _plain_from_dict(StakeAccount, v) for k, v in d["stakes"].items()}
    return ProtocolState(**kwargs)
