"""Tier registry: static catalog of policy tiers.

Tiers are keyed by small integer ids (1=Basic, 2=Premium, 3=Elite by default)
but any non-negative id is accepted. Registration overwrites.
"""

from __future__ import annotations

from dataclasses import replace

from .errors import ErrorKind, Rejection
from .math import PERCENT_SCALE, is_amount
from .types import ActionParams, Effect, Event, PolicyTier, ProtocolState, Transfer

MAX_TIER_ID: int = 2**32 - 1


def get_tier(state: ProtocolState, tier_id: int) -> PolicyTier | None:
    return state.tiers.get(tier_id)


def validate_tier(tier_id: int, tier: PolicyTier) -> str | None:
    """Return a reason string if the tier definition is unusable, else None."""
    if not isinstance(tier_id, int) or isinstance(tier_id, bool) or not 0 <= tier_id <= MAX_TIER_ID:
        return "tier_id"
    if not isinstance(tier.name, str) or not tier.name.strip():
        return "name"
    if not is_amount(tier.coverage_multiplier) or tier.coverage_multiplier < 1:
        return "coverage_multiplier"
    if not is_amount(tier.premium_discount_percent) or tier.premium_discount_percent > PERCENT_SCALE:
        return "premium_discount_percent"
    if not is_amount(tier.min_stake):
        return "min_stake"
    return None


def _tier_from_params(params: ActionParams) -> PolicyTier:
    return PolicyTier(
        name=params.name,
        coverage_multiplier=params.coverage_multiplier,
        premium_discount_percent=params.premium_discount_percent,
        min_stake=params.min_stake,
    )


def guard_register_tier(state: ProtocolState, params: ActionParams) -> Rejection | None:
    reason = validate_tier(params.tier_id, _tier_from_params(params))
    if reason is not None:
        return ErrorKind.INVALID_PARAMETERS, reason
    return None


def apply_register_tier(state: ProtocolState, params: ActionParams) -> ProtocolState:
    return replace(state, tiers={**state.tiers, params.tier_id: _tier_from_params(params)})


def transfers_register_tier(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return ()


def effect_register_tier(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return Effect(event=Event.TIER_REGISTERED, amount=params.tier_id)
