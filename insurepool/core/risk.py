"""Risk scorer: bounded 0-100 score from an account's historical profile."""

from __future__ import annotations

from dataclasses import replace

from .errors import ErrorKind, Rejection
from .math import MAX_RISK_SCORE, NEUTRAL_RISK_SCORE, blended_risk_score, is_amount
from .types import Account, ActionParams, Effect, Event, ProtocolState, RiskProfile, Transfer


def score(state: ProtocolState, account: Account) -> int:
    """Risk score for *account*; 50 when no profile has been recorded.

    The blend weights claim history over the base prior; stake weight raises the
    score proportionally. Always within [0, 100].
    """
    profile = state.risk_profiles.get(account)
    if profile is None:
        return NEUTRAL_RISK_SCORE
    return blended_risk_score(profile.base_score, profile.claim_history, profile.stake_weight)


def validate_profile(profile: RiskProfile | None) -> str | None:
    if profile is None:
        return "profile"
    if not is_amount(profile.base_score) or profile.base_score > MAX_RISK_SCORE:
        return "base_score"
    for name in ("claim_history", "stake_weight", "duration_multiplier"):
        if not is_amount(getattr(profile, name)):
            return name
    return None


def guard_set_risk_profile(state: ProtocolState, params: ActionParams) -> Rejection | None:
    if not params.account:
        return ErrorKind.INVALID_PARAMETERS, "account"
    reason = validate_profile(params.profile)
    if reason is not None:
        return ErrorKind.INVALID_PARAMETERS, reason
    return None


def apply_set_risk_profile(state: ProtocolState, params: ActionParams) -> ProtocolState:
    assert params.profile is not None
    return replace(state, risk_profiles={**state.risk_profiles, params.account: params.profile})


def transfers_set_risk_profile(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return ()


def effect_set_risk_profile(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return Effect(
        event=Event.RISK_PROFILE_SET,
        account=params.account,
        risk_score=score(state, params.account),
    )
