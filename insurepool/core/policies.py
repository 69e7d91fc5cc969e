"""Policy manager: purchase, activity checks and expiry.

Lifecycle per account: no-policy -> ACTIVE -> (EXPIRED | TERMINATED).
Expiry is derived from time (`is_active`); `expire_policy` is the optional
housekeeping write that also releases the policy stake back to the holder.

A new purchase is allowed only when the account has no live policy. A policy
that is still ACTIVE but past its expiry is closed in the same step (its stake
is released). The claim counter carries over so `(account, claim_id)` keys
stay unique across successive policies.
"""

from __future__ import annotations

from dataclasses import replace

from .errors import ErrorKind, InsuranceError, Rejection
from .math import checked_add, checked_sub, coverage_cap, is_amount
from .pricing import premium
from .risk import score
from .tiers import get_tier
from .types import (
    Account,
    ActionParams,
    Effect,
    Event,
    InsurancePolicy,
    PolicyStatus,
    ProtocolState,
    Transfer,
)


def is_active(state: ProtocolState, account: Account, now: int) -> bool:
    """True iff a policy exists, is ACTIVE, and ``now <= expiry_time``."""
    policy = state.policies.get(account)
    if policy is None:
        return False
    return policy.status is PolicyStatus.ACTIVE and now <= policy.expiry_time


def holds_stake(policy: InsurancePolicy | None) -> bool:
    """An ACTIVE policy (live or lapsed) still has its stake in custody."""
    return policy is not None and policy.status is PolicyStatus.ACTIVE


# -- purchase_policy ---------------------------------------------------------

def quote(state: ProtocolState, account: Account, tier_id: int, coverage: int) -> tuple[int, int]:
    """Return ``(risk_score, premium)`` for a prospective purchase."""
    risk = score(state, account)
    return risk, premium(state, tier_id, coverage, risk)


def guard_purchase_policy(state: ProtocolState, params: ActionParams) -> Rejection | None:
    if not params.caller or params.caller == state.custody:
        return ErrorKind.INVALID_PARAMETERS, "caller"
    if not is_amount(params.coverage) or params.coverage == 0:
        return ErrorKind.INVALID_PARAMETERS, "coverage"
    if not is_amount(params.stake_amount):
        return ErrorKind.INVALID_PARAMETERS, "stake_amount"
    if not is_amount(params.duration) or params.duration == 0:
        return ErrorKind.INVALID_PARAMETERS, "duration"
    if not is_amount(params.now + params.duration):
        return ErrorKind.INVALID_PARAMETERS, "expiry_time"

    try:
        risk, _ = quote(state, params.caller, params.tier_id, params.coverage)
    except InsuranceError as exc:
        return exc.kind, exc.detail or ""

    if is_active(state, params.caller, params.now):
        return ErrorKind.INVALID_PARAMETERS, "policy_active"

    tier = get_tier(state, params.tier_id)
    assert tier is not None
    if risk > state.risk_threshold:
        return ErrorKind.RISK_SCORE_HIGH, f"risk_score={risk}"
    if params.stake_amount < tier.min_stake:
        return ErrorKind.STAKE_TOO_LOW, f"min_stake={tier.min_stake}"
    if params.coverage > coverage_cap(state.claim_ceiling, tier.coverage_multiplier):
        return ErrorKind.MAX_COVERAGE_EXCEEDED, "coverage"
    return None


def apply_purchase_policy(state: ProtocolState, params: ActionParams) -> ProtocolState:
    risk, amount = quote(state, params.caller, params.tier_id, params.coverage)
    prior = state.policies.get(params.caller)

    stake_pool = state.stake_pool
    if holds_stake(prior):
        assert prior is not None
        stake_pool = checked_sub(stake_pool, prior.stake_amount)

    policy = InsurancePolicy(
        tier_id=params.tier_id,
        premium_paid=amount,
        coverage_limit=params.coverage,
        stake_amount=params.stake_amount,
        start_time=params.now,
        expiry_time=params.now + params.duration,
        risk_score=risk,
        claims_made=prior.claims_made if prior is not None else 0,
        status=PolicyStatus.ACTIVE,
        last_claim_time=prior.last_claim_time if prior is not None else 0,
    )
    return replace(
        state,
        reserve_pool=checked_add(state.reserve_pool, amount),
        stake_pool=checked_add(stake_pool, params.stake_amount),
        total_policies=state.total_policies + 1,
        policies={**state.policies, params.caller: policy},
    )


def transfers_purchase_policy(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    amount = state.policies[params.caller].premium_paid
    out: list[Transfer] = []
    if amount > 0:
        out.append(Transfer(params.caller, state.custody, amount))
    if params.stake_amount > 0:
        out.append(Transfer(params.caller, state.custody, params.stake_amount))
    prior = pre.policies.get(params.caller)
    if holds_stake(prior) and prior is not None and prior.stake_amount > 0:
        out.append(Transfer(state.custody, params.caller, prior.stake_amount))
    return tuple(out)


def effect_purchase_policy(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    policy = state.policies[params.caller]
    return Effect(
        event=Event.POLICY_PURCHASED,
        account=params.caller,
        amount=policy.coverage_limit,
        premium=policy.premium_paid,
        risk_score=policy.risk_score,
        reserve_after=state.reserve_pool,
        stake_pool_after=state.stake_pool,
        reward_pool_after=state.reward_pool,
    )


# -- expire_policy / terminate_policy ----------------------------------------

def _release(state: ProtocolState, account: Account, status: PolicyStatus) -> ProtocolState:
    policy = state.policies[account]
    return replace(
        state,
        stake_pool=checked_sub(state.stake_pool, policy.stake_amount),
        policies={**state.policies, account: replace(policy, status=status)},
    )


def _release_transfers(state: ProtocolState, account: Account) -> tuple[Transfer, ...]:
    policy = state.policies[account]
    if policy.stake_amount == 0:
        return ()
    return (Transfer(state.custody, account, policy.stake_amount),)


def _release_effect(state: ProtocolState, account: Account, event: Event) -> Effect:
    return Effect(
        event=event,
        account=account,
        amount=state.policies[account].stake_amount,
        reserve_after=state.reserve_pool,
        stake_pool_after=state.stake_pool,
        reward_pool_after=state.reward_pool,
    )


def guard_expire_policy(state: ProtocolState, params: ActionParams) -> Rejection | None:
    policy = state.policies.get(params.account)
    if policy is None:
        return ErrorKind.NO_POLICY_EXISTS, params.account
    if policy.status is not PolicyStatus.ACTIVE:
        return ErrorKind.POLICY_TERMINATED, policy.status.value
    if params.now <= policy.expiry_time:
        return ErrorKind.COOLDOWN_ACTIVE, f"expiry_time={policy.expiry_time}"
    return None


def apply_expire_policy(state: ProtocolState, params: ActionParams) -> ProtocolState:
    return _release(state, params.account, PolicyStatus.EXPIRED)


def transfers_expire_policy(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return _release_transfers(state, params.account)


def effect_expire_policy(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return _release_effect(state, params.account, Event.POLICY_EXPIRED)


def guard_terminate_policy(state: ProtocolState, params: ActionParams) -> Rejection | None:
    policy = state.policies.get(params.account)
    if policy is None:
        return ErrorKind.NO_POLICY_EXISTS, params.account
    if policy.status is not PolicyStatus.ACTIVE:
        return ErrorKind.POLICY_TERMINATED, policy.status.value
    return None


def apply_terminate_policy(state: ProtocolState, params: ActionParams) -> ProtocolState:
    return _release(state, params.account, PolicyStatus.TERMINATED)


def transfers_terminate_policy(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return _release_transfers(state, params.account)


def effect_terminate_policy(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return _release_effect(state, params.account, Event.POLICY_TERMINATED)
