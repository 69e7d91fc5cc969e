"""Dispatch-table engine for insurepool.

``step(state, params)`` is the single entry point. It:

1. Validates the parameters shared by every action (caller, clock).
2. Checks authorization for owner-gated actions.
3. Dispatches to the action's guard / update / transfer / effect functions.
4. Checks all invariants on the post-state.
5. Returns a ``StepResult`` (accepted, or rejected with an ``ErrorKind``).

``step`` never mutates its input and never moves funds: an accepted result
carries the ``Transfer`` list the host must apply atomically before it commits
``result.state``.
"""

from __future__ import annotations

from typing import Callable

from . import admin, claims, policies, risk, staking, tiers
from .auth import SINGLE_OWNER, Authorization
from .errors import ArithmeticOverflow, ErrorKind, InsuranceError, InvariantViolation, Rejection
from .invariants import check_all
from .math import is_amount
from .types import Action, ActionParams, Effect, ProtocolState, StepResult, Transfer

GuardFn = Callable[[ProtocolState, ActionParams], "Rejection | None"]
UpdateFn = Callable[[ProtocolState, ActionParams], ProtocolState]
TransferFn = Callable[[ProtocolState, ProtocolState, ActionParams], "tuple[Transfer, ...]"]
EffectFn = Callable[[ProtocolState, ProtocolState, ActionParams], Effect]

_DISPATCH: dict[Action, tuple[GuardFn, UpdateFn, TransferFn, EffectFn]] = {
    Action.REGISTER_TIER: (
        tiers.guard_register_tier, tiers.apply_register_tier,
        tiers.transfers_register_tier, tiers.effect_register_tier,
    ),
    Action.SET_RISK_PROFILE: (
        risk.guard_set_risk_profile, risk.apply_set_risk_profile,
        risk.transfers_set_risk_profile, risk.effect_set_risk_profile,
    ),
    Action.PURCHASE_POLICY: (
        policies.guard_purchase_policy, policies.apply_purchase_policy,
        policies.transfers_purchase_policy, policies.effect_purchase_policy,
    ),
    Action.EXPIRE_POLICY: (
        policies.guard_expire_policy, policies.apply_expire_policy,
        policies.transfers_expire_policy, policies.effect_expire_policy,
    ),
    Action.TERMINATE_POLICY: (
        policies.guard_terminate_policy, policies.apply_terminate_policy,
        policies.transfers_terminate_policy, policies.effect_terminate_policy,
    ),
    Action.SUBMIT_CLAIM: (
        claims.guard_submit_claim, claims.apply_submit_claim,
        claims.transfers_submit_claim, claims.effect_submit_claim,
    ),
    Action.ADJUDICATE_CLAIM: (
        claims.guard_adjudicate_claim, claims.apply_adjudicate_claim,
        claims.transfers_adjudicate_claim, claims.effect_adjudicate_claim,
    ),
    Action.STAKE: (
        staking.guard_stake, staking.apply_stake,
        staking.transfers_stake, staking.effect_stake,
    ),
    Action.UNSTAKE: (
        staking.guard_unstake, staking.apply_unstake,
        staking.transfers_unstake, staking.effect_unstake,
    ),
    Action.CLAIM_REWARDS: (
        staking.guard_claim_rewards, staking.apply_claim_rewards,
        staking.transfers_claim_rewards, staking.effect_claim_rewards,
    ),
    Action.FUND_REWARDS: (
        staking.guard_fund_rewards, staking.apply_fund_rewards,
        staking.transfers_fund_rewards, staking.effect_fund_rewards,
    ),
    Action.UPDATE_PARAMETERS: (
        admin.guard_update_parameters, admin.apply_update_parameters,
        admin.transfers_update_parameters, admin.effect_update_parameters,
    ),
    Action.TRANSFER_OWNERSHIP: (
        admin.guard_transfer_ownership, admin.apply_transfer_ownership,
        admin.transfers_transfer_ownership, admin.effect_transfer_ownership,
    ),
}

_INVARIANT_PREFIX = "invariant:"


def _reject(kind: ErrorKind, detail: str | None = None) -> StepResult:
    return StepResult(accepted=False, rejection=kind, detail=detail)


def _validate_common(params: ActionParams) -> Rejection | None:
    if not isinstance(params.caller, str) or not params.caller:
        return ErrorKind.INVALID_PARAMETERS, "caller"
    if not is_amount(params.now):
        return ErrorKind.INVALID_PARAMETERS, "now"
    return None


def step(
    state: ProtocolState,
    params: ActionParams,
    auth: Authorization = SINGLE_OWNER,
) -> StepResult:
    """Execute one action against the given state.

    Returns ``StepResult`` with ``accepted=True`` on success, or
    ``accepted=False`` with a ``rejection`` kind. Invariant failures are
    reported with ``rejection=None`` and ``detail="invariant:<ids>"``.
    """
    entry = _DISPATCH.get(params.action)
    if entry is None:
        return _reject(ErrorKind.INVALID_PARAMETERS, f"unknown_action:{params.action}")

    common = _validate_common(params)
    if common is not None:
        return _reject(*common)

    if not auth.allows(state, params.caller, params.action):
        return _reject(ErrorKind.UNAUTHORIZED, params.action.value)

    guard_fn, update_fn, transfer_fn, effect_fn = entry

    try:
        rejection = guard_fn(state, params)
        if rejection is not None:
            return _reject(*rejection)
        new_state = update_fn(state, params)
        transfers = transfer_fn(state, new_state, params)
        effect = effect_fn(state, new_state, params)
    except ArithmeticOverflow as exc:
        return _reject(ErrorKind.INVALID_PARAMETERS, str(exc))

    violations = check_all(new_state)
    if violations:
        return StepResult(accepted=False, detail=_INVARIANT_PREFIX + ",".join(violations))

    return StepResult(accepted=True, state=new_state, effect=effect, transfers=transfers)


def step_or_raise(
    state: ProtocolState,
    params: ActionParams,
    auth: Authorization = SINGLE_OWNER,
) -> StepResult:
    """Like ``step()`` but raises on rejection instead of returning a result.

    Raises:
        InsuranceError: A precondition failed (carries the ``ErrorKind``).
        InvariantViolation: Post-state violates one or more invariants.
    """
    result = step(state, params, auth)
    if result.accepted:
        return result

    if result.rejection is None:
        detail = result.detail or ""
        raise InvariantViolation(detail.removeprefix(_INVARIANT_PREFIX).split(","))
    raise InsuranceError(result.rejection, result.detail)
