"""Staking engine: time-locked stakes earning linear rewards.

Rewards accrue as ``elapsed * staked * reward_rate // 100000`` and are paid
only from `reward_pool`, a counter that must be pre-funded via `fund_rewards`.
Whenever the staked amount changes, accrual up to ``now`` is folded into
`rewards_accrued` so that nothing earned is lost on a reset.
"""

from __future__ import annotations

from dataclasses import replace

from .errors import ErrorKind, Rejection
from .math import checked_add, checked_sub, is_amount, pending_rewards
from .types import Account, ActionParams, Effect, Event, ProtocolState, StakeAccount, Transfer


def accrued(state: ProtocolState, account: Account, now: int) -> int:
    """Rewards claimable by *account* at *now* (0 when no stake account)."""
    acct = state.stakes.get(account)
    if acct is None:
        return 0
    return pending_rewards(acct.rewards_accrued, acct.last_reward_time, now, acct.amount, state.reward_rate)


def _pools_effect(state: ProtocolState, event: Event, account: Account, amount: int) -> Effect:
    return Effect(
        event=event,
        account=account,
        amount=amount,
        reserve_after=state.reserve_pool,
        stake_pool_after=state.stake_pool,
        reward_pool_after=state.reward_pool,
    )


# -- stake -------------------------------------------------------------------

def guard_stake(state: ProtocolState, params: ActionParams) -> Rejection | None:
    if not params.caller or params.caller == state.custody:
        return ErrorKind.INVALID_PARAMETERS, "caller"
    if not is_amount(params.amount):
        return ErrorKind.INVALID_PARAMETERS, "amount"
    if params.amount < state.min_stake:
        return ErrorKind.STAKE_TOO_LOW, f"min_stake={state.min_stake}"
    return None


def apply_stake(state: ProtocolState, params: ActionParams) -> ProtocolState:
    acct = state.stakes.get(params.caller, StakeAccount())
    new_acct = StakeAccount(
        amount=checked_add(acct.amount, params.amount),
        rewards_accrued=accrued(state, params.caller, params.now),
        lock_until=checked_add(params.now, state.lock_period),
        last_reward_time=params.now,
    )
    return replace(
        state,
        stake_pool=checked_add(state.stake_pool, params.amount),
        stakes={**state.stakes, params.caller: new_acct},
    )


def transfers_stake(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return (Transfer(params.caller, state.custody, params.amount),)


def effect_stake(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return _pools_effect(state, Event.STAKED, params.caller, params.amount)


# -- claim_rewards -----------------------------------------------------------

def guard_claim_rewards(state: ProtocolState, params: ActionParams) -> Rejection | None:
    acct = state.stakes.get(params.caller)
    if acct is None:
        return ErrorKind.UNAUTHORIZED, "no stake account"
    if params.now < acct.lock_until:
        return ErrorKind.COOLDOWN_ACTIVE, f"lock_until={acct.lock_until}"
    rewards = accrued(state, params.caller, params.now)
    if rewards > state.reward_pool:
        return ErrorKind.FUNDS_INSUFFICIENT, f"reward_pool={state.reward_pool}"
    return None


def apply_claim_rewards(state: ProtocolState, params: ActionParams) -> ProtocolState:
    acct = state.stakes[params.caller]
    rewards = accrued(state, params.caller, params.now)
    return replace(
        state,
        reward_pool=checked_sub(state.reward_pool, rewards),
        stakes={
            **state.stakes,
            params.caller: replace(acct, rewards_accrued=0, last_reward_time=params.now),
        },
    )


def transfers_claim_rewards(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    rewards = pre.reward_pool - state.reward_pool
    if rewards == 0:
        return ()
    return (Transfer(state.custody, params.caller, rewards),)


def effect_claim_rewards(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return _pools_effect(state, Event.REWARDS_CLAIMED, params.caller, pre.reward_pool - state.reward_pool)


# -- unstake -----------------------------------------------------------------

def guard_unstake(state: ProtocolState, params: ActionParams) -> Rejection | None:
    acct = state.stakes.get(params.caller)
    if acct is None:
        return ErrorKind.UNAUTHORIZED, "no stake account"
    if params.now < acct.lock_until:
        return ErrorKind.COOLDOWN_ACTIVE, f"lock_until={acct.lock_until}"
    if not is_amount(params.amount) or params.amount == 0 or params.amount > acct.amount:
        return ErrorKind.INVALID_PARAMETERS, f"staked={acct.amount}"
    return None


def apply_unstake(state: ProtocolState, params: ActionParams) -> ProtocolState:
    acct = state.stakes[params.caller]
    new_acct = replace(
        acct,
        amount=acct.amount - params.amount,
        rewards_accrued=accrued(state, params.caller, params.now),
        last_reward_time=params.now,
    )
    return replace(
        state,
        stake_pool=checked_sub(state.stake_pool, params.amount),
        stakes={**state.stakes, params.caller: new_acct},
    )


def transfers_unstake(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return (Transfer(state.custody, params.caller, params.amount),)


def effect_unstake(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return _pools_effect(state, Event.UNSTAKED, params.caller, params.amount)


# -- fund_rewards ------------------------------------------------------------

def guard_fund_rewards(state: ProtocolState, params: ActionParams) -> Rejection | None:
    if not params.caller or params.caller == state.custody:
        return ErrorKind.INVALID_PARAMETERS, "caller"
    if not is_amount(params.amount) or params.amount == 0:
        return ErrorKind.INVALID_PARAMETERS, "amount"
    return None


def apply_fund_rewards(state: ProtocolState, params: ActionParams) -> ProtocolState:
    return replace(state, reward_pool=checked_add(state.reward_pool, params.amount))


def transfers_fund_rewards(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return (Transfer(params.caller, state.custody, params.amount),)


def effect_fund_rewards(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return _pools_effect(state, Event.REWARDS_FUNDED, params.caller, params.amount)
