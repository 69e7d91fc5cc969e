"""
Insurance engine: imperative shell around the functional core.

Each entry point:
- builds `ActionParams` with the explicit `caller` and `now` supplied by the host,
- runs the pure `core.step()` against the current state,
- applies the returned transfers through the ledger adapter as one batch
  (already-applied transfers are reversed if a later one fails),
- commits the new state only after every transfer succeeded.

A rejected operation raises `InsuranceError` and leaves both the engine state
and the ledger untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..core.auth import SINGLE_OWNER, Authorization
from ..core.config import ProtocolConfig
from ..core.engine import step_or_raise
from ..core.errors import ErrorKind, InsuranceError, InvariantViolation
from ..core.policies import is_active
from ..core.pricing import premium
from ..core.risk import score
from ..core.staking import accrued
from ..core.state import initial_state, state_to_dict
from ..core.types import (
    Account,
    Action,
    ActionParams,
    Claim,
    Effect,
    InsurancePolicy,
    PolicyTier,
    ProtocolState,
    RiskProfile,
    StakeAccount,
    Transfer,
    Verdict,
)
from ..state.state_root import compute_state_root
from .ledger import LedgerAdapter, LedgerTransferError

logger = logging.getLogger(__name__)


class InsuranceEngine:
    """Stateful facade over `core.step()` bound to one ledger adapter."""

    def __init__(
        self,
        ledger: LedgerAdapter,
        config: ProtocolConfig | None = None,
        *,
        state: ProtocolState | None = None,
        auth: Authorization = SINGLE_OWNER,
    ) -> None:
        if state is not None and config is not None:
            raise ValueError("pass either config or state, not both")
        self._ledger = ledger
        self._auth = auth
        self._state = state if state is not None else initial_state(config)

    @property
    def state(self) -> ProtocolState:
        return self._state

    @property
    def custody(self) -> Account:
        return self._state.custody

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _execute(self, params: ActionParams) -> Effect:
        try:
            result = step_or_raise(self._state, params, self._auth)
        except InvariantViolation as exc:
            logger.error("%s broke invariants: %s", params.action.value, ", ".join(exc.violations))
            raise
        except InsuranceError as exc:
            logger.warning("%s rejected for %s: %s", params.action.value, params.caller, exc)
            raise

        self._apply_transfers(params.action, result.transfers)

        assert result.state is not None and result.effect is not None
        self._state = result.state
        effect = result.effect
        logger.info(
            "%s by %s at %d: account=%s amount=%d reserve=%d stake_pool=%d reward_pool=%d",
            params.action.value, params.caller, params.now, effect.account or "-",
            effect.amount, effect.reserve_after, effect.stake_pool_after, effect.reward_pool_after,
        )
        return effect

    def _apply_transfers(self, action: Action, transfers: Sequence[Transfer]) -> None:
        done: list[Transfer] = []
        for t in transfers:
            try:
                self._ledger.transfer(t.sender, t.recipient, t.amount)
            except LedgerTransferError as exc:
                logger.warning("%s transfer %s -> %s of %d failed: %s", action.value, t.sender, t.recipient, t.amount, exc)
                self._rollback(action, done)
                raise InsuranceError(ErrorKind.FUNDS_INSUFFICIENT, str(exc)) from exc
            done.append(t)

    def _rollback(self, action: Action, done: Sequence[Transfer]) -> None:
        for t in reversed(done):
            try:
                self._ledger.transfer(t.recipient, t.sender, t.amount)
            except LedgerTransferError:
                logger.error(
                    "%s rollback of %s -> %s (%d) failed; ledger and pools diverge",
                    action.value, t.sender, t.recipient, t.amount,
                )
                raise

    # ------------------------------------------------------------------
    # Admin entry points
    # ------------------------------------------------------------------

    def register_tier(
        self,
        *,
        caller: Account,
        now: int,
        tier_id: int,
        name: str,
        coverage_multiplier: int,
        premium_discount_percent: int,
        min_stake: int,
    ) -> PolicyTier:
        self._execute(ActionParams(
            action=Action.REGISTER_TIER,
            caller=caller,
            now=now,
            tier_id=tier_id,
            name=name,
            coverage_multiplier=coverage_multiplier,
            premium_discount_percent=premium_discount_percent,
            min_stake=min_stake,
        ))
        return self._state.tiers[tier_id]

    def set_risk_profile(self, *, caller: Account, now: int, account: Account, profile: RiskProfile) -> int:
        """Record *profile* for *account*; returns the account's new risk score."""
        self._execute(ActionParams(
            action=Action.SET_RISK_PROFILE, caller=caller, now=now, account=account, profile=profile,
        ))
        return score(self._state, account)

    def update_parameters(self, *, caller: Account, now: int, base_premium: int, claim_ceiling: int) -> None:
        self._execute(ActionParams(
            action=Action.UPDATE_PARAMETERS,
            caller=caller,
            now=now,
            base_premium=base_premium,
            claim_ceiling=claim_ceiling,
        ))

    def transfer_ownership(self, *, caller: Account, now: int, new_owner: Account) -> None:
        self._execute(ActionParams(
            action=Action.TRANSFER_OWNERSHIP, caller=caller, now=now, new_owner=new_owner,
        ))

    def terminate_policy(self, *, caller: Account, now: int, account: Account) -> InsurancePolicy:
        self._execute(ActionParams(action=Action.TERMINATE_POLICY, caller=caller, now=now, account=account))
        return self._state.policies[account]

    # ------------------------------------------------------------------
    # Policies and claims
    # ------------------------------------------------------------------

    def purchase_policy(
        self,
        *,
        caller: Account,
        now: int,
        tier_id: int,
        coverage: int,
        stake_amount: int,
        duration: int,
    ) -> InsurancePolicy:
        self._execute(ActionParams(
            action=Action.PURCHASE_POLICY,
            caller=caller,
            now=now,
            tier_id=tier_id,
            coverage=coverage,
            stake_amount=stake_amount,
            duration=duration,
        ))
        return self._state.policies[caller]

    def expire_policy(self, *, caller: Account, now: int, account: Account) -> InsurancePolicy:
        self._execute(ActionParams(action=Action.EXPIRE_POLICY, caller=caller, now=now, account=account))
        return self._state.policies[account]

    def submit_claim(
        self,
        *,
        caller: Account,
        now: int,
        amount: int,
        evidence: str,
        category: int = 0,
    ) -> int:
        """File a claim against the caller's policy; returns the new claim id."""
        effect = self._execute(ActionParams(
            action=Action.SUBMIT_CLAIM,
            caller=caller,
            now=now,
            amount=amount,
            evidence=evidence,
            category=category,
        ))
        assert effect.claim_id is not None
        return effect.claim_id

    def adjudicate_claim(
        self,
        *,
        caller: Account,
        now: int,
        account: Account,
        claim_id: int,
        verdict: Verdict,
        payout: int = 0,
    ) -> Claim:
        self._execute(ActionParams(
            action=Action.ADJUDICATE_CLAIM,
            caller=caller,
            now=now,
            account=account,
            claim_id=claim_id,
            verdict=verdict,
            payout=payout,
        ))
        return self._state.claims[(account, claim_id)]

    # ------------------------------------------------------------------
    # Staking
    # ------------------------------------------------------------------

    def stake(self, *, caller: Account, now: int, amount: int) -> StakeAccount:
        self._execute(ActionParams(action=Action.STAKE, caller=caller, now=now, amount=amount))
        return self._state.stakes[caller]

    def unstake(self, *, caller: Account, now: int, amount: int) -> StakeAccount:
        self._execute(ActionParams(action=Action.UNSTAKE, caller=caller, now=now, amount=amount))
        return self._state.stakes[caller]

    def claim_rewards(self, *, caller: Account, now: int) -> int:
        """Pay out accrued staking rewards; returns the amount paid."""
        effect = self._execute(ActionParams(action=Action.CLAIM_REWARDS, caller=caller, now=now))
        return effect.amount

    def fund_rewards(self, *, caller: Account, now: int, amount: int) -> int:
        """Move *amount* into the reward pool; returns the new pool size."""
        effect = self._execute(ActionParams(action=Action.FUND_REWARDS, caller=caller, now=now, amount=amount))
        return effect.reward_pool_after

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    def get_tier(self, tier_id: int) -> PolicyTier:
        tier = self._state.tiers.get(tier_id)
        if tier is None:
            raise InsuranceError(ErrorKind.INVALID_PARAMETERS, f"unknown tier {tier_id}")
        return tier

    def get_policy(self, account: Account) -> InsurancePolicy | None:
        return self._state.policies.get(account)

    def get_claim(self, account: Account, claim_id: int) -> Claim | None:
        return self._state.claims.get((account, claim_id))

    def get_risk_profile(self, account: Account) -> RiskProfile | None:
        return self._state.risk_profiles.get(account)

    def get_stake(self, account: Account) -> StakeAccount | None:
        return self._state.stakes.get(account)

    def risk_score(self, account: Account) -> int:
        return score(self._state, account)

    def compute_premium(self, tier_id: int, coverage: int, risk_score: int) -> int:
        return premium(self._state, tier_id, coverage, risk_score)

    def is_active(self, account: Account, now: int) -> bool:
        return is_active(self._state, account, now)

    def pending_rewards(self, account: Account, now: int) -> int:
        return accrued(self._state, account, now)

    def pools_total(self) -> int:
        """Sum of the accounting pools; equals custody's ledger balance when reconciled."""
        s = self._state
        return s.reserve_pool + s.stake_pool + s.reward_pool

    def snapshot(self) -> dict[str, Any]:
        return state_to_dict(self._state)

    def state_root(self) -> str:
        return compute_state_root(self._state)
