"""Invariant checkers for the insurepool engine.

Each function returns True when the invariant holds, and `check_all()` returns
the list of violated invariant IDs (empty = all pass). The engine runs
`check_all()` on every post-state before accepting a step.

Ledger reconciliation (custody balance == sum of pools) needs the host ledger and
is checked by the shell, not here.
"""

from __future__ import annotations

from typing import Callable

from .math import MAX_AMOUNT, MAX_RISK_SCORE, PERCENT_SCALE
from .types import PolicyStatus, ProtocolState, Verdict


def inv_pools_in_domain(s: ProtocolState) -> bool:
    return all(0 <= v <= MAX_AMOUNT for v in (s.reserve_pool, s.stake_pool, s.reward_pool))


def inv_stake_pool_reconciled(s: ProtocolState) -> bool:
    held_by_policies = sum(
        p.stake_amount for p in s.policies.values() if p.status is PolicyStatus.ACTIVE
    )
    held_by_stakers = sum(a.amount for a in s.stakes.values())
    return s.stake_pool == held_by_policies + held_by_stakers


def inv_expiry_after_start(s: ProtocolState) -> bool:
    return all(p.expiry_time >= p.start_time for p in s.policies.values())


def inv_policy_risk_bounded(s: ProtocolState) -> bool:
    return all(0 <= p.risk_score <= MAX_RISK_SCORE for p in s.policies.values())


def inv_claim_ids_below_counter(s: ProtocolState) -> bool:
    for account, claim_id in s.claims:
        policy = s.policies.get(account)
        if policy is None or not 0 <= claim_id < policy.claims_made:
            return False
    return True


def inv_payout_only_if_approved(s: ProtocolState) -> bool:
    for claim in s.claims.values():
        if claim.payout_amount > 0 and claim.verdict is not Verdict.APPROVED:
            return False
        if claim.payout_amount > claim.amount_requested:
            return False
    return True


def inv_active_claims_counts_pending(s: ProtocolState) -> bool:
    pending = sum(1 for c in s.claims.values() if c.verdict is Verdict.PENDING)
    return s.active_claims == pending


def inv_total_policies_covers_map(s: ProtocolState) -> bool:
    return s.total_policies >= len(s.policies)


def inv_tiers_well_formed(s: ProtocolState) -> bool:
    return all(
        t.coverage_multiplier >= 1
        and 0 <= t.premium_discount_percent <= PERCENT_SCALE
        and t.min_stake >= 0
        for t in s.tiers.values()
    )


def inv_stakes_nonneg(s: ProtocolState) -> bool:
    return all(a.amount >= 0 and a.rewards_accrued >= 0 for a in s.stakes.values())


# ---------------------------------------------------------------------------
# Registry + check_all
# ---------------------------------------------------------------------------

INVARIANT_REGISTRY: dict[str, Callable[[ProtocolState], bool]] = {
    "inv_pools_in_domain": inv_pools_in_domain,
    "inv_stake_pool_reconciled": inv_stake_pool_reconciled,
    "inv_expiry_after_start": inv_expiry_after_start,
    "inv_policy_risk_bounded": inv_policy_risk_bounded,
    "inv_claim_ids_below_counter": inv_claim_ids_below_counter,
    "inv_payout_only_if_approved": inv_payout_only_if_approved,
    "inv_active_claims_counts_pending": inv_active_claims_counts_pending,
    "inv_total_policies_covers_map": inv_total_policies_covers_map,
    "inv_tiers_well_formed": inv_tiers_well_formed,
    "inv_stakes_nonneg": inv_stakes_nonneg,
}


def check_all(state: ProtocolState) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(state)
    ]
