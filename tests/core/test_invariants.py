"""Invariant tests: registry unit checks plus Hypothesis-fuzzed action sequences.

Every accepted step must leave a state satisfying `check_all()`, and every
rejected step must leave the input state as it was.
"""

from __future__ import annotations

import importlib.util
from dataclasses import replace

import pytest

from insurepool.core import (
    Action,
    ActionParams,
    Claim,
    PolicyStatus,
    RiskProfile,
    StakeAccount,
    Verdict,
    initial_state,
    step,
)
from insurepool.core.invariants import INVARIANT_REGISTRY, check_all
from insurepool.core.types import InsurancePolicy

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

OWNER = "insurepool:owner"
ACCOUNTS = ["alice", "bob", "carol"]
EVIDENCE = "0x" + "11" * 32


def _policy(**kwargs):
    base = dict(
        tier_id=1,
        premium_paid=15,
        coverage_limit=10,
        stake_amount=0,
        start_time=0,
        expiry_time=10,
        risk_score=50,
    )
    base.update(kwargs)
    return InsurancePolicy(**base)


# ---------------------------------------------------------------------------
# Unit checks
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_initial_state_clean(self):
        assert check_all(initial_state()) == []

    def test_registry_names(self):
        assert all(name.startswith("inv_") for name in INVARIANT_REGISTRY)

    def test_stake_pool_mismatch(self):
        s = replace(initial_state(), stake_pool=1)
        assert "inv_stake_pool_reconciled" in check_all(s)

    def test_stake_pool_counts_active_policies_and_stakers(self):
        s = replace(
            initial_state(),
            stake_pool=30,
            policies={
                "a": _policy(stake_amount=10),
                "b": _policy(stake_amount=99, status=PolicyStatus.EXPIRED),
            },
            total_policies=2,
            stakes={"c": StakeAccount(amount=20)},
        )
        assert check_all(s) == []

    def test_expiry_before_start(self):
        s = replace(initial_state(), policies={"a": _policy(start_time=5, expiry_time=4)}, total_policies=1)
        assert "inv_expiry_after_start" in check_all(s)

    def test_claim_id_beyond_counter(self):
        claim = Claim(amount_requested=1, evidence_reference=EVIDENCE, timestamp=0, assessor=OWNER)
        s = replace(
            initial_state(),
            policies={"a": _policy(claims_made=0)},
            total_policies=1,
            claims={("a", 0): claim},
            active_claims=1,
        )
        assert check_all(s) == ["inv_claim_ids_below_counter"]

    def test_payout_without_approval(self):
        claim = Claim(
            amount_requested=5, evidence_reference=EVIDENCE, timestamp=0, assessor=OWNER,
            verdict=Verdict.REJECTED, payout_amount=1,
        )
        s = replace(
            initial_state(),
            policies={"a": _policy(claims_made=1)},
            total_policies=1,
            claims={("a", 0): claim},
        )
        assert "inv_payout_only_if_approved" in check_all(s)

    def test_total_policies_below_map(self):
        s = replace(initial_state(), policies={"a": _policy()})
        assert "inv_total_policies_covers_map" in check_all(s)


# ---------------------------------------------------------------------------
# Hypothesis: random action sequences
# ---------------------------------------------------------------------------

_amounts = st.integers(min_value=0, max_value=50_000_000)

_action_params = st.one_of(
    st.builds(
        lambda caller, tier_id, coverage, stake, duration: dict(
            action=Action.PURCHASE_POLICY, caller=caller, tier_id=tier_id,
            coverage=coverage, stake_amount=stake, duration=duration,
        ),
        st.sampled_from(ACCOUNTS), st.integers(0, 4), _amounts, _amounts, st.integers(0, 3000),
    ),
    st.builds(
        lambda caller, amount: dict(action=Action.SUBMIT_CLAIM, caller=caller, amount=amount, evidence=EVIDENCE),
        st.sampled_from(ACCOUNTS), _amounts,
    ),
    st.builds(
        lambda account, claim_id, verdict, payout: dict(
            action=Action.ADJUDICATE_CLAIM, caller=OWNER, account=account,
            claim_id=claim_id, verdict=verdict, payout=payout,
        ),
        st.sampled_from(ACCOUNTS), st.integers(0, 3), st.sampled_from(list(Verdict)), _amounts,
    ),
    st.builds(
        lambda action, caller, amount: dict(action=action, caller=caller, amount=amount),
        st.sampled_from([Action.STAKE, Action.UNSTAKE, Action.CLAIM_REWARDS, Action.FUND_REWARDS]),
        st.sampled_from(ACCOUNTS), _amounts,
    ),
    st.builds(
        lambda action, account: dict(action=action, caller=OWNER, account=account),
        st.sampled_from([Action.EXPIRE_POLICY, Action.TERMINATE_POLICY]), st.sampled_from(ACCOUNTS),
    ),
    st.builds(
        lambda account, base, claims: dict(
            action=Action.SET_RISK_PROFILE, caller=OWNER, account=account,
            profile=RiskProfile(base_score=base, claim_history=claims),
        ),
        st.sampled_from(ACCOUNTS), st.integers(0, 100), st.integers(0, 200),
    ),
)


@settings(max_examples=200, deadline=None)
@given(
    ops=st.lists(st.tuples(_action_params, st.integers(min_value=0, max_value=500)), min_size=1, max_size=25),
)
def test_invariants_hold_under_random_sequences(ops):
    state = initial_state()
    now = 0
    for kwargs, dt in ops:
        now += dt
        r = step(state, ActionParams(now=now, **kwargs))
        if r.accepted:
            assert check_all(r.state) == []
            state = r.state
        else:
            assert r.rejection is not None, r.detail
            assert r.state is None


@settings(max_examples=100, deadline=None)
@given(
    coverage=st.integers(min_value=1, max_value=100_000_000),
    stake=st.integers(min_value=1_000_000, max_value=10**9),
    duration=st.integers(min_value=1, max_value=10**6),
)
def test_purchase_conserves_pools_against_transfers(coverage, stake, duration):
    s = initial_state()
    r = step(
        s,
        ActionParams(
            action=Action.PURCHASE_POLICY, caller="alice", now=0,
            tier_id=1, coverage=coverage, stake_amount=stake, duration=duration,
        ),
    )
    assert r.accepted
    inflow = sum(t.amount for t in r.transfers if t.recipient == s.custody)
    outflow = sum(t.amount for t in r.transfers if t.sender == s.custody)
    pools_before = s.reserve_pool + s.stake_pool + s.reward_pool
    pools_after = r.state.reserve_pool + r.state.stake_pool + r.state.reward_pool
    assert pools_after - pools_before == inflow - outflow
