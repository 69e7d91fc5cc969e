"""Hypothesis action sequences driven through `InsuranceEngine` and `InMemoryLedger`.

After every operation, accepted or rejected, custody's ledger balance must
equal the sum of the accounting pools and the committed state must satisfy
`check_all()`. A rejected operation must leave the state and the ledger as
they were, including batches whose later transfer failed and were reversed.
"""

from __future__ import annotations

import importlib.util

import pytest

from insurepool.core import InsuranceError, Verdict
from insurepool.core.invariants import check_all
from insurepool.integration import InMemoryLedger, InsuranceEngine

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

OWNER = "insurepool:owner"
CUSTODY = "insurepool:custody"
ACCOUNTS = ["alice", "bob", "carol", "treasury"]
EVIDENCE = "0x" + "ab" * 32

_accounts = st.sampled_from(ACCOUNTS)

_ops = st.one_of(
    st.builds(
        lambda caller, tier_id, coverage, stake, duration: (
            "purchase_policy", caller,
            dict(tier_id=tier_id, coverage=coverage, stake_amount=stake, duration=duration),
        ),
        _accounts, st.integers(1, 3), st.integers(1, 20_000_000),
        st.integers(1_000_000, 6_000_000), st.integers(1, 3000),
    ),
    st.builds(
        lambda caller, amount: ("submit_claim", caller, dict(amount=amount, evidence=EVIDENCE)),
        _accounts, st.integers(1, 20_000_000),
    ),
    st.builds(
        lambda account, claim_id, payout: (
            "adjudicate_claim", OWNER,
            dict(account=account, claim_id=claim_id, verdict=Verdict.APPROVED, payout=payout),
        ),
        _accounts, st.integers(0, 3), st.integers(1, 20_000_000),
    ),
    st.builds(
        lambda account, claim_id: (
            "adjudicate_claim", OWNER,
            dict(account=account, claim_id=claim_id, verdict=Verdict.REJECTED, payout=0),
        ),
        _accounts, st.integers(0, 3),
    ),
    st.builds(
        lambda caller, amount: ("stake", caller, dict(amount=amount)),
        _accounts, st.integers(1, 10_000_000),
    ),
    st.builds(
        lambda caller, amount: ("unstake", caller, dict(amount=amount)),
        _accounts, st.integers(1, 10_000_000),
    ),
    st.builds(lambda caller: ("claim_rewards", caller, {}), _accounts),
    st.builds(
        lambda caller, amount: ("fund_rewards", caller, dict(amount=amount)),
        _accounts, st.integers(1, 10_000_000),
    ),
    st.builds(lambda account: ("expire_policy", OWNER, dict(account=account)), _accounts),
)


def _make_engine(balances: list[int]) -> tuple[InsuranceEngine, InMemoryLedger]:
    ledger = InMemoryLedger()
    for account, amount in zip(ACCOUNTS, balances):
        ledger.mint(account, amount)
    return InsuranceEngine(ledger), ledger


def _ledger_view(ledger: InMemoryLedger) -> dict[str, int]:
    return {a: ledger.balance_of(a) for a in [*ACCOUNTS, CUSTODY]}


@settings(max_examples=150, deadline=None)
@given(
    balances=st.lists(st.integers(0, 60_000_000), min_size=len(ACCOUNTS), max_size=len(ACCOUNTS)),
    ops=st.lists(st.tuples(_ops, st.integers(min_value=0, max_value=800)), min_size=1, max_size=30),
)
def test_custody_reconciles_after_every_operation(balances, ops):
    engine, ledger = _make_engine(balances)
    total_supply = sum(balances)
    now = 0
    for (method, caller, kwargs), dt in ops:
        now += dt
        before_state = engine.state
        before_ledger = _ledger_view(ledger)
        try:
            getattr(engine, method)(caller=caller, now=now, **kwargs)
        except InsuranceError:
            assert engine.state is before_state
            assert _ledger_view(ledger) == before_ledger

        assert ledger.balance_of(CUSTODY) == engine.pools_total()
        assert check_all(engine.state) == []
        assert sum(_ledger_view(ledger).values()) == total_supply


@settings(max_examples=50, deadline=None)
@given(
    coverage=st.integers(1, 20_000_000),
    shortfall=st.integers(1, 1_000_000),
)
def test_failed_stake_transfer_reverses_premium(coverage, shortfall):
    engine, ledger = _make_engine([0, 0, 0, 0])
    premium = engine.compute_premium(1, coverage, engine.risk_score("alice"))
    ledger.mint("alice", premium + 1_000_000 - shortfall)

    with pytest.raises(InsuranceError):
        engine.purchase_policy(
            caller="alice", now=10, tier_id=1, coverage=coverage, stake_amount=1_000_000, duration=100,
        )

    assert ledger.balance_of("alice") == premium + 1_000_000 - shortfall
    assert ledger.balance_of(CUSTODY) == 0
    assert engine.pools_total() == 0
    assert engine.get_policy("alice") is None
