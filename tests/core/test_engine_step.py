"""Tests for insurepool/core/engine.py: dispatch table + step function."""

from dataclasses import replace

import pytest

from insurepool.core import (
    Action,
    ActionParams,
    ErrorKind,
    InsuranceError,
    InvariantViolation,
    initial_state,
    step,
    step_or_raise,
)
from insurepool.core.engine import _DISPATCH
from insurepool.core.math import MAX_AMOUNT

ALICE = "alice"


def _purchase_params(**kwargs):
    base = dict(
        action=Action.PURCHASE_POLICY,
        caller=ALICE,
        now=100,
        tier_id=1,
        coverage=10_000_000,
        stake_amount=1_000_000,
        duration=1000,
    )
    base.update(kwargs)
    return ActionParams(**base)


class TestDispatch:
    def test_every_action_dispatched(self):
        assert set(_DISPATCH) == set(Action)


class TestCommonValidation:
    def test_empty_caller(self):
        r = step(initial_state(), _purchase_params(caller=""))
        assert r.rejection == ErrorKind.INVALID_PARAMETERS
        assert r.detail == "caller"

    def test_negative_now(self):
        r = step(initial_state(), _purchase_params(now=-1))
        assert r.rejection == ErrorKind.INVALID_PARAMETERS
        assert r.detail == "now"

    def test_bool_now(self):
        r = step(initial_state(), _purchase_params(now=True))
        assert r.rejection == ErrorKind.INVALID_PARAMETERS


class TestStep:
    def test_input_not_mutated(self):
        s = initial_state()
        r = step(s, _purchase_params())
        assert r.accepted
        assert s.policies == {}
        assert s.reserve_pool == 0

    def test_rejection_has_no_state(self):
        r = step(initial_state(), _purchase_params(tier_id=9))
        assert not r.accepted
        assert r.state is None
        assert r.effect is None
        assert r.transfers == ()

    def test_deterministic(self):
        s = initial_state()
        assert step(s, _purchase_params()) == step(s, _purchase_params())

    def test_expiry_overflow_rejected(self):
        r = step(initial_state(), _purchase_params(now=MAX_AMOUNT, duration=1))
        assert r.rejection == ErrorKind.INVALID_PARAMETERS

    def test_pool_overflow_rejected(self):
        s = replace(initial_state(), reserve_pool=MAX_AMOUNT)
        r = step(s, _purchase_params())
        assert not r.accepted
        assert r.rejection == ErrorKind.INVALID_PARAMETERS

    def test_invariant_failure_reported(self):
        # A state whose active_claims counter disagrees with the claim map.
        s = replace(initial_state(), active_claims=3)
        r = step(s, _purchase_params())
        assert not r.accepted
        assert r.rejection is None
        assert r.detail == "invariant:inv_active_claims_counts_pending"


class TestStepOrRaise:
    def test_accepted(self):
        r = step_or_raise(initial_state(), _purchase_params())
        assert r.accepted

    def test_raises_guard(self):
        with pytest.raises(InsuranceError) as exc:
            step_or_raise(initial_state(), _purchase_params(stake_amount=1))
        assert exc.value.kind == ErrorKind.STAKE_TOO_LOW

    def test_raises_invariant(self):
        s = replace(initial_state(), active_claims=3)
        with pytest.raises(InvariantViolation) as exc:
            step_or_raise(s, _purchase_params())
        assert exc.value.violations == ["inv_active_claims_counts_pending"]
