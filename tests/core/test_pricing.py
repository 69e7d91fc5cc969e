"""Tests for insurepool/core/pricing.py: premium quotes against the tier catalog."""

import pytest

from insurepool.core import ErrorKind, InsuranceError, initial_state, premium
from insurepool.core.math import MAX_AMOUNT


class TestPremium:
    def test_basic_tier_neutral_risk(self):
        assert premium(initial_state(), 1, 10_000_000, 50) == 15_000_000

    def test_premium_tier_discount(self):
        # 10_000_000 * 150 * 90 // 10000
        assert premium(initial_state(), 2, 10_000_000, 50) == 13_500_000

    def test_elite_tier_discount(self):
        # 10_000_000 * 100 * 80 // 10000
        assert premium(initial_state(), 3, 10_000_000, 0) == 8_000_000

    def test_zero_coverage_is_zero(self):
        assert premium(initial_state(), 1, 0, 100) == 0

    def test_unknown_tier(self):
        with pytest.raises(InsuranceError) as exc:
            premium(initial_state(), 99, 10_000, 50)
        assert exc.value.kind == ErrorKind.INVALID_PARAMETERS

    def test_risk_out_of_range(self):
        with pytest.raises(InsuranceError) as exc:
            premium(initial_state(), 1, 10_000, 101)
        assert exc.value.kind == ErrorKind.INVALID_PARAMETERS

    def test_negative_coverage(self):
        with pytest.raises(InsuranceError):
            premium(initial_state(), 1, -1, 50)

    def test_overflow_reported_as_invalid_parameters(self):
        with pytest.raises(InsuranceError) as exc:
            premium(initial_state(), 1, MAX_AMOUNT, 50)
        assert exc.value.kind == ErrorKind.INVALID_PARAMETERS

    @pytest.mark.parametrize("risk", [0, 25, 50, 75, 99])
    def test_non_decreasing_in_risk(self, risk):
        s = initial_state()
        assert premium(s, 1, 1_000_000, risk) <= premium(s, 1, 1_000_000, risk + 1)
