"""Premium calculator: pure function of tier, coverage and risk score."""

from __future__ import annotations

from .errors import ArithmeticOverflow, ErrorKind, InsuranceError
from .math import MAX_RISK_SCORE, is_amount, premium_amount
from .tiers import get_tier
from .types import ProtocolState


def premium(state: ProtocolState, tier_id: int, coverage: int, risk_score: int) -> int:
    """Premium for *coverage* under tier *tier_id* at *risk_score*.

    ``coverage * (100 + risk_score) * (100 - discount) // 10000``

    Raises:
        InsuranceError(INVALID_PARAMETERS): unknown tier, coverage outside the
            amount domain, risk score outside [0, 100], or overflow.
    """
    tier = get_tier(state, tier_id)
    if tier is None:
        raise InsuranceError(ErrorKind.INVALID_PARAMETERS, f"unknown tier {tier_id}")
    if not is_amount(coverage):
        raise InsuranceError(ErrorKind.INVALID_PARAMETERS, "coverage")
    if not isinstance(risk_score, int) or not 0 <= risk_score <= MAX_RISK_SCORE:
        raise InsuranceError(ErrorKind.INVALID_PARAMETERS, "risk_score")
    try:
        return premium_amount(coverage, risk_score, tier.premium_discount_percent)
    except (ArithmeticOverflow, ValueError) as exc:
        raise InsuranceError(ErrorKind.INVALID_PARAMETERS, str(exc)) from exc
