"""Pure arithmetic for the insurepool engine.

Every function is stateless and operates on plain Python ints. Amounts live in
the u128 domain: each multiplication and addition is checked against
`MAX_AMOUNT` before the next step, so results match a fixed-width host exactly.
Division truncates (`//` on non-negative operands).
"""

from __future__ import annotations

from .errors import ArithmeticOverflow

MAX_AMOUNT: int = 2**128 - 1
PERCENT_SCALE: int = 100
PREMIUM_SCALE: int = 10_000          # PERCENT_SCALE * PERCENT_SCALE
REWARD_SCALE: int = 100_000
MAX_RISK_SCORE: int = 100
NEUTRAL_RISK_SCORE: int = 50

# Risk blend weights: claim history dominates, base score is the prior.
W_BASE: int = 2
W_CLAIMS: int = 3
W_STAKE: int = 1
W_TOTAL: int = W_BASE + W_CLAIMS + W_STAKE


# -- Checked helpers ---------------------------------------------------------

def checked_add(a: int, b: int) -> int:
    r = a + b
    if r < 0 or r > MAX_AMOUNT:
        raise ArithmeticOverflow(f"add overflow: {a} + {b}")
    return r


def checked_sub(a: int, b: int) -> int:
    r = a - b
    if r < 0:
        raise ArithmeticOverflow(f"sub underflow: {a} - {b}")
    return r


def checked_mul(a: int, b: int) -> int:
    if a < 0 or b < 0:
        raise ArithmeticOverflow(f"negative operand: {a} * {b}")
    r = a * b
    if r > MAX_AMOUNT:
        raise ArithmeticOverflow(f"mul overflow: {a} * {b}")
    return r


def is_amount(v: object) -> bool:
    """True for a plain int in [0, MAX_AMOUNT] (bools rejected)."""
    return isinstance(v, int) and not isinstance(v, bool) and 0 <= v <= MAX_AMOUNT


# -- Risk --------------------------------------------------------------------

def clamp_score(score: int) -> int:
    if score < 0:
        return 0
    if score > MAX_RISK_SCORE:
        return MAX_RISK_SCORE
    return score


def blended_risk_score(base_score: int, claim_history: int, stake_weight: int) -> int:
    """``(2*base + 3*claims + 1*stake) // 6`` clamped to [0, 100].

    The weighted sum is not range-checked: inputs up to ``MAX_AMOUNT`` clamp to 100.
    """
    total = W_BASE * base_score + W_CLAIMS * claim_history + W_STAKE * stake_weight
    return clamp_score(total // W_TOTAL)


# -- Premium -----------------------------------------------------------------

def premium_amount(coverage: int, risk_score: int, discount_percent: int) -> int:
    """``coverage * (100 + risk) * (100 - discount) // 10000``.

    Raises ArithmeticOverflow when an intermediate product leaves the u128
    domain, ValueError when risk or discount is outside [0, 100].
    """
    if not 0 <= risk_score <= MAX_RISK_SCORE:
        raise ValueError(f"risk_score out of range: {risk_score}")
    if not 0 <= discount_percent <= PERCENT_SCALE:
        raise ValueError(f"discount out of range: {discount_percent}")
    loaded = checked_mul(coverage, PERCENT_SCALE + risk_score)
    discounted = checked_mul(loaded, PERCENT_SCALE - discount_percent)
    return discounted // PREMIUM_SCALE


def coverage_cap(claim_ceiling: int, coverage_multiplier: int) -> int:
    """Largest coverage a tier may sell: ``claim_ceiling * multiplier``."""
    return checked_mul(claim_ceiling, coverage_multiplier)


# -- Staking -----------------------------------------------------------------

def reward_amount(elapsed: int, staked: int, reward_rate: int) -> int:
    """``elapsed * staked * rate // 100000``."""
    if elapsed <= 0 or staked == 0:
        return 0
    return checked_mul(checked_mul(elapsed, staked), reward_rate) // REWARD_SCALE


def pending_rewards(accrued: int, last_reward_time: int, now: int, staked: int, reward_rate: int) -> int:
    """Accrued rewards plus accrual since ``last_reward_time``."""
    return checked_add(accrued, reward_amount(now - last_reward_time, staked, reward_rate))
