"""Error kinds and exception types for the insurepool engine.

``step()`` reports a rejection as ``StepResult.rejection`` (an ``ErrorKind``);
``step_or_raise()`` and the ``InsuranceEngine`` entry points raise
``InsuranceError`` for callers that prefer exceptions.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class ErrorKind(Enum):
    UNAUTHORIZED = "Unauthorized"
    NO_POLICY_EXISTS = "NoPolicyExists"
    FUNDS_INSUFFICIENT = "FundsInsufficient"
    INVALID_PARAMETERS = "InvalidParameters"
    POLICY_TERMINATED = "PolicyTerminated"
    DUPLICATE_CLAIM = "DuplicateClaim"
    INVALID_CLAIM_DATA = "InvalidClaimData"
    STAKE_TOO_LOW = "StakeTooLow"
    COOLDOWN_ACTIVE = "CooldownActive"
    RISK_SCORE_HIGH = "RiskScoreHigh"
    MAX_COVERAGE_EXCEEDED = "MaxCoverageExceeded"


# (kind, detail) pair returned by guards.
Rejection = tuple[ErrorKind, str]


class InsuranceError(Exception):
    """Raised when an operation is rejected. State is left untouched."""

    def __init__(self, kind: ErrorKind, detail: str | None = None) -> None:
        self.kind = kind
        self.detail = detail
        msg = kind.value if not detail else f"{kind.value}: {detail}"
        super().__init__(msg)


class ArithmeticOverflow(ValueError):
    """Raised when an intermediate value leaves the u128 amount domain."""


class InvariantViolation(Exception):
    """Raised when a post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
