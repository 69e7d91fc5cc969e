"""`insurepool.core`: pure-Python functional core of the insurance engine.

- deterministic, integer-only transitions,
- immutable state (frozen dataclasses),
- fail-closed guards and invariant checks,
- fund movements returned as data (`Transfer`), never executed here.

Public API:
- `initial_state(config) -> ProtocolState`
- `step(state, params, auth) -> StepResult`
- `step_or_raise(state, params, auth) -> StepResult` (raises on rejection)
"""

from .auth import SINGLE_OWNER, Authorization, SingleOwnerAuthorization
from .config import ProtocolConfig, default_config, load_config
from .engine import step, step_or_raise
from .errors import ErrorKind, InsuranceError, InvariantViolation
from .pricing import premium
from .risk import score
from .state import initial_state, state_from_dict, state_to_dict
from .types import (
    Action,
    ActionParams,
    Claim,
    Effect,
    Event,
    InsurancePolicy,
    PolicyStatus,
    PolicyTier,
    ProtocolState,
    RiskProfile,
    StakeAccount,
    StepResult,
    Transfer,
    Verdict,
)

__all__ = [
    "step",
    "step_or_raise",
    "initial_state",
    "state_from_dict",
    "state_to_dict",
    "premium",
    "score",
    "ProtocolConfig",
    "default_config",
    "load_config",
    "Authorization",
    "SingleOwnerAuthorization",
    "SINGLE_OWNER",
    "ErrorKind",
    "InsuranceError",
    "InvariantViolation",
    "Action",
    "ActionParams",
    "Claim",
    "Effect",
    "Event",
    "InsurancePolicy",
    "PolicyStatus",
    "PolicyTier",
    "ProtocolState",
    "RiskProfile",
    "StakeAccount",
    "StepResult",
    "Transfer",
    "Verdict",
]
