"""Claims processor: submission and one-shot adjudication.

Per-claim states: PENDING -> (APPROVED | REJECTED), both terminal. A second
adjudication of the same claim is rejected with DUPLICATE_CLAIM so a claim can
never be paid twice. Approved payouts are bounded by the reserve pool.
"""

from __future__ import annotations

from dataclasses import replace

from ..state.canonical import canonical_hex_fixed_allow_0x
from .errors import ErrorKind, Rejection
from .math import checked_sub, is_amount
from .policies import is_active
from .types import ActionParams, Claim, Effect, Event, ProtocolState, Transfer, Verdict

EVIDENCE_BYTES: int = 32
MAX_CATEGORY: int = 255


def normalize_evidence(evidence: str) -> str | None:
    """Canonical 0x-prefixed lowercase hex for a 32-byte evidence hash, or None."""
    try:
        return canonical_hex_fixed_allow_0x(evidence, nbytes=EVIDENCE_BYTES, name="evidence")
    except (TypeError, ValueError):
        return None


# -- submit_claim ------------------------------------------------------------

def guard_submit_claim(state: ProtocolState, params: ActionParams) -> Rejection | None:
    policy = state.policies.get(params.caller)
    if policy is None:
        return ErrorKind.NO_POLICY_EXISTS, params.caller
    if not is_active(state, params.caller, params.now):
        return ErrorKind.POLICY_TERMINATED, policy.status.value
    if not is_amount(params.amount) or params.amount == 0:
        return ErrorKind.INVALID_PARAMETERS, "amount"
    if params.amount > policy.coverage_limit:
        return ErrorKind.INVALID_PARAMETERS, f"coverage_limit={policy.coverage_limit}"
    if normalize_evidence(params.evidence) is None:
        return ErrorKind.INVALID_PARAMETERS, "evidence"
    if not is_amount(params.category) or params.category > MAX_CATEGORY:
        return ErrorKind.INVALID_PARAMETERS, "category"
    # The first claim on a policy line has no predecessor to cool down from.
    if policy.claims_made > 0 and params.now - policy.last_claim_time <= state.cooldown_period:
        return ErrorKind.COOLDOWN_ACTIVE, f"last_claim_time={policy.last_claim_time}"
    return None


def apply_submit_claim(state: ProtocolState, params: ActionParams) -> ProtocolState:
    policy = state.policies[params.caller]
    claim_id = policy.claims_made
    evidence = normalize_evidence(params.evidence)
    assert evidence is not None
    claim = Claim(
        amount_requested=params.amount,
        evidence_reference=evidence,
        timestamp=params.now,
        assessor=state.owner,
        verdict=Verdict.PENDING,
        payout_amount=0,
        category=params.category,
    )
    return replace(
        state,
        active_claims=state.active_claims + 1,
        policies={
            **state.policies,
            params.caller: replace(policy, claims_made=claim_id + 1, last_claim_time=params.now),
        },
        claims={**state.claims, (params.caller, claim_id): claim},
    )


def transfers_submit_claim(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return ()


def effect_submit_claim(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    claim_id = state.policies[params.caller].claims_made - 1
    return Effect(
        event=Event.CLAIM_SUBMITTED,
        account=params.caller,
        amount=params.amount,
        claim_id=claim_id,
        reserve_after=state.reserve_pool,
        stake_pool_after=state.stake_pool,
        reward_pool_after=state.reward_pool,
    )


# -- adjudicate_claim --------------------------------------------------------

def guard_adjudicate_claim(state: ProtocolState, params: ActionParams) -> Rejection | None:
    claim = state.claims.get((params.account, params.claim_id))
    if claim is None:
        return ErrorKind.INVALID_CLAIM_DATA, f"claim {params.account}/{params.claim_id}"
    if params.account not in state.policies:
        return ErrorKind.NO_POLICY_EXISTS, params.account
    if claim.verdict is not Verdict.PENDING:
        return ErrorKind.DUPLICATE_CLAIM, claim.verdict.value
    if not isinstance(params.verdict, Verdict) or params.verdict is Verdict.PENDING:
        return ErrorKind.INVALID_PARAMETERS, "verdict"
    if not is_amount(params.payout):
        return ErrorKind.INVALID_PARAMETERS, "payout"
    if params.verdict is Verdict.REJECTED:
        if params.payout != 0:
            return ErrorKind.INVALID_PARAMETERS, "payout on rejection"
        return None
    if params.payout == 0 or params.payout > claim.amount_requested:
        return ErrorKind.INVALID_PARAMETERS, f"amount_requested={claim.amount_requested}"
    if params.payout > state.reserve_pool:
        return ErrorKind.FUNDS_INSUFFICIENT, f"reserve_pool={state.reserve_pool}"
    return None


def _payout(params: ActionParams) -> int:
    return params.payout if params.verdict is Verdict.APPROVED else 0


def apply_adjudicate_claim(state: ProtocolState, params: ActionParams) -> ProtocolState:
    key = (params.account, params.claim_id)
    payout = _payout(params)
    claim = replace(
        state.claims[key],
        verdict=params.verdict,
        payout_amount=payout,
        assessor=params.caller,
    )
    return replace(
        state,
        reserve_pool=checked_sub(state.reserve_pool, payout),
        active_claims=checked_sub(state.active_claims, 1),
        claims={**state.claims, key: claim},
    )


def transfers_adjudicate_claim(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    payout = _payout(params)
    if payout == 0:
        return ()
    return (Transfer(state.custody, params.account, payout),)


def effect_adjudicate_claim(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return Effect(
        event=Event.CLAIM_ADJUDICATED,
        account=params.account,
        amount=_payout(params),
        claim_id=params.claim_id,
        reserve_after=state.reserve_pool,
        stake_pool_after=state.stake_pool,
        reward_pool_after=state.reward_pool,
    )
