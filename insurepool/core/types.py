"""Data types for the insurepool engine.

All types are frozen dataclasses (immutable). The engine never mutates a state
in place; every accepted step returns a new `ProtocolState`.

Units/conventions:
- amounts are non-negative integer ledger units (u128 domain, see `math.MAX_AMOUNT`),
- times are integer ticks of the host's monotonic clock (block height),
- `*_percent` values are whole percents in [0, 100],
- accounts are opaque strings supplied by the host.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Mapping

from .errors import ErrorKind

Account = str
ClaimKey = tuple[Account, int]


@unique
class PolicyStatus(Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


@unique
class Verdict(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@unique
class Action(Enum):
    """One member per engine entry point that can change state."""
    REGISTER_TIER = "register_tier"
    SET_RISK_PROFILE = "set_risk_profile"
    PURCHASE_POLICY = "purchase_policy"
    EXPIRE_POLICY = "expire_policy"
    TERMINATE_POLICY = "terminate_policy"
    SUBMIT_CLAIM = "submit_claim"
    ADJUDICATE_CLAIM = "adjudicate_claim"
    STAKE = "stake"
    UNSTAKE = "unstake"
    CLAIM_REWARDS = "claim_rewards"
    FUND_REWARDS = "fund_rewards"
    UPDATE_PARAMETERS = "update_parameters"
    TRANSFER_OWNERSHIP = "transfer_ownership"


@unique
class Event(Enum):
    """One member per effect event type."""
    TIER_REGISTERED = "TierRegistered"
    RISK_PROFILE_SET = "RiskProfileSet"
    POLICY_PURCHASED = "PolicyPurchased"
    POLICY_EXPIRED = "PolicyExpired"
    POLICY_TERMINATED = "PolicyTerminated"
    CLAIM_SUBMITTED = "ClaimSubmitted"
    CLAIM_ADJUDICATED = "ClaimAdjudicated"
    STAKED = "Staked"
    UNSTAKED = "Unstaked"
    REWARDS_CLAIMED = "RewardsClaimed"
    REWARDS_FUNDED = "RewardsFunded"
    PARAMETERS_UPDATED = "ParametersUpdated"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"


@dataclass(frozen=True)
class PolicyTier:
    name: str
    coverage_multiplier: int
    premium_discount_percent: int
    min_stake: int


@dataclass(frozen=True)
class RiskProfile:
    base_score: int = 0
    claim_history: int = 0
    stake_weight: int = 0
    duration_multiplier: int = 1


@dataclass(frozen=True)
class InsurancePolicy:
    tier_id: int
    premium_paid: int
    coverage_limit: int
    stake_amount: int
    start_time: int
    expiry_time: int
    risk_score: int
    claims_made: int = 0
    status: PolicyStatus = PolicyStatus.ACTIVE
    last_claim_time: int = 0


@dataclass(frozen=True)
class Claim:
    amount_requested: int
    evidence_reference: str       # 0x-prefixed 32-byte hash
    timestamp: int
    assessor: Account
    verdict: Verdict = Verdict.PENDING
    payout_amount: int = 0
    category: int = 0


@dataclass(frozen=True)
class StakeAccount:
    amount: int = 0
    rewards_accrued: int = 0
    lock_until: int = 0
    last_reward_time: int = 0


@dataclass(frozen=True)
class ProtocolState:
    """Complete engine state: the singleton protocol record plus the keyed maps.

    Maps are treated as immutable: updates build a new dict and `replace()` the
    field, so a rejected step can never leak a partial write.
    """

    owner: Account
    custody: Account

    # Pools (accounting counters reconciled against custody's ledger balance)
    reserve_pool: int = 0
    stake_pool: int = 0
    reward_pool: int = 0

    # Admin parameters
    base_premium: int = 0
    claim_ceiling: int = 100_000_000

    # Protocol constants (tunable at construction only)
    risk_threshold: int = 75
    cooldown_period: int = 144
    lock_period: int = 2160
    reward_rate: int = 100
    min_stake: int = 1_000_000

    # Counters
    total_policies: int = 0
    active_claims: int = 0

    # Keyed maps
    tiers: Mapping[int, PolicyTier] = field(default_factory=dict)
    risk_profiles: Mapping[Account, RiskProfile] = field(default_factory=dict)
    policies: Mapping[Account, InsurancePolicy] = field(default_factory=dict)
    claims: Mapping[ClaimKey, Claim] = field(default_factory=dict)
    stakes: Mapping[Account, StakeAccount] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionParams:
    """Parameters for an action. Unused fields keep their defaults.

    `caller` and `now` are supplied by the host for every action.
    """

    action: Action
    caller: Account = ""
    now: int = 0
    account: Account = ""                 # subject account (adjudicate/expire/terminate/profile)
    amount: int = 0                       # submit_claim / stake / unstake / fund_rewards
    # register_tier
    tier_id: int = 0
    name: str = ""
    coverage_multiplier: int = 0
    premium_discount_percent: int = 0
    min_stake: int = 0
    # set_risk_profile
    profile: RiskProfile | None = None
    # purchase_policy
    coverage: int = 0
    stake_amount: int = 0
    duration: int = 0
    # submit_claim
    evidence: str = ""
    category: int = 0
    # adjudicate_claim
    claim_id: int = 0
    verdict: Verdict = Verdict.PENDING
    payout: int = 0
    # update_parameters
    base_premium: int = 0
    claim_ceiling: int = 0
    # transfer_ownership
    new_owner: Account = ""


@dataclass(frozen=True)
class Transfer:
    """One ledger movement the host must apply for an accepted step."""

    sender: Account
    recipient: Account
    amount: int


@dataclass(frozen=True)
class Effect:
    """Post-state observables emitted after a successful step."""

    event: Event
    account: Account = ""
    amount: int = 0
    claim_id: int | None = None
    premium: int = 0
    risk_score: int | None = None
    reserve_after: int = 0
    stake_pool_after: int = 0
    reward_pool_after: int = 0


@dataclass(frozen=True)
class StepResult:
    """Result of a single engine step."""

    accepted: bool
    state: ProtocolState | None = None
    effect: Effect | None = None
    transfers: tuple[Transfer, ...] = ()
    rejection: ErrorKind | None = None
    detail: str | None = None
