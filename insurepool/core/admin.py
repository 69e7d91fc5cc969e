"""Protocol admin: owner-gated parameter updates and ownership transfer.

Authorization itself is checked by the engine through `auth.Authorization`
before these guards run; the guards here only validate values.
"""

from __future__ import annotations

from dataclasses import replace

from .errors import ErrorKind, Rejection
from .math import is_amount
from .types import ActionParams, Effect, Event, ProtocolState, Transfer


def guard_update_parameters(state: ProtocolState, params: ActionParams) -> Rejection | None:
    if not is_amount(params.base_premium):
        return ErrorKind.INVALID_PARAMETERS, "base_premium"
    if not is_amount(params.claim_ceiling) or params.claim_ceiling == 0:
        return ErrorKind.INVALID_PARAMETERS, "claim_ceiling"
    return None


def apply_update_parameters(state: ProtocolState, params: ActionParams) -> ProtocolState:
    return replace(state, base_premium=params.base_premium, claim_ceiling=params.claim_ceiling)


def transfers_update_parameters(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return ()


def effect_update_parameters(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return Effect(event=Event.PARAMETERS_UPDATED, amount=state.claim_ceiling)


def guard_transfer_ownership(state: ProtocolState, params: ActionParams) -> Rejection | None:
    if not isinstance(params.new_owner, str) or not params.new_owner:
        return ErrorKind.INVALID_PARAMETERS, "new_owner"
    if params.new_owner == state.custody:
        return ErrorKind.INVALID_PARAMETERS, "new_owner is custody"
    return None


def apply_transfer_ownership(state: ProtocolState, params: ActionParams) -> ProtocolState:
    return replace(state, owner=params.new_owner)


def transfers_transfer_ownership(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> tuple[Transfer, ...]:
    return ()


def effect_transfer_ownership(pre: ProtocolState, state: ProtocolState, params: ActionParams) -> Effect:
    return Effect(event=Event.OWNERSHIP_TRANSFERRED, account=state.owner)
