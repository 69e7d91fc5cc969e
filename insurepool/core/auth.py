"""Authorization capability for owner-gated actions.

Guards never compare callers against the owner directly; they ask the
`Authorization` passed to `step()`. The default is a single owner with
immediate, single-step ownership transfer.
"""

from __future__ import annotations

from typing import Protocol

from .types import Account, Action, ProtocolState

ADMIN_ACTIONS: frozenset[Action] = frozenset({
    Action.REGISTER_TIER,
    Action.SET_RISK_PROFILE,
    Action.TERMINATE_POLICY,
    Action.ADJUDICATE_CLAIM,
    Action.UPDATE_PARAMETERS,
    Action.TRANSFER_OWNERSHIP,
})


class Authorization(Protocol):
    def allows(self, state: ProtocolState, caller: Account, action: Action) -> bool:
        ...


class SingleOwnerAuthorization:
    """Admin actions require ``caller == state.owner`` exactly; others are open."""

    def allows(self, state: ProtocolState, caller: Account, action: Action) -> bool:
        if action not in ADMIN_ACTIONS:
            return True
        return bool(caller) and caller == state.owner

    def __repr__(self) -> str:
        return "SingleOwnerAuthorization()"


SINGLE_OWNER = SingleOwnerAuthorization()
