"""
Deterministic state root hashing (v1).

This is intended for:
- debugging / audit (stable hashes for the same logical state),
- checking that a rejected operation left the state untouched,
- hosts that persist or replicate state and need a commitment to compare.

The root is a domain-separated sha256 over the canonical JSON encoding of the
persisted layout (`core.state.state_to_dict`), so it is independent of map
insertion order.
"""

from __future__ import annotations

from ..core.state import state_to_dict
from ..core.types import ProtocolState
from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex


STATE_ROOT_VERSION = 1


def compute_state_root(state: ProtocolState) -> str:
    """
    Compute a deterministic state root hash for the engine state.

    Returns a 0x-prefixed sha256 digest.
    """
    if not isinstance(state, ProtocolState):
        raise TypeError("state must be a ProtocolState")
    payload = domain_sep_bytes("state_root", version=STATE_ROOT_VERSION) + canonical_json_bytes(
        state_to_dict(state)
    )
    return sha256_hex(payload)
