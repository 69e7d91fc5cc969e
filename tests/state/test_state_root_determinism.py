from __future__ import annotations

from dataclasses import replace

import pytest

from insurepool.core import PolicyTier, initial_state
from insurepool.state.balances import BalanceTable
from insurepool.state.canonical import canonical_json_bytes, domain_sep_bytes
from insurepool.state.state_root import compute_state_root


def test_state_root_is_stable() -> None:
    s = initial_state()
    assert compute_state_root(s) == compute_state_root(initial_state())
    assert compute_state_root(s).startswith("0x")
    assert len(compute_state_root(s)) == 66


def test_state_root_independent_of_map_insertion_order() -> None:
    a = PolicyTier("A", 1, 0, 0)
    b = PolicyTier("B", 2, 0, 0)
    s1 = replace(initial_state(), tiers={1: a, 2: b})
    s2 = replace(initial_state(), tiers={2: b, 1: a})
    assert compute_state_root(s1) == compute_state_root(s2)


def test_state_root_changes_with_state() -> None:
    s = initial_state()
    assert compute_state_root(s) != compute_state_root(replace(s, reward_pool=1))


def test_state_root_rejects_non_state() -> None:
    with pytest.raises(TypeError):
        compute_state_root({"reserve_pool": 0})  # type: ignore[arg-type]


def test_canonical_json_rejects_floats() -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes({"x": 1.0})


def test_canonical_json_sorted_and_compact() -> None:
    assert canonical_json_bytes({"b": 1, "a": [2, 3]}) == b'{"a":[2,3],"b":1}'


def test_domain_sep_bytes() -> None:
    assert domain_sep_bytes("state_root", version=1) == b"insurepool:state_root:v1\x00"
    with pytest.raises(ValueError):
        domain_sep_bytes("x", version=0)


def test_balance_table_sparse_and_bounded() -> None:
    t = BalanceTable()
    t.add("a", 5)
    t.subtract("a", 5)
    assert t.get_all_balances() == {}
    with pytest.raises(ValueError):
        t.subtract("a", 1)
    with pytest.raises(ValueError):
        t.set("a", 2**128)
