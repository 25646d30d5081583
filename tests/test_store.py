from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from srm_mapping.store import MappingStore  # noqa: E402
from srm_mapping.validation import MappingInvariantError, ValidationError  # noqa: E402


def _store() -> MappingStore:
    return MappingStore(["x1", "x2", "x3"], {"c1": "x1", "c2": "", "r1": "x3"})


def _assert_partition(store: MappingStore) -> None:
    pool = set(store.assignable_pool())
    assigned = store.assigned_ids()
    assert pool.isdisjoint(assigned)
    assert pool | assigned == set(store.external_ids)


def test_pool_excludes_assigned_ids_in_catalog_order() -> None:
    store = _store()
    assert store.assignable_pool() == ["x2"]
    _assert_partition(store)


def test_assign_then_clear_empties_value() -> None:
    store = _store()
    store.assign("c2", "x2")
    store.clear("c2")
    assert store.value_of("c2") == ""
    assert store.assignable_pool() == ["x2"]
    _assert_partition(store)


def test_reassign_returns_previous_id_to_pool() -> None:
    store = _store()
    store.clear("r1")
    store.assign("c2", "x2")
    store.assign("c2", "x3")
    pool = store.assignable_pool()
    assert "x2" in pool
    assert "x3" not in pool
    _assert_partition(store)


def test_restore_default_is_idempotent() -> None:
    store = _store()
    store.clear("c1")
    assert store.can_restore("c1")
    store.restore_default("c1")
    assert store.value_of("c1") == "x1"
    snapshot = store.mapping
    store.restore_default("c1")
    assert store.mapping == snapshot
    assert not store.can_restore("c1")


def test_clear_and_restore_predicates() -> None:
    store = _store()
    assert store.can_clear("c1")
    assert not store.can_clear("c2")
    assert store.is_default("c2")
    store.assign("c2", "x2")
    assert store.can_restore("c2")


def test_assign_does_not_reject_duplicates() -> None:
    store = _store()
    store.assign("c2", "x1")
    assert store.value_of("c1") == "x1"
    assert store.value_of("c2") == "x1"


def test_unknown_key_is_an_invariant_violation() -> None:
    store = _store()
    with pytest.raises(MappingInvariantError):
        store.assign("nope", "x2")
    with pytest.raises(MappingInvariantError):
        store.restore_default("nope")


def test_removed_external_id_stays_assigned_but_leaves_pool() -> None:
    store = _store()
    store.set_external_ids(["x2", "x4"])
    assert store.value_of("c1") == "x1"
    assert store.assignable_pool() == ["x2", "x4"]
    store.assign("c2", "x4")
    assert store.assignable_pool() == ["x2"]


def test_reset_adopts_new_initial_mapping() -> None:
    store = _store()
    store.assign("c2", "x2")
    store.reset({"c1": "", "c2": "x1"})
    assert store.mapping == {"c1": "", "c2": "x1"}
    assert store.initial_mapping == {"c1": "", "c2": "x1"}
    assert store.assignable_pool() == ["x2", "x3"]


def test_owner_of() -> None:
    store = _store()
    assert store.owner_of("x3") == "r1"
    assert store.owner_of("x2") is None
    assert store.owner_of("") is None


def test_mapping_property_is_a_copy() -> None:
    store = _store()
    snapshot = store.mapping
    snapshot["c1"] = "changed"
    assert store.value_of("c1") == "x1"


def test_reset_rejects_duplicate_values() -> None:
    store = _store()
    with pytest.raises(ValidationError):
        store.reset({"c1": "x1", "c2": "x1", "r1": ""})
    assert store.mapping == {"c1": "x1", "c2": "", "r1": "x3"}


def test_set_external_ids_rejects_empty_id() -> None:
    store = _store()
    with pytest.raises(ValidationError):
        store.set_external_ids(["x2", ""])
    assert store.external_ids == ("x1", "x2", "x3")
