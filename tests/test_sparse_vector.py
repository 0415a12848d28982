"""
Tests for the SparseVector engine.
"""

import copy
import math
import pickle
import random

import numpy as np
import pytest

from weightvec.config import VectorConfig, set_config
from weightvec.core.sparse_vector import INT64_MAX, SparseVector, dot_mappings
from weightvec.core.types import VectorSnapshot, WeightVector
from weightvec.errors import (
    InvariantViolation,
    PreconditionViolation,
    is_traversal_mutation,
)


class TestImplicitZero:
    """Absent keys read as zero and zeros are never stored."""

    def test_absent_key_reads_zero(self):
        v = SparseVector()
        assert v.get(12345) == 0.0
        assert v.get(-7) == 0.0
        assert v[INT64_MAX] == 0.0

    def test_put_zero_on_absent_key_is_noop(self):
        v = SparseVector()
        v.put(3, 0.0)
        assert len(v) == 0
        assert 3 not in v

    def test_put_zero_removes_present_key(self):
        v = SparseVector({5: 2.0, 6: 1.0})
        v.put(5, 0.0)
        assert v.get(5) == 0.0
        assert 5 not in v
        assert dict(v) == {6: 1.0}

    def test_increment_to_zero_removes(self):
        v = SparseVector()
        assert v.increment(7, 1.5) == 1.5
        assert v.increment(7, -1.5) == 0.0
        assert 7 not in v
        assert list(v) == []

    def test_increment_absent_by_zero_stores_nothing(self):
        v = SparseVector()
        assert v.increment(9, 0.0) == 0.0
        assert len(v) == 0

    def test_increment_returns_running_value(self):
        v = SparseVector()
        v.increment(1, 2.0)
        assert v.increment(1, 0.5) == 2.5
        assert v.get(1) == 2.5


class TestSlotZero:
    """A key stored in slot 0 must be distinguishable from an absent key."""

    def test_key_in_slot_zero_is_found(self):
        v = SparseVector()
        v.put(0, 1.0)
        v.put(42, 2.0)
        assert v.index_of(0) == 0
        assert v.get(0) == 1.0
        assert v.index_of(1) is None
        assert v.get(1) == 0.0

    def test_nonzero_key_in_slot_zero(self):
        v = SparseVector()
        v.put(99, 4.0)
        assert v.index_of(99) == 0
        assert 99 in v
        assert 0 not in v
        assert v.get(0) == 0.0

    def test_remove_moves_last_into_slot_zero(self):
        v = SparseVector()
        v.put(0, 1.0)
        v.put(42, 2.0)
        assert v.remove(0) is True
        assert v.index_of(42) == 0
        assert v.get(42) == 2.0
        assert 0 not in v
        assert v.remove(0) is False

    def test_diff_norm_counts_shared_slot_zero_key_once(self):
        a = SparseVector({0: 1.0})
        b = SparseVector({0: 1.0})
        assert a.diff_norm(b) == 0.0


class TestSwapDeleteDensity:
    """Random mutation sequences keep the arrays dense and consistent."""

    def test_random_operations_match_reference(self):
        r = random.Random(7)
        v = SparseVector()
        reference = {}

        for step in range(3000):
            key = r.randrange(200)
            op = r.random()
            if op < 0.4:
                value = r.uniform(-5, 5)
                v.put(key, value)
                reference[key] = value
            elif op < 0.75:
                delta = r.uniform(-5, 5)
                new_value = reference.get(key, 0.0) + delta
                assert v.increment(key, delta) == new_value
                reference[key] = new_value
            else:
                assert v.remove(key) == (key in reference)
                reference.pop(key, None)

            if step % 100 == 0:
                entries = list(v)
                keys = [k for k, _ in entries]
                assert len(entries) == v.count
                assert len(set(keys)) == len(keys)
                assert v.count <= v.capacity
                assert v.to_dict() == reference

        assert v.to_dict() == reference
        for i, key in enumerate(v.keys().tolist()):
            assert v.index_of(key) == i

    def test_remove_all(self):
        v = SparseVector({1: 1.0, 2: 2.0, 3: 3.0})
        assert v.remove_all([1, 3, 5]) is True
        assert v.to_dict() == {2: 2.0}
        assert v.remove_all([7, 8]) is False


class TestCapacity:
    """Growth and hysteresis shrink."""

    def test_growth_by_factor(self):
        v = SparseVector(capacity=4)
        for k in range(5):
            v.put(k, 1.0)
        assert v.capacity == 6

    def test_bulk_put_presizes_once(self):
        v = SparseVector(capacity=1)
        v.put_all({i: 1.0 for i in range(10)})
        assert v.capacity == 10
        assert len(v) == 10

    def test_shrink_after_removals(self):
        v = SparseVector(capacity=4)
        for k in range(100):
            v.put(k, 1.0)
        assert v.capacity == 141

        for k in range(37):
            v.remove(k)
        assert v.capacity == 141

        v.remove(37)
        assert v.count == 62
        assert v.capacity == 93

        # back inside the band: no immediate regrowth
        v.put(1000, 1.0)
        assert v.capacity == 93

    def test_resize_below_count_raises(self):
        v = SparseVector({1: 1.0, 2: 2.0, 3: 3.0})
        with pytest.raises(InvariantViolation) as exc_info:
            v.resize(2)
        assert isinstance(exc_info.value, RuntimeError)
        assert exc_info.value.operation == "resize"
        assert v.to_dict() == {1: 1.0, 2: 2.0, 3: 3.0}

    def test_compact_and_clear(self):
        v = SparseVector(capacity=50)
        v.put(1, 1.0)
        v.compact()
        assert v.capacity == 1
        v.clear()
        assert len(v) == 0
        assert v.capacity == 4
        v.put(2, 2.0)
        assert v.get(2) == 2.0

    def test_copy_keeps_initial_capacity_of_source(self):
        set_config(VectorConfig(initial_capacity=10))
        original = SparseVector({1: 1.0})
        set_config(VectorConfig())
        duplicate = original.copy()
        duplicate.clear()
        assert duplicate.capacity == 10
        original.clear()
        assert original.capacity == 10

    def test_growth_rate_below_minimum_rejected(self):
        with pytest.raises(PreconditionViolation):
            SparseVector(growth_rate=1.2)


class TestBulkOperations:

    def test_put_all_from_sparse_and_mapping(self):
        v = SparseVector({1: 1.0})
        v.put_all(SparseVector({2: 2.0, 1: 5.0}))
        v.put_all({3: 3.0, 2: 0.0})
        assert v.to_dict() == {1: 5.0, 3: 3.0}

    def test_increment_all_with_scale(self):
        v = SparseVector({1: 1.0, 2: 2.0})
        v.increment_all(SparseVector({1: 1.0, 3: 1.0}), scale=-1.0)
        assert v.to_dict() == {2: 2.0, 3: -1.0}
        v.increment_all({2: 1.0}, scale=2.0)
        assert v.get(2) == 4.0

    def test_construct_from_pairs(self):
        v = SparseVector([(1, 1.0), (2, 0.0), (3, 3.0)])
        assert v.to_dict() == {1: 1.0, 3: 3.0}


class TestLinearAlgebra:

    def test_norm(self):
        assert SparseVector({1: 3.0, 2: 4.0}).norm() == 5.0
        assert SparseVector().norm() == 0.0

    def test_diff_norm_counts_one_sided_keys(self):
        a = SparseVector({1: 1.0, 2: 2.0})
        b = SparseVector({2: 2.0, 3: 3.0})
        assert a.diff_norm(b) == pytest.approx(math.sqrt(10.0))
        assert b.diff_norm(a) == pytest.approx(math.sqrt(10.0))

    def test_scale_in_place(self):
        v = SparseVector({1: 1.0, 2: -2.0})
        assert v.scale_in_place(2.0) is v
        assert v.to_dict() == {1: 2.0, 2: -4.0}

    def test_scale_by_zero_drops_entries(self):
        v = SparseVector({1: 1.0, 2: -2.0})
        v.scale_in_place(0.0)
        assert len(v) == 0

    def test_normalize(self):
        v = SparseVector({1: 3.0, 2: 4.0})
        n = v.normalized()
        assert n.norm() == pytest.approx(1.0)
        assert v.get(1) == 3.0
        v.normalize_in_place()
        assert v.get(2) == pytest.approx(0.8)

    def test_normalize_zero_vector_is_noop(self):
        v = SparseVector()
        v.normalize_in_place()
        assert len(v) == 0

    def test_dot_product_dense(self):
        v = SparseVector({0: 2.0, 3: -1.0})
        dense = np.array([1.0, 5.0, 5.0, 4.0])
        assert v.dot_product(dense) == -2.0
        assert v.dot_product([1.0, 5.0, 5.0, 4.0]) == -2.0
        assert v.dot_product(np.array([])) == 0.0

    def test_dot_product_mapping(self):
        v = SparseVector({1: 2.0, 2: 3.0})
        assert v.dot_product({2: 2.0, 9: 100.0}) == 6.0
        assert v.dot_product({}) == 0.0

    def test_dot_product_symmetry(self):
        r = random.Random(11)
        a = SparseVector({r.randrange(1000): r.uniform(-1, 1) for _ in range(300)})
        b = SparseVector({r.randrange(1000): r.uniform(-1, 1) for _ in range(300)})
        assert a.dot_product(b) == pytest.approx(b.dot_product(a), abs=1e-12)
        expected = sum(value * b.get(key) for key, value in a.to_dict().items())
        assert a.dot_product(b) == pytest.approx(expected)

    def test_dot_mappings_iterates_smaller(self):
        small = {1: 2.0}
        large = {i: float(i) for i in range(100)}
        assert dot_mappings(small, large) == 2.0
        assert dot_mappings(large, small) == 2.0


class TestTraversal:

    def test_storage_order_after_removal(self):
        v = SparseVector()
        for k in (10, 20, 30, 40):
            v.put(k, float(k))
        v.remove(20)
        assert [k for k, _ in v] == [10, 40, 30]

    def test_reduce_and_for_each(self):
        v = SparseVector({1: 1.0, 2: 2.0, 3: 3.0})
        assert v.reduce(lambda acc, k, val: acc + k * val, 0.0) == 14.0
        seen = []
        v.for_each_entry(lambda k, val: seen.append((k, val)))
        assert sorted(seen) == [(1, 1.0), (2, 2.0), (3, 3.0)]

    def test_insert_during_reduce_raises(self):
        v = SparseVector({1: 1.0, 2: 2.0})

        def grow(acc, key, value):
            v.put(key + 100, value)
            return acc

        with pytest.raises(InvariantViolation) as exc_info:
            v.reduce(grow, None)
        assert is_traversal_mutation(exc_info.value)

    def test_remove_during_for_each_raises(self):
        v = SparseVector({1: 1.0, 2: 2.0, 3: 3.0})
        with pytest.raises(InvariantViolation):
            v.for_each_entry(lambda key, value: v.remove(key))

    def test_mutation_during_iteration_raises(self):
        v = SparseVector({1: 1.0, 2: 2.0, 3: 3.0})
        with pytest.raises(InvariantViolation):
            for key, value in v:
                v.increment(key, -value)

    def test_overwrite_during_fold_is_allowed(self):
        v = SparseVector({1: 1.0, 2: 2.0})
        v.for_each_entry(lambda key, value: v.put(key, value * 10))
        assert v.to_dict() == {1: 10.0, 2: 20.0}

    def test_map_keys_and_values(self):
        v = SparseVector({1: 1.0, 2: 2.0})
        shifted = v.map_keys(lambda k, val: k + 10)
        assert shifted.to_dict() == {11: 1.0, 12: 2.0}
        doubled = v.map_values(lambda k, val: val * 2)
        assert doubled.to_dict() == {1: 2.0, 2: 4.0}
        dropped = v.map_values(lambda k, val: 0.0 if k == 1 else val)
        assert dropped.to_dict() == {2: 2.0}


class TestSnapshotRoundTrip:

    @pytest.mark.parametrize("entries", [
        {},
        {0: 1.5},
        {0: -1.0, 7: 2.0, INT64_MAX: 3.0, -5: 4.0},
    ])
    def test_snapshot_round_trip(self, entries):
        v = SparseVector(entries)
        snapshot = v.to_snapshot()
        assert isinstance(snapshot, VectorSnapshot)
        assert snapshot.count == len(entries)
        assert len(snapshot.keys) == len(snapshot.values) == snapshot.count
        restored = SparseVector.from_snapshot(snapshot)
        assert restored == v
        assert restored.to_dict() == entries

    def test_snapshot_from_plain_tuple(self):
        restored = SparseVector.from_snapshot((2, [4, 0, 9], [1.0, 2.0, 3.0]))
        assert restored.to_dict() == {4: 1.0, 0: 2.0}

    def test_snapshot_with_duplicate_keys_rejected(self):
        with pytest.raises(PreconditionViolation):
            SparseVector.from_snapshot((2, [1, 1], [1.0, 2.0]))

    def test_snapshot_shorter_than_count_rejected(self):
        with pytest.raises(PreconditionViolation):
            SparseVector.from_snapshot((3, [1, 2], [1.0, 2.0]))

    def test_pickle_round_trip(self):
        v = SparseVector({0: 1.0, 5: 2.5}, dimension=10)
        restored = pickle.loads(pickle.dumps(v))
        assert restored == v
        assert restored.dimension() == 10
        restored.put(6, 1.0)
        assert 6 not in v


class TestIdentityAndViews:

    def test_equality_ignores_insertion_order(self):
        a = SparseVector()
        b = SparseVector()
        for k in (1, 2, 3):
            a.put(k, float(k))
        for k in (3, 1, 2):
            b.put(k, float(k))
        assert a == b
        b.put(3, 3.5)
        assert a != b

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(SparseVector())

    def test_copies_are_deep(self):
        v = SparseVector({1: 1.0})
        for clone in (v.copy(), copy.copy(v), copy.deepcopy(v), SparseVector(v)):
            clone.put(2, 2.0)
            assert 2 not in v

    def test_keys_and_values_are_copies(self):
        v = SparseVector({1: 1.0, 2: 2.0})
        keys = v.keys()
        keys[0] = 999
        assert 999 not in v
        assert v.values().dtype == np.float64

    def test_to_scipy(self):
        v = SparseVector({0: 1.0, 4: 2.0})
        row = v.to_scipy()
        assert row.shape == (1, 5)
        assert row.toarray().tolist() == [[1.0, 0.0, 0.0, 0.0, 2.0]]
        assert v.to_scipy(dimension=8).shape == (1, 8)
        with pytest.raises(PreconditionViolation):
            v.to_scipy(dimension=3)
        with pytest.raises(PreconditionViolation):
            SparseVector({-1: 1.0}).to_scipy()

    def test_weight_vector_surface(self):
        v = SparseVector({3: 1.0})
        assert isinstance(v, WeightVector)
        assert v.dimension() == INT64_MAX
        assert SparseVector(dimension=100).dimension() == 100
        assert v.active_dimension() == 1
        v.inc(3, 1.0)
        assert v.val_at(3) == 2.0
        assert v.to_data() == {3: 2.0}

    def test_repr(self):
        assert "count=1" in repr(SparseVector({1: 1.0}))
