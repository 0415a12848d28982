"""
Sparse vector with int64 keys and float64 values.

Entries live in two parallel numpy arrays whose first ``count`` slots are
populated, plus a dict from key to slot. Lookups, inserts, increments and
removals are O(1) amortized; removal moves the last populated slot into the
hole so the arrays stay dense and dot products and norms run over a
contiguous prefix.

Explicit zeros are never stored. A put or increment that lands on exactly
0.0 removes the entry.

Not thread-safe: one writer, and no mutation while a traversal is running.
"""

from __future__ import annotations

import logging
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Tuple,
    Union,
)

import numpy as np
from scipy import sparse

from ..config import get_config
from ..errors import InvariantViolation, PreconditionViolation
from .types import EntryReducer, VectorSnapshot, WeightVector

logger = logging.getLogger(__name__)

INT64_MAX = int(np.iinfo(np.int64).max)

EntrySource = Union["SparseVector", Mapping[int, float], Iterable[Tuple[int, float]]]


class SparseVector:
    """
    Growable sparse mapping from int64 keys to float64 values.

    Capacity grows by ``growth_rate`` when full and shrinks to
    ``count * growth_rate`` once fewer than ``capacity / growth_rate**2``
    slots are in use, so alternating inserts and removals near a boundary
    do not thrash.
    """

    __slots__ = (
        "_keys",
        "_values",
        "_count",
        "_index",
        "_growth_rate",
        "_initial_capacity",
        "_dimension",
    )

    def __init__(
        self,
        source: Optional[EntrySource] = None,
        capacity: Optional[int] = None,
        growth_rate: Optional[float] = None,
        dimension: Optional[int] = None,
    ) -> None:
        """
        Create an empty vector, or a deep copy of ``source``.

        Args:
            source: Another SparseVector, a {key: value} mapping or an
                iterable of (key, value) pairs
            capacity: Initial capacity (defaults to the configured one, or
                the size of ``source``)
            growth_rate: Capacity growth factor, at least 1.5
            dimension: Advisory size of the key space
        """
        config = get_config()
        if growth_rate is None:
            growth_rate = (
                source._growth_rate if isinstance(source, SparseVector) else config.growth_rate
            )
        if growth_rate < 1.5:
            raise PreconditionViolation(
                f"growth_rate must be >= 1.5, got {growth_rate}",
                argument="growth_rate",
                value=growth_rate,
            )
        self._growth_rate = float(growth_rate)
        self._initial_capacity = (
            source._initial_capacity if isinstance(source, SparseVector) else config.initial_capacity
        )
        if dimension is None and isinstance(source, SparseVector):
            dimension = source._dimension
        self._dimension = dimension

        if not isinstance(source, (SparseVector, Mapping)) and source is not None:
            source = list(source)
        if capacity is None:
            capacity = len(source) if source else self._initial_capacity

        self._keys = np.zeros(capacity, dtype=np.int64)
        self._values = np.zeros(capacity, dtype=np.float64)
        self._count = 0
        self._index: Dict[int, int] = {}

        if source is not None:
            self.put_all(source)

    # ------------------------------------------------------------------
    # Size and capacity
    # ------------------------------------------------------------------

    @property
    def count(self) -> int:
        """Number of populated entries."""
        return self._count

    @property
    def capacity(self) -> int:
        return len(self._keys)

    @property
    def growth_rate(self) -> float:
        return self._growth_rate

    def __len__(self) -> int:
        return self._count

    def ensure_capacity(self, capacity: int) -> None:
        """Grow so at least ``capacity`` entries fit."""
        current = len(self._keys)
        if capacity > current:
            self.resize(max(capacity, int(self._growth_rate * current)))

    def resize(self, capacity: int) -> None:
        """
        Reallocate the backing arrays to exactly ``capacity`` slots.

        Raises:
            InvariantViolation: if capacity is below the populated count
        """
        if capacity < self._count:
            raise InvariantViolation(
                f"cannot decrease capacity to {capacity} below size {self._count}",
                operation="resize",
                expected_count=self._count,
                actual_count=capacity,
            )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Resizing sparse vector %d -> %d slots (%d used)",
                         len(self._keys), capacity, self._count,
                         extra={"operation": "resize", "old_capacity": len(self._keys),
                                "capacity": capacity, "count": self._count})
        keys = np.zeros(capacity, dtype=np.int64)
        values = np.zeros(capacity, dtype=np.float64)
        n = self._count
        keys[:n] = self._keys[:n]
        values[:n] = self._values[:n]
        self._keys = keys
        self._values = values

    def compact(self) -> None:
        """Shrink capacity to the populated count."""
        self.resize(self._count)

    def clear(self) -> None:
        """Remove every entry and return to the initial capacity."""
        self._count = 0
        self._keys = np.zeros(self._initial_capacity, dtype=np.int64)
        self._values = np.zeros(self._initial_capacity, dtype=np.float64)
        self._index = {}

    # ------------------------------------------------------------------
    # Point access and mutation
    # ------------------------------------------------------------------

    def index_of(self, key: int) -> Optional[int]:
        """Slot holding ``key``, or None when absent."""
        return self._index.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def get(self, key: int) -> float:
        """Value stored at ``key``, 0.0 when absent."""
        slot = self._index.get(key)
        if slot is None:
            return 0.0
        return float(self._values[slot])

    __getitem__ = get

    def put(self, key: int, value: float) -> None:
        """Set ``key`` to ``value``; a 0.0 value removes the entry."""
        self.ensure_capacity(self._count + 1)
        self._raw_put(int(key), float(value))

    __setitem__ = put

    def increment(self, key: int, delta: float) -> float:
        """
        Add ``delta`` to the value at ``key``.

        Returns:
            The resulting value; 0.0 means the entry is gone
        """
        self.ensure_capacity(self._count + 1)
        return self._raw_increment(int(key), float(delta))

    def remove(self, key: int) -> bool:
        """Remove ``key``; returns False if it was not present."""
        if not self._raw_remove(key):
            return False
        if self._count < len(self._keys) / (self._growth_rate * self._growth_rate):
            self.resize(int(self._count * self._growth_rate))
        return True

    def remove_all(self, keys: Iterable[int]) -> bool:
        """Remove every key in ``keys``; True if anything was removed."""
        modified = False
        for key in keys:
            modified = self.remove(key) or modified
        return modified

    def _raw_put(self, key: int, value: float) -> None:
        slot = self._index.get(key)
        if slot is None:
            if value == 0.0:
                return
            self._append(key, value)
        elif value == 0.0:
            self._raw_remove(key)
        else:
            self._values[slot] = value

    def _raw_increment(self, key: int, delta: float) -> float:
        slot = self._index.get(key)
        if slot is None:
            if delta != 0.0:
                self._append(key, delta)
            return delta
        new_value = float(self._values[slot]) + delta
        if new_value == 0.0:
            self._raw_remove(key)
        else:
            self._values[slot] = new_value
        return new_value

    def _append(self, key: int, value: float) -> None:
        slot = self._count
        self._keys[slot] = key
        self._values[slot] = value
        self._index[key] = slot
        self._count = slot + 1

    def _raw_remove(self, key: int) -> bool:
        slot = self._index.pop(key, None)
        if slot is None:
            return False
        self._count -= 1
        last = self._count
        if last > slot:
            moved = int(self._keys[last])
            self._keys[slot] = moved
            self._values[slot] = self._values[last]
            self._index[moved] = slot
        return True

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def put_all(self, other: EntrySource) -> None:
        """Copy every entry of ``other`` into this vector."""
        pairs = _entry_pairs(other)
        self.ensure_capacity(self._count + len(pairs))
        for key, value in pairs:
            self._raw_put(int(key), float(value))

    def increment_all(self, other: EntrySource, scale: float = 1.0) -> None:
        """Add ``scale`` times every entry of ``other`` into this vector."""
        pairs = _entry_pairs(other)
        self.ensure_capacity(self._count + len(pairs))
        for key, value in pairs:
            self._raw_increment(int(key), float(value) * scale)

    # ------------------------------------------------------------------
    # Linear algebra
    # ------------------------------------------------------------------

    def norm(self) -> float:
        """Euclidean norm of the populated entries."""
        v = self._values[:self._count]
        return float(np.sqrt(np.dot(v, v)))

    def diff_norm(self, other: "SparseVector") -> float:
        """Euclidean norm of ``self - other``."""
        total = 0.0
        for key, value in zip(self._keys[:self._count].tolist(),
                              self._values[:self._count].tolist()):
            d = value - other.get(key)
            total += d * d
        for key, value in zip(other._keys[:other._count].tolist(),
                              other._values[:other._count].tolist()):
            if key not in self._index:
                total += value * value
        return float(np.sqrt(total))

    def scale_in_place(self, factor: float) -> "SparseVector":
        """Multiply every value by ``factor``; entries that reach 0.0 are dropped."""
        n = self._count
        self._values[:n] *= factor
        zero_slots = np.flatnonzero(self._values[:n] == 0.0)
        if zero_slots.size:
            for key in self._keys[zero_slots].tolist():
                self._raw_remove(key)
        return self

    def normalize_in_place(self) -> "SparseVector":
        """Scale to unit norm; a zero vector is left as is."""
        norm = self.norm()
        if norm > 0.0:
            self.scale_in_place(1.0 / norm)
        return self

    def normalized(self) -> "SparseVector":
        return self.copy().normalize_in_place()

    def dot_product(self, other: Any) -> float:
        """
        Dot product against a SparseVector, a {key: value} mapping, another
        weight vector, or a dense array.

        For a dense operand, keys are used as array indices; every key must
        be a valid index. An empty dense operand gives 0.0.
        """
        n = self._count
        if isinstance(other, SparseVector):
            other_index = other._index
            other_values = other._values
            r = 0.0
            for key, value in zip(self._keys[:n].tolist(), self._values[:n].tolist()):
                slot = other_index.get(key)
                if slot is not None:
                    r += value * float(other_values[slot])
            return r
        if isinstance(other, Mapping):
            if not other:
                return 0.0
            return sum(value * float(other.get(key, 0.0))
                       for key, value in zip(self._keys[:n].tolist(),
                                             self._values[:n].tolist()))
        if not isinstance(other, (np.ndarray, list, tuple)) and isinstance(other, WeightVector):
            return sum(value * other.val_at(key)
                       for key, value in zip(self._keys[:n].tolist(),
                                             self._values[:n].tolist()))
        dense = np.asarray(other, dtype=np.float64)
        if dense.size == 0 or n == 0:
            return 0.0
        return float(np.dot(self._values[:n], dense[self._keys[:n]]))

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _check_count(self, expected: int) -> None:
        if self._count != expected:
            raise InvariantViolation(
                "cannot add or remove entries of a SparseVector while iterating over it",
                operation="traverse",
                expected_count=expected,
                actual_count=self._count,
            )

    def for_each_entry(self, fn: Callable[[int, float], Any]) -> None:
        """Call fn(key, value) for every entry in storage order."""
        initial = self._count
        for i in range(initial):
            fn(int(self._keys[i]), float(self._values[i]))
            self._check_count(initial)

    def reduce(self, fn: EntryReducer, init: Any) -> Any:
        """Fold fn(acc, key, value) over the entries in storage order."""
        acc = init
        initial = self._count
        for i in range(initial):
            acc = fn(acc, int(self._keys[i]), float(self._values[i]))
            self._check_count(initial)
        return acc

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        initial = self._count
        for i in range(initial):
            self._check_count(initial)
            yield int(self._keys[i]), float(self._values[i])
        self._check_count(initial)

    items = __iter__

    def map_keys(self, fn: Callable[[int, float], int]) -> "SparseVector":
        """New vector with fn(key, value) as keys; colliding keys keep the last value."""
        result = SparseVector(capacity=max(self._count, 1), growth_rate=self._growth_rate)
        for key, value in self:
            result.put(fn(key, value), value)
        return result

    def map_values(self, fn: Callable[[int, float], float]) -> "SparseVector":
        """New vector with fn(key, value) as values; zero results are dropped."""
        result = SparseVector(capacity=max(self._count, 1), growth_rate=self._growth_rate,
                              dimension=self._dimension)
        for key, value in self:
            result.put(key, fn(key, value))
        return result

    # ------------------------------------------------------------------
    # Views and conversions
    # ------------------------------------------------------------------

    def keys(self) -> np.ndarray:
        """Copy of the populated keys in storage order."""
        return self._keys[:self._count].copy()

    def values(self) -> np.ndarray:
        """Copy of the populated values, parallel to keys()."""
        return self._values[:self._count].copy()

    def to_dict(self) -> Dict[int, float]:
        n = self._count
        return dict(zip(self._keys[:n].tolist(), self._values[:n].tolist()))

    def to_scipy(self, dimension: Optional[int] = None) -> sparse.csr_matrix:
        """
        Export as a 1 x dimension scipy CSR row.

        Args:
            dimension: Number of columns; defaults to the vector's dimension
                or to the largest key + 1
        """
        n = self._count
        keys = self._keys[:n]
        if n and int(keys.min()) < 0:
            raise PreconditionViolation("negative keys cannot be used as column indices",
                                        argument="keys", value=int(keys.min()))
        needed = int(keys.max()) + 1 if n else 0
        if dimension is None:
            dimension = self._dimension if self._dimension is not None else needed
        if dimension < needed:
            raise PreconditionViolation(
                f"dimension {dimension} is too small for key {needed - 1}",
                argument="dimension",
                value=dimension,
            )
        rows = np.zeros(n, dtype=np.int64)
        return sparse.csr_matrix((self._values[:n].copy(), (rows, keys.copy())),
                                 shape=(1, dimension))

    def to_snapshot(self) -> VectorSnapshot:
        """Compact, then return the (count, keys, values) persisted form."""
        self.compact()
        return VectorSnapshot(self._count, self._keys.copy(), self._values.copy())

    @classmethod
    def from_snapshot(cls, snapshot: Union[VectorSnapshot, Tuple[int, Any, Any]],
                      **kwargs: Any) -> "SparseVector":
        """
        Rebuild a vector from a (count, keys, values) triple.

        Raises:
            PreconditionViolation: on short arrays or duplicate keys
        """
        count, keys, values = snapshot
        count = int(count)
        keys = np.asarray(keys, dtype=np.int64)
        values = np.asarray(values, dtype=np.float64)
        if count < 0 or len(keys) < count or len(values) < count:
            raise PreconditionViolation(
                f"snapshot arrays shorter than count {count}",
                argument="snapshot",
                details={"keys": len(keys), "values": len(values)},
            )
        vector = cls(capacity=count, **kwargs)
        for key, value in zip(keys[:count].tolist(), values[:count].tolist()):
            if key in vector._index:
                raise PreconditionViolation(f"duplicate key {key} in snapshot",
                                            argument="keys", value=key)
            vector._raw_put(key, value)
        return vector

    def __getstate__(self) -> Dict[str, Any]:
        n = self._count
        return {
            "snapshot": (n, self._keys[:n].copy(), self._values[:n].copy()),
            "growth_rate": self._growth_rate,
            "initial_capacity": self._initial_capacity,
            "dimension": self._dimension,
        }

    def __setstate__(self, state: Dict[str, Any]) -> None:
        count, keys, values = state["snapshot"]
        self._growth_rate = state["growth_rate"]
        self._initial_capacity = state["initial_capacity"]
        self._dimension = state["dimension"]
        self._keys = np.array(keys, dtype=np.int64)
        self._values = np.array(values, dtype=np.float64)
        self._count = count
        self._index = {key: i for i, key in enumerate(self._keys[:count].tolist())}

    def copy(self) -> "SparseVector":
        return SparseVector(self)

    def __copy__(self) -> "SparseVector":
        return self.copy()

    def __deepcopy__(self, memo: Dict[int, Any]) -> "SparseVector":
        return self.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SparseVector):
            return NotImplemented
        if self._count != other._count:
            return False
        for key, value in self:
            slot = other._index.get(key)
            if slot is None or float(other._values[slot]) != value:
                return False
        return True

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        preview = dict(list(self.to_dict().items())[:5])
        suffix = ", ..." if self._count > 5 else ""
        return (f"SparseVector(count={self._count}, capacity={self.capacity}, "
                f"entries={preview}{suffix})")

    # ------------------------------------------------------------------
    # WeightVector protocol
    # ------------------------------------------------------------------

    def dimension(self) -> int:
        return self._dimension if self._dimension is not None else INT64_MAX

    def active_dimension(self) -> int:
        return self._count

    val_at = get
    inc = increment
    to_data = to_dict


def _entry_pairs(source: EntrySource) -> list:
    if isinstance(source, SparseVector):
        n = source._count
        return list(zip(source._keys[:n].tolist(), source._values[:n].tolist()))
    if isinstance(source, Mapping):
        return list(source.items())
    return list(source)


def dot_mappings(a: Mapping[int, float], b: Mapping[int, float]) -> float:
    """Dot product of two plain {key: value} mappings, iterating the smaller one."""
    if len(a) > len(b):
        a, b = b, a
    r = 0.0
    for key, value in a.items():
        r += value * b.get(key, 0.0)
    return r
