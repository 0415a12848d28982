"""Shared type definitions for weight vectors.

Algorithms should depend on the protocols defined here rather than on a
concrete vector class. SparseVector, DenseWeightVector and
ObjectFeatureVector each satisfy them structurally; there is no common
base class.
"""

from __future__ import annotations

from typing import (
    Any,
    Callable,
    Collection,
    Dict,
    Hashable,
    NamedTuple,
    Protocol,
    TYPE_CHECKING,
    runtime_checkable,
)

import numpy as np

if TYPE_CHECKING:
    from .sparse_vector import SparseVector


# fn(accumulator, key, value) -> accumulator
EntryReducer = Callable[[Any, int, float], Any]
# fn(accumulator, feature, value) -> accumulator
FeatureReducer = Callable[[Any, Hashable, float], Any]


class VectorSnapshot(NamedTuple):
    """Compact persisted form of a sparse vector.

    Attributes:
        count: Number of populated entries
        keys: int64 array of length count
        values: float64 array of length count, parallel to keys
    """
    count: int
    keys: np.ndarray
    values: np.ndarray


@runtime_checkable
class UniformSource(Protocol):
    """Anything that draws uniform floats in [0, 1).

    random.Random and numpy.random.Generator both qualify.
    """

    def random(self) -> float:
        ...


@runtime_checkable
class Reducible(Protocol):
    """Something that can be folded over its (key, value) entries."""

    def reduce(self, fn: EntryReducer, init: Any) -> Any:
        """Fold fn(acc, key, value) over entries starting from init."""
        ...


@runtime_checkable
class WeightVector(Reducible, Protocol):
    """Capability set shared by all weight vector representations."""

    def dimension(self) -> int:
        """Full addressable dimension (may be advisory for sparse vectors)."""
        ...

    def active_dimension(self) -> int:
        """Number of populated entries."""
        ...

    def val_at(self, idx: int) -> float:
        """Value at idx, 0.0 when absent."""
        ...

    def inc(self, idx: int, delta: float) -> float:
        """Add delta at idx and return the new value."""
        ...

    def dot_product(self, other: Any) -> float:
        """Dot product against a dense array or a SparseVector."""
        ...

    def to_data(self) -> Dict[Any, float]:
        """Plain {key: value} form of the populated entries."""
        ...


@runtime_checkable
class ObjectWeightVector(WeightVector, Protocol):
    """A weight vector that also knows how to index feature objects."""

    def feature_value(self, feature: Hashable) -> float:
        """Weight of a feature object, 0.0 when unknown."""
        ...

    def index(self, features: Collection[Hashable]) -> "SparseVector":
        """Convert a collection of features to a sparse vector of feature ids."""
        ...

    def reduce_features(self, fn: FeatureReducer, init: Any) -> Any:
        """Fold fn(acc, feature, value) over features with a weight."""
        ...
