"""
Dense array-backed weight vector.

Useful when the key space is small and mostly populated, e.g. the weights of
a compact model. Satisfies the same WeightVector protocol as SparseVector so
algorithms can swap one for the other.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from ..errors import PreconditionViolation
from ..numeric.kernels import add_in_place, multiply_in_place
from .sparse_vector import SparseVector
from .types import EntryReducer


class DenseWeightVector:
    """
    Fixed-dimension weight vector over keys 0..dim-1.

    Reads outside the range return 0.0; writes outside it raise.
    """

    def __init__(self, dim: int = 0, values: Optional[Sequence[float]] = None):
        """
        Initialize dense vector.

        Args:
            dim: Number of addressable keys (ignored when values is given)
            values: Initial contents
        """
        if values is not None:
            self.array = np.array(values, dtype=np.float64)
        else:
            if dim < 0:
                raise PreconditionViolation(f"dim must be >= 0, got {dim}",
                                            argument="dim", value=dim)
            self.array = np.zeros(dim, dtype=np.float64)

    @classmethod
    def from_sparse(cls, vector: SparseVector, dim: Optional[int] = None) -> "DenseWeightVector":
        """Densify a sparse vector whose keys are all in 0..dim-1."""
        keys = vector.keys()
        if dim is None:
            dim = int(keys.max()) + 1 if len(keys) else 0
        dense = cls(dim)
        if len(keys):
            if int(keys.min()) < 0 or int(keys.max()) >= dim:
                raise PreconditionViolation("sparse keys fall outside the dense range",
                                            argument="dim", value=dim)
            dense.array[keys] = vector.values()
        return dense

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self.array
        return self.array.astype(dtype)

    def __len__(self) -> int:
        return len(self.array)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DenseWeightVector):
            return NotImplemented
        return bool(np.array_equal(self.array, other.array))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"DenseWeightVector(dim={len(self.array)}, active={self.active_dimension()})"

    def _check_index(self, idx: int) -> None:
        if not 0 <= idx < len(self.array):
            raise PreconditionViolation(
                f"index {idx} outside dense range 0..{len(self.array) - 1}",
                argument="idx",
                value=idx,
            )

    # WeightVector protocol

    def dimension(self) -> int:
        return len(self.array)

    def active_dimension(self) -> int:
        return int(np.count_nonzero(self.array))

    def val_at(self, idx: int) -> float:
        if 0 <= idx < len(self.array):
            return float(self.array[idx])
        return 0.0

    def inc(self, idx: int, delta: float) -> float:
        self._check_index(idx)
        self.array[idx] += delta
        return float(self.array[idx])

    def put(self, idx: int, value: float) -> None:
        self._check_index(idx)
        self.array[idx] = value

    def dot_product(self, other: Any) -> float:
        """Dot product against a SparseVector, a {key: value} mapping or a dense array."""
        if isinstance(other, SparseVector):
            return other.dot_product(self.array)
        if isinstance(other, Mapping):
            return sum(value * self.val_at(key) for key, value in other.items())
        dense = np.asarray(other, dtype=np.float64)
        if dense.shape != self.array.shape:
            raise PreconditionViolation(
                f"dense operand shape {dense.shape} != {self.array.shape}",
                argument="other",
            )
        return float(np.dot(self.array, dense))

    def reduce(self, fn: EntryReducer, init: Any) -> Any:
        """Fold fn(acc, idx, value) over the nonzero entries in index order."""
        acc = init
        for idx in np.flatnonzero(self.array).tolist():
            acc = fn(acc, idx, float(self.array[idx]))
        return acc

    def to_data(self) -> Dict[int, float]:
        nonzero = np.flatnonzero(self.array)
        return dict(zip(nonzero.tolist(), self.array[nonzero].tolist()))

    def to_sparse(self) -> SparseVector:
        return SparseVector(self.to_data(), dimension=len(self.array))

    # In-place arithmetic

    def add_scaled(self, other: Any, scale: float = 1.0, offset: float = 0.0) -> "DenseWeightVector":
        """self += scale * other + offset, element-wise."""
        if isinstance(other, SparseVector):
            for key, value in other:
                self.inc(key, scale * value)
            if offset != 0.0:
                self.array += offset
            return self
        add_in_place(self.array, np.asarray(other, dtype=np.float64), scale, offset)
        return self

    def multiply(self, other: Any) -> "DenseWeightVector":
        """self *= other, element-wise."""
        multiply_in_place(self.array, np.asarray(other, dtype=np.float64))
        return self
