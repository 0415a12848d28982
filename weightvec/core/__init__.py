"""
Core vector types.

SparseVector is the workhorse; DenseWeightVector and ObjectFeatureVector
offer the same WeightVector capabilities over other representations.
"""

from .types import (
    ObjectWeightVector,
    Reducible,
    UniformSource,
    VectorSnapshot,
    WeightVector,
)
from .sparse_vector import SparseVector, dot_mappings
from .dense_vector import DenseWeightVector
from .object_vector import FeatureVocabulary, ObjectFeatureVector

__all__ = [
    # Contracts
    'WeightVector',
    'ObjectWeightVector',
    'Reducible',
    'UniformSource',
    'VectorSnapshot',

    # Implementations
    'SparseVector',
    'DenseWeightVector',
    'ObjectFeatureVector',
    'FeatureVocabulary',

    'dot_mappings',
]
