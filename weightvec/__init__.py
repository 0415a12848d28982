"""weightvec - sparse weight vectors and the numeric kernels around them."""

__version__ = "0.1.0"

from .errors import InvariantViolation, PreconditionViolation, VectorError
from .config import VectorConfig, get_config, set_config
from .core import (
    DenseWeightVector,
    FeatureVocabulary,
    ObjectFeatureVector,
    ObjectWeightVector,
    SparseVector,
    VectorSnapshot,
    WeightVector,
)
from .numeric import VariateGenerator, log_add, sample_discrete

__all__ = [
    "SparseVector",
    "DenseWeightVector",
    "ObjectFeatureVector",
    "FeatureVocabulary",
    "WeightVector",
    "ObjectWeightVector",
    "VectorSnapshot",
    "VariateGenerator",
    "log_add",
    "sample_discrete",
    "VectorConfig",
    "get_config",
    "set_config",
    "VectorError",
    "InvariantViolation",
    "PreconditionViolation",
    "__version__",
]
