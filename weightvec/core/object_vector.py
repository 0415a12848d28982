# weightvec/core/object_vector.py
from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional

import numpy as np

from .sparse_vector import SparseVector
from .types import EntryReducer, FeatureReducer


# ----------------------------
# Feature vocabulary
# ----------------------------

class FeatureVocabulary:
    """Assigns stable int64 ids to hashable feature objects.

    Ids are handed out densely in first-seen order, so a vocabulary of n
    features covers keys 0..n-1 and also works as a dense index.
    """

    def __init__(self, features: Optional[Iterable[Hashable]] = None) -> None:
        self._ids: Dict[Hashable, int] = {}      # feature -> id
        self._features: List[Hashable] = []     # id -> feature
        if features is not None:
            for feature in features:
                self.add(feature)

    def add(self, feature: Hashable) -> int:
        """Id of feature, assigning a new one if needed."""
        fid = self._ids.get(feature)
        if fid is None:
            fid = len(self._features)
            self._ids[feature] = fid
            self._features.append(feature)
        return fid

    def id_of(self, feature: Hashable) -> Optional[int]:
        """Id of feature, or None when it was never added."""
        return self._ids.get(feature)

    def feature_of(self, fid: int) -> Hashable:
        return self._features[fid]

    def features(self) -> List[Hashable]:
        return list(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def __contains__(self, feature: object) -> bool:
        return feature in self._ids


# ----------------------------
# Object-keyed weight vector
# ----------------------------

class ObjectFeatureVector:
    """Weight vector indexed by feature objects.

    Weights are stored in a SparseVector keyed by vocabulary id. Integer
    keyed operations (val_at, inc, dot_product against sparse or dense
    operands) act on feature ids directly; the feature-keyed ones go through
    the vocabulary.

    Parameters
    ----------
    vocabulary : Optional[FeatureVocabulary]
        Shared vocabulary; a private one is created when omitted.
    weights : Optional[SparseVector]
        Initial weights keyed by feature id.
    """

    def __init__(
        self,
        vocabulary: Optional[FeatureVocabulary] = None,
        weights: Optional[SparseVector] = None,
    ) -> None:
        self.vocabulary = vocabulary if vocabulary is not None else FeatureVocabulary()
        self.weights = weights if weights is not None else SparseVector()

    @classmethod
    def from_features(cls, weights: Mapping[Hashable, float],
                      vocabulary: Optional[FeatureVocabulary] = None) -> "ObjectFeatureVector":
        vector = cls(vocabulary)
        for feature, value in weights.items():
            vector.set_feature(feature, value)
        return vector

    # -------- feature-keyed API --------

    def feature_value(self, feature: Hashable) -> float:
        fid = self.vocabulary.id_of(feature)
        if fid is None:
            return 0.0
        return self.weights.get(fid)

    def set_feature(self, feature: Hashable, value: float) -> None:
        self.weights.put(self.vocabulary.add(feature), value)

    def inc_feature(self, feature: Hashable, delta: float) -> float:
        return self.weights.increment(self.vocabulary.add(feature), delta)

    def index(self, features: Iterable[Hashable], add_missing: bool = False) -> SparseVector:
        """Sparse vector of feature ids for a collection of features.

        A plain collection counts occurrences; a {feature: weight} mapping
        keeps its weights. Unknown features are skipped unless add_missing
        is set, in which case they join the vocabulary.
        """
        if isinstance(features, Mapping):
            counts = features
        else:
            counts = Counter(features)
        out = SparseVector(capacity=max(len(counts), 1))
        for feature, weight in counts.items():
            fid = self.vocabulary.add(feature) if add_missing else self.vocabulary.id_of(feature)
            if fid is not None:
                out.increment(fid, float(weight))
        return out

    def reduce_features(self, fn: FeatureReducer, init: Any) -> Any:
        """Fold fn(acc, feature, value) over the features that carry a weight."""
        feature_of = self.vocabulary.feature_of
        return self.weights.reduce(lambda acc, fid, value: fn(acc, feature_of(fid), value), init)

    def to_features(self) -> Dict[Hashable, float]:
        return self.reduce_features(_collect, {})

    # -------- WeightVector protocol --------

    def dimension(self) -> int:
        return len(self.vocabulary)

    def active_dimension(self) -> int:
        return self.weights.count

    def val_at(self, idx: int) -> float:
        return self.weights.get(idx)

    def inc(self, idx: int, delta: float) -> float:
        return self.weights.increment(idx, delta)

    def dot_product(self, other: Any) -> float:
        """Dot product against features or a numeric operand.

        SparseVector and numpy array operands are keyed by feature id. A
        {feature: weight} mapping is a weighted feature collection; any other
        iterable is a collection of feature objects (repeats count) whose
        weights are summed without building an intermediate vector.
        """
        if isinstance(other, (SparseVector, np.ndarray)):
            return self.weights.dot_product(other)
        if isinstance(other, ObjectFeatureVector):
            return sum(value * other.feature_value(feature)
                       for feature, value in self.to_features().items())
        if isinstance(other, Mapping):
            return sum(float(weight) * self.feature_value(feature)
                       for feature, weight in other.items())
        return sum(self.feature_value(feature) for feature in other)

    def reduce(self, fn: EntryReducer, init: Any) -> Any:
        return self.weights.reduce(fn, init)

    def to_data(self) -> Dict[Hashable, float]:
        return self.to_features()

    def __repr__(self) -> str:
        return (f"ObjectFeatureVector(features={len(self.vocabulary)}, "
                f"active={self.weights.count})")


def _collect(acc: Dict[Hashable, float], feature: Hashable, value: float) -> Dict[Hashable, float]:
    acc[feature] = value
    return acc
