# weightvec/numeric/kernels.py
from __future__ import annotations

import logging
import math
import threading
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import get_config
from ..errors import PreconditionViolation
from ..core.types import UniformSource

logger = logging.getLogger(__name__)

NEG_INF = float("-inf")

ArrayLike = Union[np.ndarray, Sequence[float]]


# ----------------------------
# Discrete sampling
# ----------------------------

def sample_discrete(random: UniformSource, distribution: ArrayLike) -> int:
    """
    Draw an index from a discrete probability vector.

    Subtracts probabilities from one uniform draw until the remainder is
    <= 0. The distribution need not be exactly normalized; if the scan runs
    out (under-summation) index 0 is returned.
    """
    if len(distribution) == 0:
        raise PreconditionViolation("cannot sample from an empty distribution",
                                    argument="distribution")
    p = random.random()
    for i, prob in enumerate(distribution):
        p -= prob
        if p <= 0:
            return i
    return 0


# ----------------------------
# Bucketed exp(x) for x <= 0
# ----------------------------

_exp_tables: Dict[Tuple[float, int], np.ndarray] = {}
_exp_tables_lock = threading.Lock()


def _build_exp_table(tolerance: float, bins: int) -> np.ndarray:
    half_bin = tolerance / (bins * 2)
    table = np.empty(bins + 1, dtype=np.float64)
    table[:bins] = np.exp(np.arange(bins) * (tolerance / bins) - tolerance + half_bin)
    table[bins] = 1.0
    table.flags.writeable = False
    return table


def exp_table(tolerance: Optional[float] = None, bins: Optional[int] = None) -> np.ndarray:
    """
    Shared read-only lookup table approximating exp over [-tolerance, 0].

    Built once per (tolerance, bins) on first use. Concurrent first callers
    serialize on a lock and a table is only published once fully built.
    """
    config = get_config()
    key = (float(tolerance if tolerance is not None else config.log_tolerance),
           int(bins if bins is not None else config.exp_bins))
    table = _exp_tables.get(key)
    if table is None:
        with _exp_tables_lock:
            table = _exp_tables.get(key)
            if table is None:
                logger.debug("Building exp table: tolerance=%s bins=%d", key[0], key[1],
                             extra={"operation": "exp_table", "tolerance": key[0], "bins": key[1]})
                table = _build_exp_table(*key)
                _exp_tables[key] = table
    return table


def sloppy_exp_negative(x: float, tolerance: Optional[float] = None,
                        bins: Optional[int] = None) -> float:
    """Approximate exp(x) for x <= 0 by table lookup; 0.0 at or below -tolerance."""
    config = get_config()
    tolerance = float(tolerance if tolerance is not None else config.log_tolerance)
    bins = int(bins if bins is not None else config.exp_bins)
    if x > 0:
        raise PreconditionViolation("sloppy_exp_negative needs x <= 0", argument="x", value=x)
    if x <= -tolerance:
        return 0.0
    table = exp_table(tolerance, bins)
    return float(table[int((x + tolerance) * (bins / tolerance))])


# ----------------------------
# Log-domain summation
# ----------------------------

def log_add(log_values: ArrayLike, tolerance: Optional[float] = None) -> float:
    """
    Numerically stable log(sum(exp(v))).

    Terms more than ``tolerance`` below the maximum are treated as zero and
    the rest go through the bucketed exp table, trading a small bounded
    error for speed. Empty or all -inf input gives -inf.
    """
    config = get_config()
    tolerance = float(tolerance if tolerance is not None else config.log_tolerance)
    values = np.asarray(log_values, dtype=np.float64)
    if values.size == 0:
        return NEG_INF

    max_index = int(np.argmax(values))
    max_value = float(values[max_index])
    if max_value == NEG_INF:
        return NEG_INF

    diffs = values - max_value
    window = diffs > -tolerance
    window[max_index] = False
    if not window.any():
        return max_value

    bins = config.exp_bins
    table = exp_table(tolerance, bins)
    slots = ((diffs[window] + tolerance) * (bins / tolerance)).astype(np.int64)
    total = float(table[slots].sum())
    if total > 0.0:
        return max_value + math.log1p(total)
    return max_value


# ----------------------------
# Dense in-place kernels
# ----------------------------

def add_in_place(accum: np.ndarray, operand: ArrayLike,
                 scale: float = 1.0, offset: float = 0.0) -> np.ndarray:
    """
    accum[i] += scale * operand[i] + offset, skipping exact-zero increments.

    ``accum`` must be a float numpy array; it is modified and returned.
    """
    operand = np.asarray(operand, dtype=np.float64)
    if operand.shape[0] < accum.shape[0]:
        raise PreconditionViolation(
            f"operand length {operand.shape[0]} shorter than accumulator {accum.shape[0]}",
            argument="operand",
        )
    inc = scale * operand[:accum.shape[0]] + offset
    nonzero = inc != 0.0
    accum[nonzero] += inc[nonzero]
    return accum


def multiply_in_place(accum: np.ndarray, operand: ArrayLike) -> np.ndarray:
    """accum[i] *= operand[i]; ``accum`` is modified and returned."""
    operand = np.asarray(operand, dtype=np.float64)
    if operand.shape[0] < accum.shape[0]:
        raise PreconditionViolation(
            f"operand length {operand.shape[0]} shorter than accumulator {accum.shape[0]}",
            argument="operand",
        )
    accum *= operand[:accum.shape[0]]
    return accum
