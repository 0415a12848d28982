"""
Random variates and special functions.

Every sampler takes an injected uniform source (anything with a
``random()`` method returning floats in [0, 1)), so callers control seeding
and each concurrent task can own its own generator. Nothing here is
synchronized.

Gamma and Beta follow Marsaglia and Tsang, "A simple method for generating
gamma variables", ACM TOMS 26(3), 2000. digamma uses the asymptotic series
after pushing x above 5; log_gamma uses the six-term Lanczos approximation.
"""

from __future__ import annotations

import math
import random as _random
from typing import Iterable, Optional, Sequence

from ..config import get_config
from ..core.sparse_vector import SparseVector
from ..core.types import UniformSource
from ..errors import PreconditionViolation
from .kernels import sample_discrete

_TWO_PI = 2.0 * math.pi
_SQRT_TWO_PI = math.sqrt(_TWO_PI)


def sloppy_exp(x: float) -> float:
    """exp(x), with 0.0 below the log tolerance and 1 + x very close to zero."""
    if x < -get_config().log_tolerance:
        return 0.0
    if abs(x) < 0.001:
        return 1.0 + x
    return math.exp(x)


def sloppy_log(x: float) -> float:
    return math.log(x)


def _open_uniform(random: UniformSource) -> float:
    # (0, 1] so the value is always safe to take a log of
    return 1.0 - random.random()


def sample_gaussian(random: UniformSource) -> float:
    """Standard normal draw via the Box-Muller transform."""
    x1 = _open_uniform(random)
    x2 = random.random()
    return math.sqrt(-2.0 * sloppy_log(x1)) * math.cos(_TWO_PI * x2)


def sample_student_t(random: UniformSource, dof: float) -> float:
    """
    Student-t draw with ``dof`` degrees of freedom (Bailey's polar method).

    The rejection loop has no iteration cap; it terminates with probability
    one for a proper uniform source.
    """
    if dof <= 0:
        raise PreconditionViolation(f"dof must be positive, got {dof}",
                                    argument="dof", value=dof)
    while True:
        u = 2.0 * random.random() - 1.0
        v = 2.0 * random.random() - 1.0
        w = u * u + v * v
        if 0.0 < w <= 1.0:
            r2 = dof * (w ** (-2.0 / dof) - 1.0)
            return u * math.sqrt(r2 / w)


def sample_gamma(random: UniformSource, shape: float, rate: float = 1.0) -> float:
    """
    Gamma(shape, rate) draw by Marsaglia-Tsang squeeze rejection.

    For shape < 1 the draw is boosted: Gamma(a) = Gamma(a + 1) * U**(1/a).
    """
    if shape <= 0:
        raise PreconditionViolation(f"shape must be positive, got {shape}",
                                    argument="shape", value=shape)
    if rate <= 0:
        raise PreconditionViolation(f"rate must be positive, got {rate}",
                                    argument="rate", value=rate)
    if shape < 1:
        boost = sloppy_exp(sloppy_log(_open_uniform(random)) / shape)
        return boost * _marsaglia_tsang(random, shape + 1.0) / rate
    return _marsaglia_tsang(random, shape) / rate


def _marsaglia_tsang(random: UniformSource, shape: float) -> float:
    # unit-rate Gamma(shape) for shape >= 1
    d = shape - 1.0 / 3.0
    c = 1.0 / math.sqrt(9.0 * d)
    while True:
        x = sample_gaussian(random)
        v = 1.0 + c * x
        while v <= 0:
            x = sample_gaussian(random)
            v = 1.0 + c * x
        v = v * v * v
        x = x * x
        u = _open_uniform(random)
        # squeeze first, then the exact log test
        if u < 1.0 - 0.0331 * x * x:
            break
        if sloppy_log(u) < 0.5 * x + d * (1.0 - v + sloppy_log(v)):
            break
    return d * v


def _log_gamma_variate(random: UniformSource, shape: float) -> float:
    # log of a unit-rate Gamma(shape) draw; the shape < 1 boost stays in logs
    if shape < 1:
        log_boost = sloppy_log(_open_uniform(random)) / shape
        return log_boost + sloppy_log(_marsaglia_tsang(random, shape + 1.0))
    return sloppy_log(_marsaglia_tsang(random, shape))


def sample_beta(random: UniformSource, alpha: float, beta: float) -> float:
    """
    Beta(alpha, beta) draw as a / (a + b) of two unit-rate Gamma draws.

    When either shape is below 1 the Gamma draws can underflow to 0.0, so
    the ratio is taken from their logs instead.
    """
    if alpha >= 1 and beta >= 1:
        a = sample_gamma(random, alpha, 1.0)
        b = sample_gamma(random, beta, 1.0)
        return a / (a + b)
    for name, shape in (("alpha", alpha), ("beta", beta)):
        if shape <= 0:
            raise PreconditionViolation(f"{name} must be positive, got {shape}",
                                        argument=name, value=shape)
    diff = _log_gamma_variate(random, beta) - _log_gamma_variate(random, alpha)
    if diff > 0:
        e = math.exp(-diff)
        return e / (1.0 + e)
    return 1.0 / (1.0 + math.exp(diff))


def digamma(x: float) -> float:
    if x <= 0:
        raise PreconditionViolation(f"digamma needs x > 0, got {x}", argument="x", value=x)
    r = 0.0
    while x <= 5:
        r -= 1.0 / x
        x += 1.0

    f = 1.0 / (x * x)
    t = f * (-1 / 12.0 +
             f * (1 / 120.0 +
             f * (-1 / 252.0 +
             f * (1 / 240.0 +
             f * (-1 / 132.0 +
             f * (691 / 32760.0 +
             f * (-1 / 12.0 +
             f * 3617.0 / 8160.0)))))))
    return r + sloppy_log(x) - 0.5 / x + t


def log_gamma(x: float) -> float:
    """log Gamma(x) for x > 0, accurate to about 1e-10."""
    if x <= 0:
        raise PreconditionViolation(f"log_gamma needs x > 0, got {x}", argument="x", value=x)
    tmp = (x - 0.5) * sloppy_log(x + 4.5) - (x + 4.5)
    ser = (1.0 + 76.18009173 / (x + 0) - 86.50532033 / (x + 1)
           + 24.01409822 / (x + 2) - 1.231739516 / (x + 3)
           + 0.00120858003 / (x + 4) - 0.00000536382 / (x + 5))
    return tmp + sloppy_log(ser * _SQRT_TWO_PI)


class VariateGenerator:
    """
    Seeded convenience wrapper around the samplers.

    Owns one uniform source; not thread-safe, so give each concurrent task
    its own instance.
    """

    def __init__(self, seed: Optional[int] = None,
                 source: Optional[UniformSource] = None) -> None:
        """
        Args:
            seed: Seed for a private random.Random (ignored when source is given)
            source: Existing uniform source to draw from
        """
        self.seed = seed
        self.source: UniformSource = source if source is not None else _random.Random(seed)

    def uniform(self) -> float:
        return self.source.random()

    def gaussian(self, mean: float = 0.0, std: float = 1.0) -> float:
        return mean + std * sample_gaussian(self.source)

    def student_t(self, dof: float) -> float:
        return sample_student_t(self.source, dof)

    def gamma(self, shape: float, rate: float = 1.0) -> float:
        return sample_gamma(self.source, shape, rate)

    def beta(self, alpha: float, beta: float) -> float:
        return sample_beta(self.source, alpha, beta)

    def discrete(self, distribution: Sequence[float]) -> int:
        return sample_discrete(self.source, distribution)

    def gaussian_vector(self, keys: Iterable[int], scale: float = 1.0) -> SparseVector:
        """Sparse vector with an independent N(0, scale**2) value per key."""
        keys = list(keys)
        vector = SparseVector(capacity=max(len(keys), 1))
        for key in keys:
            vector.put(key, scale * sample_gaussian(self.source))
        return vector

    def perturb(self, vector: SparseVector, scale: float = 1.0) -> SparseVector:
        """Add N(0, scale**2) noise to every active entry of vector, in place."""
        for key in vector.keys().tolist():
            vector.increment(key, scale * sample_gaussian(self.source))
        return vector
