"""Special functions and the two-sample Kolmogorov-Smirnov distance."""

from __future__ import annotations

import math
from collections.abc import Iterable

__all__ = ["lgamma", "erfc", "gammap", "gammaq", "betai", "ks_distance"]

_GAMMA_EPS = 1e-14
_TINY = 1e-290
_SQRT2 = math.sqrt(2.0)


def lgamma(z: float) -> float:
    """Logarithm of the gamma function (AS245, second algorithm)."""
    x = 0.0
    x += 0.1659470187408462e-06 / (z + 7)
    x += 0.9934937113930748e-05 / (z + 6)
    x -= 0.1385710331296526 / (z + 5)
    x += 12.50734324009056 / (z + 4)
    x -= 176.6150291498386 / (z + 3)
    x += 771.3234287757674 / (z + 2)
    x -= 1259.139216722289 / (z + 1)
    x += 676.5203681218835 / z
    x += 0.9999999999995183
    return math.log(x) - 5.58106146679532777 - z + (z - 0.5) * math.log(z + 6.5)


_P = (
    220.2068679123761,
    221.2135961699311,
    112.0792914978709,
    33.912866078383,
    6.37396220353165,
    0.7003830644436881,
    0.03526249659989109,
)
_Q = (
    440.4137358247522,
    793.8265125199484,
    637.3336333788311,
    296.5642487796737,
    86.78073220294608,
    16.06417757920695,
    1.755667163182642,
    0.08838834764831844,
)


def _horner(coefficients: tuple[float, ...], z: float) -> float:
    result = coefficients[-1]
    for coefficient in reversed(coefficients[:-1]):
        result = result * z + coefficient
    return result


def erfc(x: float) -> float:
    """Complementary error function (AS66, second algorithm)."""
    z = abs(x) * _SQRT2
    if z > 37.0:
        return 0.0 if x > 0.0 else 2.0
    expntl = math.exp(z * z * -0.5)
    if z < 10.0 / _SQRT2:
        p = expntl * _horner(_P, z) / _horner(_Q, z)
    else:
        p = expntl / 2.506628274631001 / (
            z + 1.0 / (z + 2.0 / (z + 3.0 / (z + 4.0 / (z + 0.65))))
        )
    return 2.0 * p if x > 0.0 else 2.0 * (1.0 - p)


def _gammap_series(s: float, z: float) -> float:
    total = x = 1.0
    for k in range(1, 100):
        x *= z / (s + k)
        total += x
        if x / total < _GAMMA_EPS:
            break
    return math.exp(s * math.log(z) - z - lgamma(s + 1.0) + math.log(total))


def _gammaq_fraction(s: float, z: float) -> float:
    f = 1.0 + z - s
    c = f
    d = 0.0
    for j in range(1, 100):
        a = j * (s - j)
        b = (j << 1) + 1 + z - s
        d = b + a * d
        if d < _TINY:
            d = _TINY
        c = b + a / c
        if c < _TINY:
            c = _TINY
        d = 1.0 / d
        delta = c * d
        f *= delta
        if abs(delta - 1.0) < _GAMMA_EPS:
            break
    return math.exp(s * math.log(z) - z - lgamma(s) - math.log(f))


def gammap(s: float, z: float) -> float:
    """Regularized lower incomplete gamma function P(s, z)."""
    if z <= 1.0 or z < s:
        return _gammap_series(s, z)
    return 1.0 - _gammaq_fraction(s, z)


def gammaq(s: float, z: float) -> float:
    """Regularized upper incomplete gamma function Q(s, z)."""
    if z <= 1.0 or z < s:
        return 1.0 - _gammap_series(s, z)
    return _gammaq_fraction(s, z)


def _betai_fraction(a: float, b: float, x: float) -> float:
    if x == 0.0:
        return 0.0
    if x == 1.0:
        return 1.0
    f = 1.0
    c = f
    d = 0.0
    for j in range(1, 200):
        m = j >> 1
        if j & 1:
            aa = -(a + m) * (a + b + m) * x / ((a + 2 * m) * (a + 2 * m + 1))
        else:
            aa = m * (b - m) * x / ((a + 2 * m - 1) * (a + 2 * m))
        d = 1.0 + aa * d
        if d < _TINY:
            d = _TINY
        c = 1.0 + aa / c
        if c < _TINY:
            c = _TINY
        d = 1.0 / d
        delta = c * d
        f *= delta
        if abs(delta - 1.0) < _GAMMA_EPS:
            break
    return (
        math.exp(
            lgamma(a + b) - lgamma(a) - lgamma(b) + a * math.log(x) + b * math.log(1.0 - x)
        )
        / a
        / f
    )


def betai(a: float, b: float, x: float) -> float:
    """Regularized incomplete beta function I_x(a, b)."""
    if x < (a + 1.0) / (a + b + 2.0):
        return _betai_fraction(a, b, x)
    return 1.0 - _betai_fraction(b, a, 1.0 - x)


def ks_distance(a: Iterable[float], b: Iterable[float]) -> float:
    """Kolmogorov-Smirnov distance between two samples' empirical CDFs."""
    xs = sorted(a)
    ys = sorted(b)
    na, nb = len(xs), len(ys)
    if na == 0 or nb == 0:
        raise ValueError("both samples must be non-empty")
    step_a, step_b = 1.0 / na, 1.0 / nb
    ia = ib = 0
    fa = fb = sup = 0.0
    while ia < na or ib < nb:
        if ia == na:
            fb += step_b
            ib += 1
        elif ib == nb:
            fa += step_a
            ia += 1
        elif xs[ia] < ys[ib]:
            fa += step_a
            ia += 1
        elif xs[ia] > ys[ib]:
            fb += step_b
            ib += 1
        else:
            fa += step_a
            fb += step_b
            ia += 1
            ib += 1
        sup = max(sup, abs(fa - fb))
    return sup