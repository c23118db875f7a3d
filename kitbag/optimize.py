"""Derivative-free minimisation and root finding."""

from __future__ import annotations

import math
import struct
from collections.abc import Callable, Sequence

__all__ = [
    "RootFindingError",
    "hooke_jeeves",
    "brent_minimize",
    "brent_root",
    "DEFAULT_RADIUS",
    "DEFAULT_EPS",
    "DEFAULT_MAX_CALLS",
]

DEFAULT_RADIUS = 0.5
DEFAULT_EPS = 1e-7
DEFAULT_MAX_CALLS = 50000


class RootFindingError(ArithmeticError):
    """Raised when Brent's root finder cannot produce a root."""


def _explore(
    func: Callable[[tuple[float, ...]], float],
    point: list[float],
    fbest: float,
    steps: list[float],
) -> tuple[float, int]:
    """Probe each coordinate in turn; update ``point`` and ``steps`` in place."""
    calls = 0
    for k, step in enumerate(steps):
        point[k] += step
        value = func(tuple(point))
        calls += 1
        if value < fbest:
            fbest = value
            continue
        step = -step
        steps[k] = step
        point[k] += step + step
        value = func(tuple(point))
        calls += 1
        if value < fbest:
            fbest = value
        else:
            point[k] -= step
    return fbest, calls


def hooke_jeeves(
    func: Callable[[tuple[float, ...]], float],
    x: Sequence[float],
    r: float = DEFAULT_RADIUS,
    eps: float = DEFAULT_EPS,
    max_calls: int = DEFAULT_MAX_CALLS,
) -> tuple[float, list[float]]:
    """Minimise ``func`` by the Hooke-Jeeves direct search.

    ``func`` receives the current point as a tuple. Returns the last
    function value reached and the best point found.
    """
    x = [float(v) for v in x]
    steps = [abs(v) * r or r for v in x]
    radius = r
    fx = func(tuple(x))
    n_calls = 1
    while True:
        x1 = list(x)
        fx1, used = _explore(func, x1, fx, steps)
        n_calls += used
        while fx1 < fx:
            steps[:] = [abs(d) if new > old else -abs(d) for old, new, d in zip(x, x1, steps)]
            x, x1 = x1, [new + new - old for old, new in zip(x, x1)]
            fx = fx1
            if n_calls >= max_calls:
                break
            fx1 = func(tuple(x1))
            n_calls += 1
            fx1, used = _explore(func, x1, fx1, steps)
            n_calls += used
            if fx1 >= fx:
                break
            if all(abs(new - old) <= 0.5 * abs(d) for old, new, d in zip(x, x1, steps)):
                break
        if radius >= eps:
            if n_calls >= max_calls:
                break
            radius *= r
            steps[:] = [d * r for d in steps]
        else:
            break
    return fx1, x


_GOLD1 = 1.6180339887
_GOLD2 = 0.3819660113
_TINY = 1e-20
_MAX_ITER = 100


def brent_minimize(
    func: Callable[[float], float], a: float, b: float, tol: float
) -> tuple[float, float]:
    """Minimise a function of one variable, starting from ``a`` and ``b``.

    The minimum is first bracketed by golden-section extrapolation and then
    refined with Brent's method. Returns ``(minimum value, argmin)``.
    """
    fa, fb = func(a), func(b)
    if fb > fa:
        a, b = b, a
        fa, fb = fb, fa
    c = b + _GOLD1 * (b - a)
    fc = func(c)
    while fb > fc:
        bound = b + 100.0 * (c - b)
        r = (b - a) * (fb - fc)
        q = (b - c) * (fb - fa)
        if abs(q - r) < _TINY:
            tmp = _TINY if q > r else -_TINY
        else:
            tmp = q - r
        u = b - ((b - c) * q - (b - a) * r) / (2.0 * tmp)
        if b > u > c or b < u < c:
            fu = func(u)
            if fu < fc:
                a, b = b, u
                fa, fb = fb, fu
                break
            if fu > fb:
                c, fc = u, fu
                break
            u = c + _GOLD1 * (c - b)
            fu = func(u)
        elif c > u > bound or c < u < bound:
            fu = func(u)
            if fu < fc:
                b = c
                c = u
                u = c + _GOLD1 * (c - b)
                fb = fc
                fc = fu
                fu = func(u)
            else:
                a, b, c = b, c, u
                fa, fb, fc = fb, fc, fu
                break
        elif u > bound > c or u < bound < c:
            u = bound
            fu = func(u)
        else:
            u = c + _GOLD1 * (c - b)
            fu = func(u)
        a, b, c = b, c, u
        fa, fb, fc = fb, fc, fu
    if a > c:
        a, c = c, a

    e = d = 0.0
    w = v = b
    fv = fw = fb
    for _ in range(_MAX_ITER):
        mid = 0.5 * (a + c)
        tol1 = tol * abs(b) + _TINY
        tol2 = 2.0 * tol1
        if abs(b - mid) <= tol2 - 0.5 * (c - a):
            return fb, b
        if abs(e) > tol1:
            r = (b - w) * (fb - fv)
            q = (b - v) * (fb - fw)
            p = (b - v) * q - (b - w) * r
            q = 2.0 * (q - r)
            if q > 0.0:
                p = -p
            else:
                q = -q
            eold, e = e, d
            if abs(p) >= abs(0.5 * q * eold) or p <= q * (a - b) or p >= q * (c - b):
                e = a - b if b >= mid else c - b
                d = _GOLD2 * e
            else:
                d = p / q
                u = b + d
                if u - a < tol2 or c - u < tol2:
                    d = tol1 if mid > b else -tol1
        else:
            e = a - b if b >= mid else c - b
            d = _GOLD2 * e
        u = b + d if abs(d) >= tol1 else b + (tol1 if d > 0.0 else -tol1)
        fu = func(u)
        if fu <= fb:
            if u >= b:
                a = b
            else:
                c = b
            v, w, b = w, b, u
            fv, fw, fb = fw, fb, fu
        else:
            if u < b:
                a = u
            else:
                c = u
            if fu <= fw or w == b:
                v, w = w, u
                fv, fw = fw, fu
            elif fu <= fv or v == b or v == w:
                v, fv = u, fu
    return fb, b


def _to_float32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


_ROOT_EPS = _to_float32(3e-8)


def _sign(a: float, b: float) -> float:
    magnitude = _to_float32(abs(a))
    return magnitude if b >= 0 else -magnitude


def brent_root(func: Callable[[float], float], x1: float, x2: float, tol: float) -> float:
    """Find a root of ``func`` bracketed by ``x1`` and ``x2`` with Brent's method.

    Raises RootFindingError if the root is not bracketed or the iteration
    limit is reached.
    """
    a = x1
    b = c = x2
    d = e = 0.0
    fa, fb = func(a), func(b)
    if (fa > 0.0 and fb > 0.0) or (fa < 0.0 and fb < 0.0):
        raise RootFindingError("root is not bracketed by the given interval")
    fc = fb
    for _ in range(_MAX_ITER):
        if (fb > 0.0 and fc > 0.0) or (fb < 0.0 and fc < 0.0):
            c, fc = a, fa
            e = d = b - a
        if abs(fc) < abs(fb):
            a, b, c = b, c, b
            fa, fb, fc = fb, fc, fb
        tol1 = 2.0 * _ROOT_EPS * abs(b) + 0.5 * tol
        xm = 0.5 * (c - b)
        if abs(xm) <= tol1 or fb == 0.0:
            return b
        if abs(e) >= tol1 and abs(fa) > abs(fb):
            s = fb / fa
            if a == c:
                p = 2.0 * xm * s
                q = 1.0 - s
            else:
                q = fa / fc
                r = fb / fc
                p = s * (2.0 * xm * q * (q - r) - (b - a) * (r - 1.0))
                q = (q - 1.0) * (r - 1.0) * (s - 1.0)
            if p > 0.0:
                q = -q
            p = abs(p)
            min1 = 3.0 * xm * q - abs(tol1 * q)
            min2 = abs(e * q)
            if 2.0 * p < min(min1, min2):
                e = d
                d = p / q
            else:
                d = e = xm
        else:
            d = e = xm
        a, fa = b, fb
        if abs(d) > tol1:
            b += d
        else:
            b += _sign(tol1, xm)
        fb = func(b)
    raise RootFindingError("too many iterations")


# Keep math imported for callers that pass math functions through this module.
_ = math