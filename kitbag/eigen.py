"""Eigenvalues and eigenvectors of dense real symmetric matrices."""

from __future__ import annotations

import math
from collections.abc import Sequence

__all__ = [
    "ExcessIterationError",
    "tridiagonalize",
    "tridiagonal_eigen",
    "eigen_symmetric",
]

DEFAULT_EPS = 1e-7
DEFAULT_MAX_ITER = 50


class ExcessIterationError(ArithmeticError):
    """Raised when the QL iteration needs more steps than allowed."""


def _flatten(matrix: Sequence[Sequence[float]]) -> tuple[list[float], int]:
    rows = [list(map(float, row)) for row in matrix]
    n = len(rows)
    if any(len(row) != n for row in rows):
        raise ValueError("matrix must be square")
    return [v for row in rows for v in row], n


def _unflatten(flat: list[float], n: int) -> list[list[float]]:
    return [flat[i * n:(i + 1) * n] for i in range(n)]


def _strq(n: int, q: list[float]) -> tuple[list[float], list[float]]:
    """Householder reduction of the flat matrix ``q`` in place."""
    b = [0.0] * n
    c = [0.0] * n
    for i in range(n - 1, 0, -1):
        row = i * n
        h = 0.0
        if i > 1:
            for k in range(i):
                h = h + q[row + k] * q[row + k]
        if h + 1.0 == 1.0:
            c[i] = q[row + i - 1] if i == 1 else 0.0
            b[i] = 0.0
            continue
        c[i] = math.sqrt(h)
        u = row + i - 1
        if q[u] > 0.0:
            c[i] = -c[i]
        h = h - q[u] * c[i]
        q[u] = q[u] - c[i]
        f = 0.0
        for j in range(i):
            q[j * n + i] = q[row + j] / h
            g = 0.0
            for k in range(j + 1):
                g = g + q[j * n + k] * q[row + k]
            for k in range(j + 1, i):
                g = g + q[k * n + j] * q[row + k]
            c[j] = g / h
            f = f + g * q[j * n + i]
        h2 = f / (h + h)
        for j in range(i):
            f = q[row + j]
            g = c[j] - h2 * f
            c[j] = g
            for k in range(j + 1):
                u = j * n + k
                q[u] = q[u] - f * c[k] - g * q[row + k]
        b[i] = h
    c[:n - 1] = c[1:n]
    c[n - 1] = 0.0
    b[0] = 0.0
    for i in range(n):
        if b[i] != 0.0 and i >= 1:
            for j in range(i):
                g = 0.0
                for k in range(i):
                    g = g + q[i * n + k] * q[k * n + j]
                for k in range(i):
                    u = k * n + j
                    q[u] = q[u] - g * q[k * n + i]
        u = i * n + i
        b[i] = q[u]
        q[u] = 1.0
        for j in range(i):
            q[i * n + j] = 0.0
            q[j * n + i] = 0.0
    return b, c


def _sstq(
    n: int,
    b: list[float],
    c: list[float],
    q: list[float],
    compute_vectors: bool,
    eps: float,
    max_iter: int,
) -> None:
    """QL iteration on a tridiagonal matrix; updates ``b`` and ``q`` in place."""
    c[n - 1] = 0.0
    d = 0.0
    f = 0.0
    for j in range(n):
        it = 0
        h = eps * (abs(b[j]) + abs(c[j]))
        if h > d:
            d = h
        m = j
        while m < n and abs(c[m]) > d:
            m += 1
        if m != j:
            while True:
                if it == max_iter:
                    raise ExcessIterationError("too many iterations")
                it += 1
                g = b[j]
                p = (b[j + 1] - g) / (2.0 * c[j])
                r = math.sqrt(p * p + 1.0)
                b[j] = c[j] / (p + r) if p >= 0.0 else c[j] / (p - r)
                h = g - b[j]
                for i in range(j + 1, n):
                    b[i] = b[i] - h
                f = f + h
                p = b[m]
                e = 1.0
                s = 0.0
                for i in range(m - 1, j - 1, -1):
                    g = e * c[i]
                    h = e * p
                    if abs(p) >= abs(c[i]):
                        e = c[i] / p
                        r = math.sqrt(e * e + 1.0)
                        c[i + 1] = s * p * r
                        s = e / r
                        e = 1.0 / r
                    else:
                        e = p / c[i]
                        r = math.sqrt(e * e + 1.0)
                        c[i + 1] = s * c[i] * r
                        s = 1.0 / r
                        e = e / r
                    p = e * b[i] - s * g
                    b[i + 1] = h + s * (e * g + s * b[i])
                    if compute_vectors:
                        for k in range(n):
                            u = k * n + i + 1
                            v = u - 1
                            old = q[u]
                            q[u] = s * q[v] + e * old
                            q[v] = e * q[v] - s * old
                c[j] = s * p
                b[j] = e * p
                if not abs(c[j]) > d:
                    break
        b[j] = b[j] + f
    for i in range(n):
        k = i
        p = b[i]
        j = i + 1
        while j < n and b[j] <= p:
            k = j
            p = b[j]
            j += 1
        if k != i:
            b[k] = b[i]
            b[i] = p
            for row in range(0, n * n, n):
                q[row + i], q[row + k] = q[row + k], q[row + i]


def tridiagonalize(
    matrix: Sequence[Sequence[float]],
) -> tuple[list[list[float]], list[float], list[float]]:
    """Reduce a real symmetric matrix to tridiagonal form.

    Returns ``(transform, diagonal, subdiagonal)``; the subdiagonal has the
    same length as the diagonal and ends with zero.
    """
    q, n = _flatten(matrix)
    if n == 0:
        return [], [], []
    b, c = _strq(n, q)
    return _unflatten(q, n), b, c


def tridiagonal_eigen(
    diagonal: Sequence[float],
    subdiagonal: Sequence[float],
    transform: Sequence[Sequence[float]] | None = None,
    compute_vectors: bool = True,
    eps: float = DEFAULT_EPS,
    max_iter: int = DEFAULT_MAX_ITER,
) -> tuple[list[float], list[list[float]] | None]:
    """Eigen-decompose a symmetric tridiagonal matrix.

    ``transform`` defaults to the identity. Column ``i`` of the returned
    matrix is the eigenvector for ``values[i]``; it is None when vectors are
    not computed.
    """
    b = [float(v) for v in diagonal]
    n = len(b)
    c = [float(v) for v in subdiagonal]
    if len(c) > n:
        raise ValueError("subdiagonal is longer than the diagonal")
    c.extend([0.0] * (n - len(c)))
    if transform is None:
        q = [1.0 if i == j else 0.0 for i in range(n) for j in range(n)]
    else:
        q, size = _flatten(transform)
        if size != n:
            raise ValueError("transform size does not match the diagonal")
    if n == 0:
        return [], [] if compute_vectors else None
    _sstq(n, b, c, q, compute_vectors, eps, max_iter)
    return b, _unflatten(q, n) if compute_vectors else None


def eigen_symmetric(
    matrix: Sequence[Sequence[float]],
    compute_vectors: bool = True,
    eps: float = 0.0,
    max_iter: int = 0,
) -> tuple[list[float], list[list[float]] | None]:
    """Eigenvalues and, optionally, eigenvectors of a dense symmetric matrix.

    A non-positive ``eps`` or ``max_iter`` selects the defaults (1e-7, 50).
    Column ``i`` of the returned matrix is the eigenvector for ``values[i]``.
    """
    if 1.0 + eps <= 1.0:
        eps = DEFAULT_EPS
    if max_iter <= 0:
        max_iter = DEFAULT_MAX_ITER
    q, n = _flatten(matrix)
    if n == 0:
        return [], [] if compute_vectors else None
    b, c = _strq(n, q)
    _sstq(n, b, c, q, compute_vectors, eps, max_iter)
    return b, _unflatten(q, n) if compute_vectors else None