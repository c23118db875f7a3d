"""Discrete hidden Markov models: Viterbi, forward-backward and expected counts."""

from __future__ import annotations

import math
import random
import warnings
from collections.abc import Sequence
from enum import IntFlag

__all__ = [
    "HMM_TINY",
    "HMM_INF",
    "Status",
    "HmmParams",
    "HmmData",
    "HmmExpectation",
    "simulate",
]

HMM_TINY = 1e-25
HMM_INF = 1e300


class Status(IntFlag):
    """Which computations have been run on an :class:`HmmData`."""

    FORWARD = 0x02
    BACKWARD = 0x04
    VITERBI = 0x40
    POSTDEC = 0x80


def _log(x: float) -> float:
    if x > 0.0:
        return math.log(x)
    if x == 0.0:
        return -math.inf
    return math.nan


def _matrix(rows: int, cols: int, fill: float = 0.0) -> list[list[float]]:
    return [[fill] * cols for _ in range(rows)]


def _first_max(values: Sequence[float], floor: float) -> tuple[float, int]:
    """Largest value strictly above ``floor`` and its first index, or (floor, -1)."""
    best, index = floor, -1
    for k, value in enumerate(values):
        if best < value:
            best, index = value, k
    return best, index


class HmmParams:
    """Model parameters for ``m`` symbols and ``n`` states.

    ``a[k][l]`` is the transition probability from state ``k`` to ``l``,
    ``e[b][k]`` the probability that state ``k`` emits symbol ``b`` and
    ``a0[k]`` the probability of starting in ``k``. Row ``e[m]`` belongs to
    the "unknown" symbol ``m`` and is all ones.
    """

    def __init__(
        self,
        m: int,
        n: int,
        a0: Sequence[float] | None = None,
        a: Sequence[Sequence[float]] | None = None,
        e: Sequence[Sequence[float]] | None = None,
    ) -> None:
        if m <= 0 or n <= 0:
            raise ValueError("the numbers of symbols and states must be positive")
        self.m = m
        self.n = n
        self.a0 = [0.0] * n if a0 is None else [float(v) for v in a0]
        if len(self.a0) != n:
            raise ValueError("a0 must have one entry per state")
        self.a = _matrix(n, n) if a is None else [[float(v) for v in row] for row in a]
        if len(self.a) != n or any(len(row) != n for row in self.a):
            raise ValueError("a must be an n by n matrix")
        if e is None:
            self.e = _matrix(m, n)
        else:
            self.e = [[float(v) for v in row] for row in e]
            if len(self.e) == m + 1:
                self.e = self.e[:m]
        if len(self.e) != m or any(len(row) != n for row in self.e):
            raise ValueError("e must have m rows of n entries")
        self.e.append([1.0] * n)
        self.ae = [_matrix(n, n) for _ in range(m + 1)]

    def pre_backward(self) -> None:
        """Precompute ``ae[b][k][l] = e[b][l] * a[k][l]`` used by backward and expect."""
        self.ae = [
            [[eb[l] * ak[l] for l in range(self.n)] for ak in self.a] for eb in self.e
        ]


class HmmExpectation:
    """Expected transition and emission counts."""

    def __init__(self, m: int, n: int) -> None:
        self.m = m
        self.n = n
        self.Q0 = 0.0
        self.A0 = [0.0] * n
        self.A = _matrix(n, n)
        self.E = _matrix(m + 1, n)

    def q0(self, params: HmmParams) -> float:
        """The maximum of the EM Q function for these counts; stored in ``Q0``."""
        total = 0.0
        for k in range(params.n):
            column = [self.E[b][k] for b in range(params.m)]
            norm = sum(column)
            total += sum(v * _log(v / norm) for v in column)
        for row in self.A:
            norm = sum(row)
            total += sum(v * _log(v / norm) for v in row)
        self.Q0 = total
        return total

    def add(self, other: HmmExpectation) -> None:
        """Add the counts of ``other`` to these."""
        if other.m != self.m or other.n != self.n:
            raise ValueError("expectations have different dimensions")
        for k in range(self.n):
            self.A0[k] += other.A0[k]
            self.A[k] = [x + y for x, y in zip(self.A[k], other.A[k])]
        for b in range(self.m):
            self.E[b] = [x + y for x, y in zip(self.E[b], other.E[b])]

    def q(self, params: HmmParams) -> float:
        """The EM Q function of ``params`` minus ``Q0``; -HMM_INF for zero probabilities."""
        total = 0.0
        for b in range(self.m):
            for eb, Eb in zip(params.e[b], self.E[b]):
                if eb <= 0.0:
                    return -HMM_INF
                total += Eb * math.log(eb)
        for ak, Ak in zip(params.a, self.A):
            for p, count in zip(ak, Ak):
                if p <= 0.0:
                    return -HMM_INF
                total += count * math.log(p)
        return total - self.Q0


class HmmData:
    """An observed symbol sequence and the results computed on it.

    Arrays are indexed by position in the sequence, starting at 0.
    """

    def __init__(self, seq: Sequence[int]) -> None:
        self.seq = [int(c) for c in seq]
        if not self.seq:
            raise ValueError("the sequence must not be empty")
        self.status = Status(0)
        self.f: list[list[float]] | None = None
        self.b: list[list[float]] | None = None
        self.s: list[float] | None = None
        self.viterbi_path: list[int] | None = None
        self.posterior_path: list[int] | None = None

    def __len__(self) -> int:
        return len(self.seq)

    def _require(self, flag: Status, what: str) -> None:
        if not self.status & flag:
            raise ValueError(f"{what} must be run first")

    def viterbi(self, params: HmmParams) -> float:
        """Most probable state path; store it in ``viterbi_path`` and return its log probability."""
        n = params.n
        la = [[_log(params.a[l][k]) for l in range(n)] for k in range(n)]
        le = [[_log(v) for v in row] for row in params.e[: params.m]]
        le.append([0.0] * n)
        length = len(self.seq)
        back: list[list[int]] = [[0] * n for _ in range(length)]
        prev = [le[self.seq[0]][k] + _log(params.a0[k]) for k in range(n)]
        for i in range(1, length):
            emit = le[self.seq[i]]
            cur = [0.0] * n
            for k in range(n):
                best, arg = _first_max([p + t for p, t in zip(prev, la[k])], -HMM_INF)
                if arg < 0:
                    raise ValueError("no state path has non-zero probability")
                cur[k] = emit[k] + best
                back[i][k] = arg
            prev = cur
        best, arg = _first_max(prev, -HMM_INF)
        if arg < 0:
            raise ValueError("no state path has non-zero probability")
        path = [0] * length
        path[-1] = arg
        for i in range(length - 1, 0, -1):
            path[i - 1] = back[i][path[i]]
        self.viterbi_path = path
        self.status |= Status.VITERBI
        return best

    def forward(self, params: HmmParams) -> None:
        """Scaled forward algorithm; fills ``f`` and the scaling factors ``s``."""
        n = params.n
        self.status &= ~Status.FORWARD
        f: list[list[float]] = []
        s: list[float] = []
        emit = params.e[self.seq[0]]
        row = [params.a0[k] * emit[k] for k in range(n)]
        total = sum(row)
        f.append([v / total for v in row])
        s.append(total)
        columns = [[params.a[l][k] for l in range(n)] for k in range(n)]
        for symbol in self.seq[1:]:
            emit = params.e[symbol]
            last = f[-1]
            row = [emit[k] * sum(x * y for x, y in zip(last, columns[k])) for k in range(n)]
            total = sum(row)
            f.append([v / total for v in row])
            s.append(total)
        self.f, self.s = f, s
        self.status |= Status.FORWARD

    def backward(self, params: HmmParams) -> None:
        """Scaled backward algorithm; needs forward() and params.pre_backward()."""
        self._require(Status.FORWARD, "forward()")
        assert self.s is not None
        n = params.n
        self.status &= ~Status.BACKWARD
        length = len(self.seq)
        b: list[list[float]] = [[] for _ in range(length)]
        b[-1] = [1.0 / self.s[-1]] * n
        for i in range(length - 2, -1, -1):
            nxt = b[i + 1]
            ae = params.ae[self.seq[i + 1]]
            b[i] = [sum(x * y for x, y in zip(ae[k], nxt)) / self.s[i] for k in range(n)]
        self.b = b
        self.status |= Status.BACKWARD
        emit = params.e[self.seq[0]]
        check = sum(params.a0[l] * b[0][l] * emit[l] for l in range(n))
        if check > 1.0 + 1e-6 or check < 1.0 - 1e-6:
            warnings.warn(f"underflow may have happened ({check:g})", RuntimeWarning, stacklevel=2)

    def log_likelihood(self) -> float:
        """Natural log-likelihood of the sequence; needs forward()."""
        self._require(Status.FORWARD, "forward()")
        assert self.s is not None
        total, prod = 0.0, 1.0
        for scale in self.s:
            prod *= scale
            if prod < HMM_TINY or prod >= 1.0 / HMM_TINY:
                total += math.log(prod)
                prod = 1.0
        return total + math.log(prod)

    def posterior_decode(self, params: HmmParams) -> list[int]:
        """Most probable state at each position; stored in ``posterior_path``."""
        self._require(Status.BACKWARD, "backward()")
        assert self.f is not None and self.b is not None and self.s is not None
        path = []
        for fu, bu, su in zip(self.f, self.b, self.s):
            _, arg = _first_max([x * y * su for x, y in zip(fu, bu)], -1.0)
            if arg < 0:
                raise ValueError("no state has a valid posterior probability")
            path.append(arg)
        self.posterior_path = path
        self.status |= Status.POSTDEC
        return path

    def posterior_state(self, params: HmmParams, u: int) -> list[float]:
        """Posterior probability of each state at position ``u``; they sum to one."""
        self._require(Status.BACKWARD, "backward()")
        assert self.f is not None and self.b is not None and self.s is not None
        if not 0 <= u < len(self.seq):
            raise IndexError("position out of range")
        su = self.s[u]
        return [x * y * su for x, y in zip(self.f[u][: params.n], self.b[u])]

    def expect(self, params: HmmParams) -> HmmExpectation:
        """Expected transition and emission counts; needs backward()."""
        self._require(Status.BACKWARD, "backward()")
        assert self.f is not None and self.b is not None and self.s is not None
        n = params.n
        he = HmmExpectation(params.m, n)
        he.A = _matrix(n, n, HMM_TINY)
        he.E = _matrix(params.m + 1, n, HMM_TINY)
        for i in range(len(self.seq) - 1):
            fu, bu, nxt, su = self.f[i], self.b[i], self.b[i + 1], self.s[i]
            counts = he.E[self.seq[i]]
            ae = params.ae[self.seq[i + 1]]
            for k in range(n):
                fuk = fu[k]
                row = he.A[k]
                for l in range(n):
                    row[l] += fuk * ae[k][l] * nxt[l]
                counts[k] += fuk * bu[k] * su
        emit = params.e[self.seq[0]]
        for l in range(n):
            he.A0[l] += params.a0[l] * emit[l] * self.b[0][l]
        return he


def _draw(weights: Sequence[float], x: float) -> int:
    """First index whose cumulative weight reaches ``x``; ``len(weights)`` if none."""
    y = 0.0
    for index, weight in enumerate(weights):
        y += weight
        if y >= x:
            return index
    return len(weights)


def simulate(params: HmmParams, length: int, rng: random.Random | None = None) -> list[int]:
    """Draw a symbol sequence of ``length`` from the model."""
    draw = (rng or random).random
    n = params.n
    emissions = [[params.e[b][k] for b in range(params.m)] for k in range(n)]
    k = min(_draw(params.a0, draw()), n - 1)
    seq = []
    for _ in range(length):
        l = min(_draw(params.a[k], draw()), n - 1)
        seq.append(_draw(emissions[l], draw()))
        k = l
    return seq