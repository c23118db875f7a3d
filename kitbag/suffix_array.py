"""Suffix arrays and Burrows-Wheeler transforms of strings with several sentinels.

Every zero byte is a sentinel. A sentinel sorts before every other symbol,
and an earlier sentinel sorts before a later one, so all suffixes are
distinct. The last byte of the input must be a sentinel.
"""

from __future__ import annotations

__all__ = ["suffix_array", "bwt"]

_ALPHABET = 256


def _prepare(text: bytes | bytearray | memoryview, k: int) -> bytes:
    data = bytes(text)
    if not data:
        raise ValueError("the text must not be empty")
    if data[-1] != 0:
        raise ValueError("the text must end with a zero sentinel")
    if k < 0 or k > _ALPHABET:
        k = _ALPHABET
    if max(data) >= k:
        raise ValueError(f"symbol outside the alphabet of size {k}")
    return data


def suffix_array(text: bytes | bytearray | memoryview, k: int = _ALPHABET) -> list[int]:
    """Start positions of the suffixes of ``text`` in sorted order.

    ``k`` is the alphabet size including the sentinel; values outside
    0..256 mean 256.
    """
    data = _prepare(text, k)
    n = len(data)
    # Sentinels rank by position, below every real symbol.
    rank = [i if c == 0 else c + n for i, c in enumerate(data)]
    order = sorted(range(n), key=rank.__getitem__)
    step = 1
    while True:
        def key(i: int, step: int = step) -> tuple[int, int]:
            j = i + step
            return rank[i], rank[j] if j < n else -1

        order.sort(key=key)
        new_rank = [0] * n
        current = 0
        previous = key(order[0])
        for position in order:
            this = key(position)
            if this != previous:
                current += 1
                previous = this
            new_rank[position] = current
        rank = new_rank
        if current == n - 1:
            return order
        step <<= 1


def bwt(text: bytes | bytearray | memoryview, k: int = _ALPHABET) -> bytes:
    """Burrows-Wheeler transform of ``text``; the suffix at position 0 gives a zero."""
    data = _prepare(text, k)
    return bytes(data[i - 1] if i else 0 for i in suffix_array(data, k))