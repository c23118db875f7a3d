import math
import random

import pytest

from kitbag.rmq import RmqTree


def _random_tree(seed, count=300, key_range=1000):
    rng = random.Random(seed)
    tree = RmqTree()
    reference = {}
    for _ in range(count):
        key = rng.randrange(key_range)
        value = rng.randrange(100)
        inserted = tree.insert(key, value)
        assert inserted == (key not in reference)
        reference.setdefault(key, value)
    return tree, reference, rng


def test_worked_example_from_letters():
    tree = RmqTree()
    for ch in "MNOLKQOPHIA":
        tree.insert(ch, ord(ch))
    assert "".join(tree) == "AHIKLMNOPQ"


def test_duplicate_insert_keeps_old_value():
    tree = RmqTree()
    assert tree.insert(5, "first") is True
    assert tree.insert(5, "second") is False
    assert tree.find(5) == "first"
    assert len(tree) == 1


def test_sorted_iteration_and_reverse():
    tree, reference, _ = _random_tree(1)
    assert list(tree) == sorted(reference)
    assert list(reversed(tree)) == sorted(reference, reverse=True)
    assert list(tree.items()) == sorted(reference.items())
    assert len(tree) == len(reference)


def test_contains_and_find():
    tree, reference, _ = _random_tree(2)
    for key in range(1000):
        assert (key in tree) == (key in reference)
        assert tree.find(key) == reference.get(key)


def test_rank_counts_keys_not_greater():
    tree, reference, _ = _random_tree(3)
    keys = sorted(reference)
    for probe in (-1, 0, 17, 500, 999, 1000):
        assert tree.rank(probe) == sum(1 for k in keys if k <= probe)


def test_interval_bounds():
    tree = RmqTree((k, k) for k in (10, 20, 30))
    assert tree.interval(20) == (20, 20)
    assert tree.interval(25) == (20, 30)
    assert tree.interval(5) == (None, 10)
    assert tree.interval(35) == (30, None)


def test_rmq_matches_scan():
    tree, reference, rng = _random_tree(4)
    for _ in range(200):
        lo = rng.randrange(-10, 1010)
        hi = rng.randrange(-10, 1010)
        inside = [(v, k) for k, v in reference.items() if lo <= k <= hi]
        result = tree.rmq(lo, hi)
        if not inside:
            assert result is None
        else:
            value, key = min(inside)
            assert result == (key, value)


def test_rmq_empty_tree_and_reversed_bounds():
    tree = RmqTree()
    assert tree.rmq(0, 10) is None
    tree.insert(3, 1)
    assert tree.rmq(5, 1) is None
    assert tree.rmq(3, 3) == (3, 1)


def test_erase_returns_value_and_keeps_order():
    tree, reference, rng = _random_tree(5)
    keys = list(reference)
    rng.shuffle(keys)
    for key in keys[: len(keys) // 2]:
        assert tree.erase(key) == reference.pop(key)
        assert key not in tree
    assert list(tree) == sorted(reference)
    lo, hi = 100, 800
    inside = [(v, k) for k, v in reference.items() if lo <= k <= hi]
    value, key = min(inside)
    assert tree.rmq(lo, hi) == (key, value)


def test_erase_missing_raises():
    tree = RmqTree([(1, 1)])
    with pytest.raises(KeyError):
        tree.erase(2)
    with pytest.raises(KeyError):
        RmqTree().erase(1)


def test_erase_first_drains_in_order():
    tree, reference, _ = _random_tree(6, count=100)
    drained = []
    while len(tree):
        drained.append(tree.erase_first())
    assert drained == sorted(reference.items())
    with pytest.raises(KeyError):
        tree.erase_first()


def test_iter_from():
    tree, reference, _ = _random_tree(7)
    for probe in (-5, 0, 333, 999, 2000):
        assert list(tree.iter_from(probe)) == [k for k in sorted(reference) if k >= probe]


def test_height_stays_logarithmic():
    tree = RmqTree((k, -k) for k in range(1024))
    assert tree.height <= 1.45 * math.log2(1024 + 2)
    for k in range(0, 1024, 2):
        tree.erase(k)
    assert len(tree) == 512
    assert tree.height <= 1.45 * math.log2(512 + 2)
    assert tree.rmq(0, 1023) == (1023, -1023)


def test_rmq_ties_go_to_smallest_key():
    tree = RmqTree((k, 7) for k in range(50))
    assert tree.rmq(10, 40) == (10, 7)