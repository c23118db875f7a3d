import math

import pytest

from kitbag.special import betai, erfc, gammap, gammaq, ks_distance, lgamma


@pytest.mark.parametrize("z", [0.5, 1.0, 2.5, 5.0, 10.0, 33.3])
def test_lgamma_matches_math(z):
    assert lgamma(z) == pytest.approx(math.lgamma(z), abs=1e-9)


@pytest.mark.parametrize("x", [-3.0, -1.0, -0.2, 0.0, 0.3, 1.0, 2.5, 5.5, 8.0])
def test_erfc_matches_math(x):
    assert erfc(x) == pytest.approx(math.erfc(x), abs=1e-9)


def test_erfc_far_tails():
    assert erfc(30.0) == 0.0
    assert erfc(-30.0) == 2.0


@pytest.mark.parametrize("s,z", [(0.5, 0.3), (2.0, 1.5), (3.0, 5.5), (10.0, 4.0), (1.0, 20.0)])
def test_gamma_pair_sums_to_one(s, z):
    assert gammap(s, z) + gammaq(s, z) == pytest.approx(1.0, abs=1e-12)


@pytest.mark.parametrize("z", [0.1, 1.0, 3.0, 7.0])
def test_gammap_exponential_case(z):
    assert gammap(1.0, z) == pytest.approx(1.0 - math.exp(-z), abs=1e-10)


@pytest.mark.parametrize("z", [0.5, 2.0, 5.5, 9.0])
def test_gammaq_integer_shape(z):
    expected = math.exp(-z) * (1.0 + z + z * z / 2.0)
    assert gammaq(3.0, z) == pytest.approx(expected, rel=1e-9)


@pytest.mark.parametrize("x", [0.1, 0.25, 0.5, 0.9])
def test_betai_uniform(x):
    assert betai(1.0, 1.0, x) == pytest.approx(x, abs=1e-9)


@pytest.mark.parametrize("a,b,x", [(2.0, 3.0, 0.3), (0.5, 4.0, 0.7), (5.0, 1.5, 0.2)])
def test_betai_symmetry(a, b, x):
    assert betai(a, b, x) + betai(b, a, 1.0 - x) == pytest.approx(1.0, abs=1e-10)


def test_betai_symmetric_midpoint_and_ends():
    assert betai(2.0, 2.0, 0.5) == pytest.approx(0.5, abs=1e-10)
    assert betai(2.0, 3.0, 0.0) == 0.0
    assert betai(2.0, 3.0, 1.0) == 1.0


def test_betai_monotone():
    values = [betai(2.0, 5.0, x / 10) for x in range(1, 10)]
    assert values == sorted(values)


def test_ks_identical_samples():
    sample = [0.22, -0.87, -2.39, -1.79, 0.37]
    assert ks_distance(sample, sample) == pytest.approx(0.0, abs=1e-12)


def test_ks_disjoint_samples():
    assert ks_distance([1.0, 2.0, 3.0], [10.0, 11.0]) == pytest.approx(1.0)


def test_ks_order_independent():
    xs = [0.22, -0.87, -2.39, -1.79, 0.37, -1.54, 1.28, -0.31]
    ys = [-5.13, -2.19, -2.43, -3.83, 0.50, -3.25, 4.32, 1.63]
    assert ks_distance(xs, ys) == ks_distance(sorted(xs), sorted(ys))
    assert 0.0 <= ks_distance(xs, ys) <= 1.0


def test_ks_empty_sample_rejected():
    with pytest.raises(ValueError):
        ks_distance([], [1.0])