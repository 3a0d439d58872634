"""Tests for the earth mover's score."""

import numpy as np
import pytest

from TSSshift.distribution import Distribution, InvalidDistributionError
from TSSshift.ems import (
    DOWNSTREAM,
    NO_SHIFT,
    UPSTREAM,
    earth_movers_distance,
    ems_score,
    shift_direction,
    signed_ems,
)


def dist(values, region_id="r"):
    counts = np.asarray(values, dtype=np.int64)
    return Distribution(region_id=region_id, counts=counts, total=int(counts.sum()))


class TestEMSScore:
    """Tests for ems_score."""

    def test_maximal_downstream_shift(self):
        assert ems_score(dist([10, 0, 0, 0, 0]), dist([0, 0, 0, 0, 10])) == 1.0

    def test_maximal_upstream_shift(self):
        assert ems_score(dist([0, 0, 0, 0, 10]), dist([10, 0, 0, 0, 0])) == -1.0

    def test_identity(self):
        a = dist([5, 5, 5, 5, 5])
        assert ems_score(a, a) == 0.0

    def test_partial_shift(self):
        # One position out of a span of five
        assert ems_score(dist([0, 4, 0, 0, 0]), dist([0, 0, 4, 0, 0])) == pytest.approx(0.25)

    def test_scale_invariant(self):
        a, b = dist([1, 2, 3, 0]), dist([0, 1, 2, 3])
        a10, b10 = dist([10, 20, 30, 0]), dist([0, 10, 20, 30])
        assert ems_score(a, b) == pytest.approx(ems_score(a10, b10))

    def test_single_position_span(self):
        assert ems_score(dist([3]), dist([7])) == 0.0

    def test_properties_on_random_pairs(self):
        """Antisymmetry, identity and bounds hold for arbitrary count vectors."""
        rng = np.random.default_rng(7)
        for _ in range(200):
            width = int(rng.integers(1, 30))
            a = dist(rng.integers(0, 20, size=width) + np.eye(1, width, 0, dtype=np.int64)[0])
            b = dist(rng.integers(0, 20, size=width) + np.eye(1, width, width - 1, dtype=np.int64)[0])
            forward = ems_score(a, b)
            assert forward == -ems_score(b, a)
            assert ems_score(a, a) == 0.0
            assert -1.0 <= forward <= 1.0

    def test_invalid_distribution(self):
        with pytest.raises(InvalidDistributionError):
            ems_score(dist([0, 0, 0]), dist([1, 2, 3]))
        with pytest.raises(InvalidDistributionError):
            ems_score(dist([1, 2, 3]), dist([0, 0, 0]))

    def test_width_mismatch(self):
        with pytest.raises(ValueError):
            ems_score(dist([1, 2]), dist([1, 2, 3]))


class TestSignedEMS:
    """Tests for the vectorised score."""

    def test_rows_match_single_scores(self):
        a = np.array([[1.0, 0.0, 0.0], [0.5, 0.5, 0.0]])
        b = np.array([[0.0, 0.0, 1.0], [0.5, 0.5, 0.0]])
        np.testing.assert_allclose(signed_ems(a, b), [1.0, 0.0])


class TestEarthMoversDistance:
    """Tests for the unsigned distance."""

    def test_matches_scaled_ems_for_one_way_shift(self):
        a, b = dist([0, 4, 0, 0, 0]), dist([0, 0, 0, 4, 0])
        assert earth_movers_distance(a, b) == pytest.approx(2.0)
        assert earth_movers_distance(a, b) == pytest.approx(abs(ems_score(a, b)) * (a.width - 1))

    def test_identity(self):
        a = dist([1, 3, 2])
        assert earth_movers_distance(a, a) == pytest.approx(0.0)


class TestShiftDirection:
    """Tests for shift_direction."""

    def test_directions(self):
        assert shift_direction(0.3) == DOWNSTREAM
        assert shift_direction(-0.01) == UPSTREAM
        assert shift_direction(0.0) == NO_SHIFT
        assert shift_direction(float('nan')) == NO_SHIFT
