"""Tests for the permutation test."""

import numpy as np
import pytest

from TSSshift.distribution import InvalidDistributionError, build_distribution
from TSSshift.ems import ems_score
from TSSshift.matching import ConsensusRegion
from TSSshift.permutation import null_ems_distribution, permutation_pvalue, region_seed

from conftest import make_counts


def prepare(values_1, values_2):
    rc_1, rc_2 = make_counts(values_1), make_counts(values_2)
    cr = ConsensusRegion(
        consensus_id=1, chrom="chr1", strand="+",
        start=rc_1.region.start, end=rc_1.region.end,
        counts_1=rc_1, counts_2=rc_2,
    )
    return cr, build_distribution(cr, rc_1), build_distribution(cr, rc_2)


class TestNullDistribution:
    """Tests for null_ems_distribution."""

    def test_shape_and_bounds(self):
        _, a, b = prepare([10, 0, 0, 0, 0], [0, 0, 0, 0, 10])
        null = null_ems_distribution(a, b, 500, seed=1)
        assert null.shape == (500,)
        assert (np.abs(null) <= 1).all()

    def test_identical_pooled_positions_give_zero(self):
        """All counts at one position leave no room for a shift."""
        _, a, b = prepare([0, 0, 4, 0], [0, 0, 1, 0])
        null = null_ems_distribution(a, b, 100, seed=3)
        np.testing.assert_array_equal(null, 0.0)

    def test_invalid_distribution(self):
        _, a, b = prepare([0, 0, 0], [1, 1, 1])
        with pytest.raises(InvalidDistributionError):
            null_ems_distribution(a, b, 10, seed=1)

    @pytest.mark.parametrize("n_resamples", [0, -1])
    def test_invalid_resamples(self, n_resamples):
        _, a, b = prepare([1, 1], [1, 1])
        with pytest.raises(ValueError):
            null_ems_distribution(a, b, n_resamples, seed=1)


class TestPermutationPvalue:
    """Tests for permutation_pvalue."""

    def test_maximal_shift_is_significant(self):
        cr, a, b = prepare([10, 0, 0, 0, 0], [0, 0, 0, 0, 10])
        p = permutation_pvalue(cr, a, b, ems_score(a, b), 1000, seed=42)
        assert p < 0.01
        assert p >= 1 / 1001

    def test_no_shift_gives_p_of_one(self):
        cr, a, b = prepare([5, 5, 5, 5, 5], [5, 5, 5, 5, 5])
        p = permutation_pvalue(cr, a, b, ems_score(a, b), 1000, seed=42)
        assert p == 1.0

    def test_reproducible_with_seed(self):
        cr, a, b = prepare([3, 5, 2, 0, 1], [0, 1, 4, 5, 3])
        observed = ems_score(a, b)
        p1 = permutation_pvalue(cr, a, b, observed, 500, seed=region_seed(11, 4))
        p2 = permutation_pvalue(cr, a, b, observed, 500, seed=region_seed(11, 4))
        assert p1 == p2

    def test_single_count_is_allowed(self):
        cr, a, b = prepare([1, 0, 0], [0, 3, 4])
        p = permutation_pvalue(cr, a, b, ems_score(a, b), 200, seed=5)
        assert 0 < p <= 1

    def test_invalid_resamples(self):
        cr, a, b = prepare([1, 1], [1, 1])
        with pytest.raises(ValueError):
            permutation_pvalue(cr, a, b, 0.0, 0, seed=1)


class TestRegionSeed:
    """Tests for region_seed."""

    def test_deterministic(self):
        first = np.random.default_rng(region_seed(7, 3)).integers(0, 2**31, size=5)
        second = np.random.default_rng(region_seed(7, 3)).integers(0, 2**31, size=5)
        np.testing.assert_array_equal(first, second)

    def test_regions_get_independent_streams(self):
        first = np.random.default_rng(region_seed(7, 1)).integers(0, 2**31, size=5)
        second = np.random.default_rng(region_seed(7, 2)).integers(0, 2**31, size=5)
        assert not np.array_equal(first, second)
