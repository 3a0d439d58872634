#!/usr/bin/env python3
"""
Earth Mover's Score - Signed positional shift between two TSS distributions

EMS = sum_{i=1}^{L-1} (CDF_A(i) - CDF_B(i)) / (L - 1)

Where:
    - CDF_A, CDF_B are cumulative distributions over the consensus span
    - L is the span width

EMS is the signed 1-D earth mover's (Wasserstein-1) distance scaled by the
largest possible displacement, so it lies in [-1, 1].
Positive EMS = TSS usage of B is downstream of A
Negative EMS = TSS usage of B is upstream of A
"""

import numpy as np
from scipy.stats import wasserstein_distance

from TSSshift.distribution import Distribution, InvalidDistributionError

DOWNSTREAM = 'downstream'
UPSTREAM = 'upstream'
NO_SHIFT = 'none'


def signed_ems(prob_a: np.ndarray, prob_b: np.ndarray) -> np.ndarray:
    """
    Signed EMS along the last axis of two probability arrays.

    Works on single distributions and on stacks of resampled ones.
    """
    width = prob_a.shape[-1]
    if width < 2:
        return np.zeros(prob_a.shape[:-1])
    cdf_diff = np.cumsum(prob_a, axis=-1)[..., :-1] - np.cumsum(prob_b, axis=-1)[..., :-1]
    return np.clip(cdf_diff.sum(axis=-1) / (width - 1), -1.0, 1.0)


def _check_pair(dist_a: Distribution, dist_b: Distribution):
    for dist in (dist_a, dist_b):
        if not dist.valid:
            raise InvalidDistributionError(f"Distribution for {dist.region_id} has zero total count")
    if dist_a.width != dist_b.width:
        raise ValueError(f"Distributions span different widths ({dist_a.width} vs {dist_b.width})")


def ems_score(dist_a: Distribution, dist_b: Distribution) -> float:
    """
    Calculate the earth mover's score of B relative to A.

    Args:
        dist_a: Reference distribution
        dist_b: Compared distribution over the same span

    Returns:
        Signed score in [-1, 1]; 0 for a single-position span
    """
    _check_pair(dist_a, dist_b)
    return float(signed_ems(dist_a.probabilities, dist_b.probabilities))


def earth_movers_distance(dist_a: Distribution, dist_b: Distribution) -> float:
    """Unsigned earth mover's distance between A and B, in positions (bp)."""
    _check_pair(dist_a, dist_b)
    support = np.arange(dist_a.width)
    return float(wasserstein_distance(support, support, dist_a.counts, dist_b.counts))


def shift_direction(ems: float) -> str:
    if ems > 0:
        return DOWNSTREAM
    if ems < 0:
        return UPSTREAM
    return NO_SHIFT
