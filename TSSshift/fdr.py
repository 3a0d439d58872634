#!/usr/bin/env python3
"""
FDR - Benjamini-Hochberg multiple testing correction
"""

from typing import Sequence

import numpy as np


def benjamini_hochberg(p_values: Sequence[float]) -> np.ndarray:
    """
    Adjust p-values with the Benjamini-Hochberg step-up procedure.

    q_i = p_i * m / rank_i, followed by a running minimum from the largest
    rank down so q-values are monotone in p, floored at p and capped at 1.

    Args:
        p_values: Raw p-values of all evaluable regions in one comparison

    Returns:
        q-values in the input order
    """
    pvals = np.asarray(p_values, dtype=float)
    n = len(pvals)
    if n == 0:
        return np.array([], dtype=float)
    if np.isnan(pvals).any() or (pvals < 0).any() or (pvals > 1).any():
        raise ValueError("p-values must be within [0, 1] and not NaN")

    order = np.argsort(pvals, kind='stable')
    ranks = np.arange(1, n + 1, dtype=float)
    adjusted_sorted = pvals[order] * n / ranks
    adjusted_sorted = np.minimum.accumulate(adjusted_sorted[::-1])[::-1]
    # m / rank >= 1, so q >= p; restore it where float rounding loses an ulp
    adjusted_sorted = np.maximum(adjusted_sorted, pvals[order])

    adjusted = np.empty_like(adjusted_sorted)
    adjusted[order] = adjusted_sorted
    return np.clip(adjusted, 0, 1)
