#!/usr/bin/env python3
"""
Distribution - Positional TSS usage of one sample over a consensus region
"""

from dataclasses import dataclass

import numpy as np

from TSSshift.matching import ConsensusRegion
from TSSshift.regions import RegionCounts


class InvalidDistributionError(ValueError):
    """Raised when a distribution with zero total count is scored."""


@dataclass(frozen=True)
class Distribution:
    """
    Raw counts laid out over a consensus span, ordered 5' to 3'.

    For minus-strand regions the genomic axis is reversed, so a higher
    index is always further downstream in the direction of transcription.
    """

    region_id: str
    counts: np.ndarray
    total: int

    @property
    def valid(self) -> bool:
        return self.total > 0

    @property
    def width(self) -> int:
        return len(self.counts)

    @property
    def probabilities(self) -> np.ndarray:
        if not self.valid:
            raise InvalidDistributionError(f"Distribution for {self.region_id} has zero total count")
        return self.counts / self.total


def build_distribution(consensus: ConsensusRegion, region_counts: RegionCounts) -> Distribution:
    """
    Lay out the counts of one matched region over the consensus span.

    Positions of the span not covered by the region are zero-count.
    """
    region = region_counts.region
    counts = np.zeros(consensus.width, dtype=np.int64)
    shift = region.start - consensus.start
    for offset, count in region_counts.counts.items():
        counts[shift + offset] += count

    if consensus.strand == '-':
        counts = counts[::-1].copy()
    counts.flags.writeable = False

    return Distribution(region_id=region.region_id, counts=counts, total=region_counts.total)
