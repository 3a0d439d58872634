#!/usr/bin/env python3
"""
Region Matching - Pair comparable regions from two sample groups into consensus regions
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np

from TSSshift.regions import RegionCounts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsensusRegion:
    """Two matched regions and the union span they are compared over."""

    consensus_id: int
    chrom: str
    strand: str
    start: int
    end: int
    counts_1: RegionCounts
    counts_2: RegionCounts

    @property
    def width(self) -> int:
        return self.end - self.start + 1


def _group_by_locus(regions: Sequence[RegionCounts]) -> Dict[Tuple[str, str], List[RegionCounts]]:
    groups = defaultdict(list)
    for rc in regions:
        groups[(rc.region.chrom, rc.region.strand)].append(rc)
    for key in groups:
        groups[key].sort(key=lambda rc: (rc.region.start, rc.region.end, rc.region_id))
    return groups


def _candidate_pairs(group_1: List[RegionCounts],
                     group_2: List[RegionCounts],
                     max_distance: float) -> List[Tuple[float, str, str, RegionCounts, RegionCounts]]:
    """All (distance, id_1, id_2, rc_1, rc_2) pairs with midpoints within max_distance."""
    midpoints_2 = np.array([rc.region.midpoint for rc in group_2])
    order = np.argsort(midpoints_2, kind='stable')
    sorted_mid = midpoints_2[order]

    candidates = []
    for rc_1 in group_1:
        mid = rc_1.region.midpoint
        lo = np.searchsorted(sorted_mid, mid - max_distance, side='left')
        hi = np.searchsorted(sorted_mid, mid + max_distance, side='right')
        for j in order[lo:hi]:
            rc_2 = group_2[j]
            distance = abs(mid - rc_2.region.midpoint)
            candidates.append((distance, rc_1.region_id, rc_2.region_id, rc_1, rc_2))
    return candidates


def match_regions(regions_1: Sequence[RegionCounts],
                  regions_2: Sequence[RegionCounts],
                  max_distance: float,
                  min_threshold: float) -> Tuple[ConsensusRegion, ...]:
    """
    Pair regions of two sample groups by nearest midpoint.

    Within each chromosome/strand, candidate pairs closer than
    ``max_distance`` are visited in order of (distance, region_1 id,
    region_2 id) and claimed while neither side is already claimed, so the
    pairing is one-to-one and greedy rather than globally optimal. A claimed
    pair is kept only if both totals reach ``min_threshold``; a region whose
    nearest partner is too weak is dropped rather than re-paired.

    Args:
        regions_1: Region counts of the first sample group
        regions_2: Region counts of the second sample group
        max_distance: Maximum midpoint distance between paired regions
        min_threshold: Minimum total count required on both sides

    Returns:
        Consensus regions ordered by chromosome, strand and start, numbered from 1
    """
    if max_distance <= 0:
        raise ValueError(f"max_distance must be > 0, got {max_distance}")
    if min_threshold <= 0:
        raise ValueError(f"min_threshold must be > 0, got {min_threshold}")

    groups_1 = _group_by_locus(regions_1)
    groups_2 = _group_by_locus(regions_2)

    pairs = []
    below_threshold = 0
    for key in sorted(groups_1):
        if key not in groups_2:
            continue
        candidates = _candidate_pairs(groups_1[key], groups_2[key], max_distance)
        candidates.sort(key=lambda c: (c[0], c[1], c[2]))

        claimed_1, claimed_2 = set(), set()
        for _, id_1, id_2, rc_1, rc_2 in candidates:
            if id_1 in claimed_1 or id_2 in claimed_2:
                continue
            claimed_1.add(id_1)
            claimed_2.add(id_2)
            if rc_1.total < min_threshold or rc_2.total < min_threshold:
                below_threshold += 1
                continue
            pairs.append((rc_1, rc_2))

    logger.debug(f"Dropped {below_threshold} matched pairs below threshold {min_threshold}")

    pairs.sort(key=lambda p: (p[0].region.chrom, p[0].region.strand,
                              min(p[0].region.start, p[1].region.start),
                              max(p[0].region.end, p[1].region.end),
                              p[0].region_id))

    consensus = tuple(
        ConsensusRegion(
            consensus_id=i,
            chrom=rc_1.region.chrom,
            strand=rc_1.region.strand,
            start=min(rc_1.region.start, rc_2.region.start),
            end=max(rc_1.region.end, rc_2.region.end),
            counts_1=rc_1,
            counts_2=rc_2,
        )
        for i, (rc_1, rc_2) in enumerate(pairs, start=1)
    )
    logger.info(f"Matched {len(consensus)} consensus regions "
                f"({len(regions_1)} vs {len(regions_2)} input regions)")
    return consensus
