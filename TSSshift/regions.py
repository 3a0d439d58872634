#!/usr/bin/env python3
"""
Regions - Genomic regions and per-sample TSS counts within them
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

STRANDS = ('+', '-')


@dataclass(frozen=True)
class GenomicRegion:
    """A stranded genomic interval with inclusive 1-based coordinates."""

    chrom: str
    start: int
    end: int
    strand: str
    region_id: str

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Region {self.region_id}: end ({self.end}) < start ({self.start})")
        if self.strand not in STRANDS:
            raise ValueError(f"Region {self.region_id}: strand must be '+' or '-', got {self.strand!r}")

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    @property
    def midpoint(self) -> float:
        return (self.start + self.end) / 2


@dataclass(frozen=True)
class RegionCounts:
    """
    Raw TSS counts of one sample inside one region.

    Args:
        region: The region the counts belong to
        total: Total count of the region (must equal the sum of ``counts``)
        counts: Mapping of 0-based offset from ``region.start`` to raw count
    """

    region: GenomicRegion
    total: int
    counts: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self):
        clean = {}
        for offset, count in self.counts.items():
            offset = int(offset)
            if offset < 0 or offset >= self.region.width:
                raise ValueError(
                    f"Region {self.region.region_id}: offset {offset} outside [0, {self.region.width - 1}]"
                )
            if count < 0:
                raise ValueError(f"Region {self.region.region_id}: negative count at offset {offset}")
            if count != int(count):
                raise ValueError(f"Region {self.region.region_id}: counts must be integers, got {count}")
            if count:
                clean[offset] = clean.get(offset, 0) + int(count)

        observed = sum(clean.values())
        if self.total != observed:
            raise ValueError(
                f"Region {self.region.region_id}: total ({self.total}) does not match summed counts ({observed})"
            )
        object.__setattr__(self, 'total', int(self.total))
        object.__setattr__(self, 'counts', clean)

    @property
    def region_id(self) -> str:
        return self.region.region_id

    @classmethod
    def from_positions(cls, region: GenomicRegion, positions: Iterable[int],
                       values: Iterable[int]) -> 'RegionCounts':
        """Build counts from absolute genomic positions inside ``region``."""
        counts: Dict[int, int] = {}
        for pos, value in zip(positions, values):
            offset = int(pos) - region.start
            counts[offset] = counts.get(offset, 0) + value
        return cls(region=region, total=sum(counts.values()), counts=counts)


@dataclass(frozen=True)
class SampleGroup:
    """A named condition with replicate-merged counts per region."""

    name: str
    regions: Tuple[RegionCounts, ...]

    def __post_init__(self):
        if not self.name:
            raise ValueError("Sample group name must not be empty")
        regions = tuple(self.regions)
        seen = set()
        for rc in regions:
            if rc.region_id in seen:
                raise ValueError(f"Sample group {self.name}: duplicate region id {rc.region_id}")
            seen.add(rc.region_id)
        object.__setattr__(self, 'regions', regions)

    def __len__(self) -> int:
        return len(self.regions)

    def get(self, region_id: str) -> Optional[RegionCounts]:
        for rc in self.regions:
            if rc.region_id == region_id:
                return rc
        return None


def region_id_for(chrom: str, start: int, end: int, strand: str) -> str:
    return f"{chrom}:{start}-{end}:{strand}"


def sample_group_from_tables(name: str,
                             tss_df: pd.DataFrame,
                             cluster_df: pd.DataFrame,
                             sample_col: str) -> SampleGroup:
    """
    Build a sample group from a TSS table and a cluster table.

    Args:
        name: Condition label for the group
        tss_df: TSS table with chr, pos, strand and sample columns
        cluster_df: Cluster table with chr, start, end, strand columns
        sample_col: Sample column in ``tss_df`` holding the raw counts

    Returns:
        SampleGroup with one RegionCounts per cluster
    """
    missing = [c for c in ['chr', 'pos', 'strand'] if c not in tss_df.columns]
    if missing:
        raise ValueError(f"TSS table is missing columns {missing}")
    if sample_col not in tss_df.columns:
        available = [c for c in tss_df.columns if c not in ['chr', 'pos', 'strand']]
        raise ValueError(f"Sample '{sample_col}' not found. Available: {available}")
    missing = [c for c in ['chr', 'start', 'end', 'strand'] if c not in cluster_df.columns]
    if missing:
        raise ValueError(f"Cluster table for {name} is missing columns {missing}")

    # Index TSS positions per chromosome/strand for range lookups
    tss_groups = {}
    for (chr_name, strand), group in tss_df.groupby(['chr', 'strand']):
        group = group.sort_values('pos')
        tss_groups[(chr_name, strand)] = (
            group['pos'].to_numpy(dtype=np.int64),
            group[sample_col].to_numpy(),
        )

    regions = []
    for row in cluster_df.itertuples(index=False):
        chr_name, strand = row.chr, row.strand
        start, end = int(row.start), int(row.end)
        region = GenomicRegion(
            chrom=str(chr_name), start=start, end=end, strand=strand,
            region_id=region_id_for(chr_name, start, end, strand),
        )
        positions, values = tss_groups.get((chr_name, strand), (np.array([], dtype=np.int64), np.array([])))
        lo = np.searchsorted(positions, start, side='left')
        hi = np.searchsorted(positions, end, side='right')
        regions.append(RegionCounts.from_positions(region, positions[lo:hi], values[lo:hi]))

    logger.info(f"Built sample group '{name}' with {len(regions)} regions from column '{sample_col}'")
    return SampleGroup(name=name, regions=tuple(regions))
