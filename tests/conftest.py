"""Shared helpers for building regions and sample groups."""

import pytest

from TSSshift.regions import GenomicRegion, RegionCounts, SampleGroup


def make_counts(values, start=100, chrom="chr1", strand="+", region_id=None):
    """RegionCounts for a region starting at ``start`` with one value per position."""
    end = start + len(values) - 1
    region = GenomicRegion(
        chrom=chrom, start=start, end=end, strand=strand,
        region_id=region_id or f"{chrom}:{start}-{end}:{strand}",
    )
    counts = {i: v for i, v in enumerate(values) if v}
    return RegionCounts(region=region, total=sum(values), counts=counts)


def make_group(name, *region_counts):
    return SampleGroup(name=name, regions=tuple(region_counts))


@pytest.fixture
def counts_factory():
    return make_counts


@pytest.fixture
def group_factory():
    return make_group
