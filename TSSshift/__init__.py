# TSSshift package init
"""
TSSshift: TSS shift analysis

Detects and tests shifts in the positional distribution of TSS usage
within matched regions between two conditions.
"""

__version__ = "0.1.0"

from TSSshift.regions import GenomicRegion, RegionCounts, SampleGroup, sample_group_from_tables
from TSSshift.matching import ConsensusRegion, match_regions
from TSSshift.distribution import Distribution, InvalidDistributionError, build_distribution
from TSSshift.ems import ems_score, earth_movers_distance, shift_direction
from TSSshift.permutation import permutation_pvalue, null_ems_distribution, region_seed
from TSSshift.fdr import benjamini_hochberg
from TSSshift.results import Comparison, ResultRegistry, ShiftResult, aggregate_results
from TSSshift.shift import ShiftConfig, ShiftExperiment, compute_shift, score_consensus_regions, tss_shift
from TSSshift.correlation import correlation_matrix
from TSSshift.main import app, main

__all__ = [
    'GenomicRegion',
    'RegionCounts',
    'SampleGroup',
    'sample_group_from_tables',
    'ConsensusRegion',
    'match_regions',
    'Distribution',
    'InvalidDistributionError',
    'build_distribution',
    'ems_score',
    'earth_movers_distance',
    'shift_direction',
    'permutation_pvalue',
    'null_ems_distribution',
    'region_seed',
    'benjamini_hochberg',
    'Comparison',
    'ResultRegistry',
    'ShiftResult',
    'aggregate_results',
    'ShiftConfig',
    'ShiftExperiment',
    'compute_shift',
    'score_consensus_regions',
    'tss_shift',
    'correlation_matrix',
    'app',
    'main',
    '__version__',
]
