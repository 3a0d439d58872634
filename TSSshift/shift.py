#!/usr/bin/env python3
"""
TSS Shift - Detect shifts in TSS usage between two conditions

For each pair of matched regions, the earth mover's score (EMS) measures how
far TSS usage moved along the region, and a permutation test on the pooled
TSS counts tells whether the shift is larger than expected by chance.
p-values are corrected with Benjamini-Hochberg across all regions of the
comparison.
"""

import typer
import pandas as pd
import numpy as np
from typing import Optional, Dict, Any, Mapping, Sequence
from dataclasses import dataclass, field, asdict
from types import MappingProxyType
from pathlib import Path
import logging
from multiprocessing import Pool

from TSSshift.regions import SampleGroup, sample_group_from_tables
from TSSshift.matching import ConsensusRegion, match_regions
from TSSshift.distribution import InvalidDistributionError, build_distribution
from TSSshift.ems import ems_score, earth_movers_distance
from TSSshift.permutation import permutation_pvalue, region_seed
from TSSshift.results import (
    EVALUATED, NON_EVALUABLE, SHIFT, Comparison, ResultRegistry, aggregate_results,
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

__version__ = "0.1.0"

app = typer.Typer(help=f"Detect TSS shifts between two conditions (v{__version__})")


@dataclass(frozen=True)
class ShiftConfig:
    """Parameters of one shift comparison; validated on construction."""

    comparison_name: str
    max_distance: float = 100
    min_threshold: float = 10
    n_resamples: int = 1000
    fdr_threshold: float = 0.05
    seed: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.comparison_name, str) or not self.comparison_name.strip():
            raise ValueError("comparison_name must be a non-empty string")
        if self.max_distance <= 0:
            raise ValueError(f"max_distance must be > 0, got {self.max_distance}")
        if self.min_threshold <= 0:
            raise ValueError(f"min_threshold must be > 0, got {self.min_threshold}")
        if int(self.n_resamples) != self.n_resamples or self.n_resamples < 1:
            raise ValueError(f"n_resamples must be a positive integer, got {self.n_resamples}")
        if not 0 < self.fdr_threshold <= 1:
            raise ValueError(f"fdr_threshold must be in (0, 1], got {self.fdr_threshold}")
        if self.seed is not None and (int(self.seed) != self.seed or self.seed < 0):
            raise ValueError(f"seed must be a non-negative integer, got {self.seed}")


@dataclass(frozen=True)
class ShiftExperiment:
    """
    Sample groups and the results computed from them.

    Every operation returns a new experiment; nothing is changed in place.
    """

    samples: Mapping[str, SampleGroup] = field(default_factory=dict)
    results: ResultRegistry = field(default_factory=ResultRegistry)

    def __post_init__(self):
        object.__setattr__(self, 'samples', MappingProxyType(dict(self.samples)))

    def add_sample_group(self, group: SampleGroup) -> 'ShiftExperiment':
        if group.name in self.samples:
            raise ValueError(f"Sample group '{group.name}' already exists")
        samples = dict(self.samples)
        samples[group.name] = group
        return ShiftExperiment(samples=samples, results=self.results)

    def sample_group(self, name: str) -> SampleGroup:
        if name not in self.samples:
            raise ValueError(f"Unknown sample group '{name}'. Available: {sorted(self.samples)}")
        return self.samples[name]

    def with_result(self, operation: str, name: str, value: Any, replace: bool = False) -> 'ShiftExperiment':
        return ShiftExperiment(
            samples=self.samples,
            results=self.results.register(operation, name, value, replace=replace),
        )

    def comparison(self, name: str) -> Comparison:
        return self.results.get(SHIFT, name)


def score_region(args) -> Dict[str, Any]:
    """
    Score a single consensus region.

    Args:
        args: Tuple of (consensus_region, n_resamples, base_seed)

    Returns:
        Dictionary with ems, emd, p_value and status
    """
    consensus, n_resamples, base_seed = args

    dist_1 = build_distribution(consensus, consensus.counts_1)
    dist_2 = build_distribution(consensus, consensus.counts_2)

    try:
        ems = ems_score(dist_1, dist_2)
    except InvalidDistributionError as e:
        logger.debug(f"Consensus region {consensus.consensus_id} not evaluable: {e}")
        return {'ems': np.nan, 'emd': np.nan, 'p_value': np.nan, 'status': NON_EVALUABLE}

    p_value = permutation_pvalue(
        consensus, dist_1, dist_2, ems, n_resamples,
        region_seed(base_seed, consensus.consensus_id),
    )
    return {
        'ems': ems,
        'emd': earth_movers_distance(dist_1, dist_2),
        'p_value': p_value,
        'status': EVALUATED,
    }


def score_consensus_regions(consensus_regions: Sequence[ConsensusRegion],
                            sample_1: str,
                            sample_2: str,
                            config: ShiftConfig,
                            n_processes: int = 1) -> Comparison:
    """
    Score matched regions, correct p-values and assemble the comparison.

    Regions with a zero-count side are kept as non-evaluable rows and left
    out of the FDR correction.

    Args:
        consensus_regions: Matched regions to score
        sample_1: Name of the reference sample group
        sample_2: Name of the compared sample group
        config: Comparison parameters
        n_processes: Number of processes for region scoring

    Returns:
        Comparison with one result per consensus region
    """
    if n_processes < 1:
        raise ValueError(f"n_processes must be >= 1, got {n_processes}")

    base_seed = config.seed
    if base_seed is None:
        base_seed = int(np.random.SeedSequence().entropy)
        logger.info(f"No seed given, using {base_seed}")

    args_list = [(cr, config.n_resamples, base_seed) for cr in consensus_regions]

    logger.info(f"Scoring {len(args_list)} regions with {config.n_resamples} resamples each")
    if n_processes > 1 and len(args_list) > 100:
        with Pool(processes=n_processes) as pool:
            scores = pool.map(score_region, args_list)
    else:
        scores = [score_region(args) for args in args_list]

    parameters = asdict(config)
    parameters['seed'] = base_seed

    return aggregate_results(
        config.comparison_name, sample_1, sample_2,
        consensus_regions, scores,
        fdr_threshold=config.fdr_threshold,
        parameters=parameters,
    )


def compute_shift(group_1: SampleGroup,
                  group_2: SampleGroup,
                  config: ShiftConfig,
                  n_processes: int = 1) -> Comparison:
    """
    Compare TSS usage of two sample groups.

    Args:
        group_1: Reference sample group
        group_2: Compared sample group; positive EMS means its TSSs moved downstream
        config: Comparison parameters
        n_processes: Number of processes for region scoring

    Returns:
        Comparison with one result per matched region
    """
    if n_processes < 1:
        raise ValueError(f"n_processes must be >= 1, got {n_processes}")

    consensus_regions = match_regions(
        group_1.regions, group_2.regions, config.max_distance, config.min_threshold
    )
    return score_consensus_regions(
        consensus_regions, group_1.name, group_2.name, config, n_processes=n_processes
    )


def tss_shift(experiment: ShiftExperiment,
              sample_1: str,
              sample_2: str,
              comparison_name: str,
              max_distance: float = 100,
              min_threshold: float = 10,
              n_resamples: int = 1000,
              fdr_threshold: float = 0.05,
              seed: Optional[int] = None,
              n_processes: int = 1,
              replace: bool = False) -> ShiftExperiment:
    """
    Run a shift comparison and register it under ``comparison_name``.

    Returns:
        New experiment with the comparison added to its results
    """
    config = ShiftConfig(
        comparison_name=comparison_name,
        max_distance=max_distance,
        min_threshold=min_threshold,
        n_resamples=n_resamples,
        fdr_threshold=fdr_threshold,
        seed=seed,
    )
    group_1 = experiment.sample_group(sample_1)
    group_2 = experiment.sample_group(sample_2)
    if (SHIFT, comparison_name) in experiment.results and not replace:
        raise ValueError(f"Comparison '{comparison_name}' already exists; pass replace=True to overwrite it")

    comparison = compute_shift(group_1, group_2, config, n_processes=n_processes)
    return experiment.with_result(SHIFT, comparison_name, comparison, replace=replace)


@app.command("compare")
def compare_command(
    tss_file: Path = typer.Option(
        ..., "-t", "--tss",
        help="Input TSS table with raw counts (chr, pos, strand, samples...)"
    ),
    clusters_1: Path = typer.Option(
        ..., "--clusters-1",
        help="Cluster file of the first sample"
    ),
    clusters_2: Path = typer.Option(
        ..., "--clusters-2",
        help="Cluster file of the second sample"
    ),
    sample_1: str = typer.Option(
        ..., "--sample-1",
        help="First sample column (reference)"
    ),
    sample_2: str = typer.Option(
        ..., "--sample-2",
        help="Second sample column (compared against the first)"
    ),
    comparison_name: str = typer.Option(
        ..., "-n", "--name",
        help="Name of the comparison"
    ),
    output_file: Path = typer.Option(
        ..., "-o", "--output",
        help="Output shift result table"
    ),
    max_distance: float = typer.Option(
        100, "--max-distance",
        help="Maximum distance between cluster midpoints to pair them"
    ),
    min_threshold: float = typer.Option(
        10, "--min-threshold",
        help="Minimum total count required in both paired clusters"
    ),
    n_resamples: int = typer.Option(
        1000, "--n-resamples",
        help="Number of permutation resamples per region"
    ),
    fdr_threshold: float = typer.Option(
        0.05, "--fdr-threshold",
        help="FDR cutoff for calling a shift significant"
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed",
        help="Random seed for reproducible p-values"
    ),
    processes: int = typer.Option(
        1, "-p", "--processes",
        help="Number of processes"
    ),
):
    """
    Detect TSS shifts between two samples.

    Positive EMS: TSS usage of sample 2 is downstream of sample 1.
    Negative EMS: TSS usage of sample 2 is upstream of sample 1.

    Example:
        tssshift shift compare -t tss.tsv \\
            --clusters-1 control.clusters.tsv --clusters-2 treat.clusters.tsv \\
            --sample-1 control --sample-2 treat -n control_vs_treat -o shift.tsv --seed 1
    """
    for f in (tss_file, clusters_1, clusters_2):
        if not f.exists():
            logger.error(f"File not found: {f}")
            raise typer.Exit(1)

    try:
        config = ShiftConfig(
            comparison_name=comparison_name,
            max_distance=max_distance,
            min_threshold=min_threshold,
            n_resamples=n_resamples,
            fdr_threshold=fdr_threshold,
            seed=seed,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e))

    logger.info(f"Loading TSS file: {tss_file}")
    tss_df = pd.read_csv(tss_file, sep='\t')

    experiment = ShiftExperiment()
    for name, cluster_file in ((sample_1, clusters_1), (sample_2, clusters_2)):
        logger.info(f"Loading cluster file for {name}: {cluster_file}")
        cluster_df = pd.read_csv(cluster_file, sep='\t')
        try:
            group = sample_group_from_tables(name, tss_df, cluster_df, name)
            experiment = experiment.add_sample_group(group)
        except ValueError as e:
            raise typer.BadParameter(str(e))

    experiment = tss_shift(
        experiment, sample_1, sample_2, config.comparison_name,
        max_distance=config.max_distance,
        min_threshold=config.min_threshold,
        n_resamples=config.n_resamples,
        fdr_threshold=config.fdr_threshold,
        seed=config.seed,
        n_processes=processes,
    )

    result_df = experiment.results.table(comparison_name)
    result_df.to_csv(output_file, sep='\t', index=False)
    logger.info(f"Saved {len(result_df)} regions to {output_file}")

    # Report statistics
    evaluated = result_df[result_df['status'] == EVALUATED]
    significant = evaluated[evaluated['significant']]
    logger.info(f"Shift results for '{comparison_name}':")
    logger.info(f"  Evaluated: {len(evaluated)}")
    logger.info(f"  Non-evaluable: {len(result_df) - len(evaluated)}")
    logger.info(f"  Significant: {len(significant)}")
    for direction, count in significant['direction'].value_counts().items():
        logger.info(f"    {direction}: {count}")


if __name__ == '__main__':
    app()
