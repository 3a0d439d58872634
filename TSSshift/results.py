#!/usr/bin/env python3
"""
Results - Shift result tables and the registry that holds them by comparison name
"""

import logging
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from TSSshift.ems import NO_SHIFT, shift_direction
from TSSshift.fdr import benjamini_hochberg
from TSSshift.matching import ConsensusRegion

logger = logging.getLogger(__name__)

EVALUATED = 'evaluated'
NON_EVALUABLE = 'non_evaluable'

SHIFT = 'shift'


@dataclass(frozen=True)
class ShiftResult:
    consensus_id: int
    chrom: str
    start: int
    end: int
    strand: str
    region_1: str
    region_2: str
    total_1: int
    total_2: int
    ems: float
    emd: float
    p_value: float
    q_value: float
    significant: bool
    direction: str
    status: str

    @property
    def evaluable(self) -> bool:
        return self.status == EVALUATED


RESULT_COLUMNS = [f.name for f in fields(ShiftResult)]


@dataclass(frozen=True)
class Comparison:
    """All shift results of one comparison between two sample groups."""

    name: str
    sample_1: str
    sample_2: str
    results: Tuple[ShiftResult, ...]
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'results', tuple(self.results))
        object.__setattr__(self, 'parameters', MappingProxyType(dict(self.parameters)))

    def __len__(self) -> int:
        return len(self.results)

    def evaluable(self) -> List[ShiftResult]:
        return [r for r in self.results if r.evaluable]

    def non_evaluable(self) -> List[ShiftResult]:
        return [r for r in self.results if not r.evaluable]

    def significant(self) -> List[ShiftResult]:
        return [r for r in self.results if r.significant]

    def to_dataframe(self) -> pd.DataFrame:
        """Result table with one row per consensus region."""
        df = pd.DataFrame([r.__dict__ for r in self.results], columns=RESULT_COLUMNS)
        df.insert(0, 'comparison', self.name)
        return df


@dataclass(frozen=True)
class ResultRegistry:
    """
    Immutable store of pipeline outputs keyed by (operation, name).

    ``register`` returns a new registry; existing entries are only
    overwritten when ``replace=True`` is passed.
    """

    entries: Mapping[Tuple[str, str], Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'entries', MappingProxyType(dict(self.entries)))

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self.entries

    def register(self, operation: str, name: str, value: Any, replace: bool = False) -> 'ResultRegistry':
        key = (operation, name)
        if key in self.entries:
            if not replace:
                raise ValueError(f"A {operation} result named '{name}' already exists; pass replace=True to overwrite it")
            logger.info(f"Replacing existing {operation} result '{name}'")
        entries = dict(self.entries)
        entries[key] = value
        return ResultRegistry(entries)

    def get(self, operation: str, name: str) -> Any:
        try:
            return self.entries[(operation, name)]
        except KeyError:
            available = self.names(operation)
            raise ValueError(f"No {operation} result named '{name}'. Available: {available}") from None

    def names(self, operation: str) -> List[str]:
        return sorted(name for op, name in self.entries if op == operation)

    def table(self, name: str) -> pd.DataFrame:
        """Shift result table of a comparison, for annotation and plotting steps."""
        return self.get(SHIFT, name).to_dataframe()


def aggregate_results(name: str,
                      sample_1: str,
                      sample_2: str,
                      consensus_regions: Sequence[ConsensusRegion],
                      scores: Sequence[Dict[str, Any]],
                      fdr_threshold: float = 0.05,
                      parameters: Optional[Mapping[str, Any]] = None) -> Comparison:
    """
    Correct p-values across the comparison and assemble the result table.

    Args:
        name: Comparison name
        sample_1: Name of the first sample group
        sample_2: Name of the second sample group
        consensus_regions: Matched regions, in the same order as ``scores``
        scores: Per-region dicts with ems, emd, p_value and status
        fdr_threshold: q-value cutoff for significance
        parameters: Run parameters to keep with the comparison

    Returns:
        Comparison holding one ShiftResult per consensus region
    """
    if len(consensus_regions) != len(scores):
        raise ValueError(f"Got {len(scores)} scores for {len(consensus_regions)} consensus regions")

    evaluable_idx = [i for i, s in enumerate(scores) if s['status'] == EVALUATED]
    q_values = np.full(len(scores), np.nan)
    q_values[evaluable_idx] = benjamini_hochberg([scores[i]['p_value'] for i in evaluable_idx])

    results = []
    for cr, score, q_value in zip(consensus_regions, scores, q_values):
        evaluated = score['status'] == EVALUATED
        results.append(ShiftResult(
            consensus_id=cr.consensus_id,
            chrom=cr.chrom,
            start=cr.start,
            end=cr.end,
            strand=cr.strand,
            region_1=cr.counts_1.region_id,
            region_2=cr.counts_2.region_id,
            total_1=cr.counts_1.total,
            total_2=cr.counts_2.total,
            ems=score['ems'],
            emd=score['emd'],
            p_value=score['p_value'],
            q_value=float(q_value),
            significant=bool(evaluated and q_value <= fdr_threshold),
            direction=shift_direction(score['ems']) if evaluated else NO_SHIFT,
            status=score['status'],
        ))

    comparison = Comparison(name=name, sample_1=sample_1, sample_2=sample_2,
                            results=tuple(results), parameters=parameters or {})
    logger.info(f"Comparison '{name}': {len(comparison.evaluable())} evaluable, "
                f"{len(comparison.non_evaluable())} non-evaluable, "
                f"{len(comparison.significant())} significant (FDR <= {fdr_threshold})")
    return comparison
