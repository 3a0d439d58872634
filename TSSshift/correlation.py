import typer
import pandas as pd
from typing import List, Optional, Sequence, Union

__version__ = "0.2.0"

TABLE_KEYS = ['chr', 'pos', 'strand']
METHODS = ('pearson', 'spearman')


def correlation_matrix(tss_df: pd.DataFrame,
                       samples: Union[str, Sequence[str]] = "all",
                       method: str = "pearson",
                       threshold: Optional[float] = None,
                       n_samples: int = 1) -> pd.DataFrame:
    """
    Sample-by-sample correlation of a TSS count table.

    Rows where every sample is zero are dropped. With a threshold, only rows
    reaching it in at least ``n_samples`` samples are kept.
    """
    method = method.lower()
    if method not in METHODS:
        raise ValueError(f"method must be one of {METHODS}, got {method!r}")
    if threshold is not None and threshold <= 0:
        raise ValueError(f"threshold must be > 0, got {threshold}")
    if n_samples < 1:
        raise ValueError(f"n_samples must be >= 1, got {n_samples}")

    sample_cols = [c for c in tss_df.columns if c not in TABLE_KEYS]
    if samples != "all":
        missing = [s for s in samples if s not in sample_cols]
        if missing:
            raise ValueError(f"Samples {missing} not found. Available: {sample_cols}")
        sample_cols = list(samples)

    data = tss_df[sample_cols]
    data = data.loc[~(data == 0).all(axis=1)]
    if threshold is not None:
        data = data.loc[(data >= threshold).sum(axis=1) >= n_samples]
    return data.corr(method=method)


def correlation(
    tss_table: str = typer.Option(..., "-i", "--input", help="Input TSS table (tab-delimited)"),
    output: str = typer.Option(None, "-o", "--output", help="Output correlation matrix file (csv, optional)"),
    method: str = typer.Option("pearson", "-m", "--method", help="Correlation metric: pearson or spearman"),
    samples: Optional[List[str]] = typer.Option(None, "-s", "--sample", help="Sample column to include (repeatable, default all)"),
    threshold: Optional[float] = typer.Option(None, "--threshold", help="Keep rows with a value >= threshold in at least --n-samples samples"),
    n_samples: int = typer.Option(1, "--n-samples", help="Number of samples that must reach --threshold"),
    version: bool = typer.Option(False, "--version", help="Show version and exit.")
):
    """
    Calculate and output the sample correlation matrix.
    """
    if version:
        typer.echo(f"TSSshift correlation version {__version__}")
        raise typer.Exit()
    typer.echo("[1/2] Reading input table...")
    df = pd.read_csv(tss_table, sep='\t')
    try:
        corr = correlation_matrix(df, samples=samples or "all", method=method,
                                  threshold=threshold, n_samples=n_samples)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    typer.echo(f"[2/2] Found {len(corr.columns)} samples, {len(df)} rows.")
    typer.echo(f"Correlation matrix ({method}):")
    typer.echo(corr.round(3).to_string())
    if output:
        corr.to_csv(output)
        typer.echo(f"Correlation matrix saved to {output}")
