#!/usr/bin/env python3
"""
TSSshift: Python CLI for TSS shift analysis

Quantifies and tests shifts in TSS usage within matched core promoters
between two conditions.

Main features:
- Matching of TSS clusters between two samples
- Signed earth mover's score (EMS) of the TSS distribution shift
- Permutation test on pooled TSS counts
- Benjamini-Hochberg FDR correction per comparison
- Sample correlation analysis

Usage:
    tssshift <command> [options]

Commands:
    shift            - Detect TSS shifts between two samples
    correlation      - Calculate sample correlations
"""

import typer

from TSSshift import shift
from TSSshift.correlation import correlation

__version__ = "0.1.0"

# Create main app
app = typer.Typer(
    name="tssshift",
    help=f"TSSshift: Python CLI for TSS shift analysis (v{__version__})",
    add_completion=False,
)

# Register all subcommands
app.add_typer(shift.app, name="shift", help="Detect TSS shifts between two samples")

# Register correlation as a direct command
app.command(name="correlation", help="Calculate sample correlations")(correlation)


@app.command()
def version():
    """Show version information."""
    typer.echo(f"TSSshift version {__version__}")
    typer.echo("A Python CLI for TSS shift analysis")


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
):
    """
    TSSshift: Python CLI for TSS shift analysis

    Detects shifts in TSS usage between two conditions.
    """
    if verbose:
        import logging
        logging.getLogger().setLevel(logging.DEBUG)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
