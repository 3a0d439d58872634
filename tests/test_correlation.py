"""Tests for sample correlation."""

import pandas as pd
import pytest

from TSSshift.correlation import correlation_matrix


@pytest.fixture
def tss_df():
    return pd.DataFrame({
        'chr': ['chr1'] * 5,
        'pos': [1, 2, 3, 4, 5],
        'strand': ['+'] * 5,
        'a': [1, 2, 3, 0, 10],
        'b': [2, 4, 6, 0, 20],
        'c': [10, 1, 5, 0, 1],
    })


class TestCorrelationMatrix:
    """Tests for correlation_matrix."""

    def test_pearson(self, tss_df):
        corr = correlation_matrix(tss_df)
        assert list(corr.columns) == ['a', 'b', 'c']
        assert corr.loc['a', 'b'] == pytest.approx(1.0)
        assert corr.loc['a', 'a'] == pytest.approx(1.0)

    def test_spearman(self, tss_df):
        corr = correlation_matrix(tss_df, method="Spearman")
        assert corr.loc['a', 'b'] == pytest.approx(1.0)

    def test_subset_of_samples(self, tss_df):
        corr = correlation_matrix(tss_df, samples=['a', 'c'])
        assert list(corr.columns) == ['a', 'c']

    def test_threshold_filter(self, tss_df):
        # Rows 2, 3 and 5 reach 2 in both samples
        corr = correlation_matrix(tss_df, samples=['a', 'b'], threshold=2, n_samples=2)
        assert corr.loc['a', 'b'] == pytest.approx(1.0)

    def test_unknown_sample(self, tss_df):
        with pytest.raises(ValueError, match="not found"):
            correlation_matrix(tss_df, samples=['z'])

    @pytest.mark.parametrize("kwargs", [
        {"method": "kendall"},
        {"threshold": 0},
        {"n_samples": 0},
    ])
    def test_invalid_arguments(self, tss_df, kwargs):
        with pytest.raises(ValueError):
            correlation_matrix(tss_df, **kwargs)
