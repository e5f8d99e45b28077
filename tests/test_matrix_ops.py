"""Tests for sparse conversion, log transform and node aggregation."""

import numpy as np
import pandas as pd
import pytest

from tractree.core.incidence import taxonomy_to_a_matrix
from tractree.core.matrix_ops import to_sparse, log_pseudo, aggregate_log_features
from tractree.models.errors import CalculationError

@pytest.fixture
def soil_a_matrix(soil_taxonomy):
    _, a_matrix = taxonomy_to_a_matrix(soil_taxonomy, collapse=True, include_root=True)
    return a_matrix

def test_to_sparse(soil_a_matrix):
    matrix = to_sparse(soil_a_matrix)
    assert matrix.format == "csr"
    assert matrix.shape == soil_a_matrix.shape
    assert matrix.nnz == int(soil_a_matrix.to_numpy().sum())
    np.testing.assert_array_equal(matrix.toarray(), soil_a_matrix.to_numpy())

def test_log_pseudo(soil_counts):
    logged = log_pseudo(soil_counts)
    assert logged.loc['BZ1', 'OTU1'] == 0.0
    assert logged.loc['BZ1', 'OTU3'] == pytest.approx(np.log(16))
    assert list(logged.index) == list(soil_counts.index)

def test_log_pseudo_custom_pseudo_count(soil_counts):
    logged = log_pseudo(soil_counts, pseudo_count=0.5)
    assert logged.loc['CA1', 'OTU2'] == pytest.approx(np.log(0.5))

@pytest.mark.parametrize('pseudo_count', [0, -1.0])
def test_log_pseudo_rejects_non_positive_pseudo_count(soil_counts, pseudo_count):
    with pytest.raises(CalculationError):
        log_pseudo(soil_counts, pseudo_count)

def test_log_pseudo_rejects_negative_counts(soil_counts):
    soil_counts.loc['BZ1', 'OTU1'] = -2
    with pytest.raises(CalculationError, match="negative"):
        log_pseudo(soil_counts)

def test_log_pseudo_rejects_missing_counts(soil_counts):
    soil_counts = soil_counts.astype(float)
    soil_counts.loc['BZ1', 'OTU1'] = np.nan
    with pytest.raises(CalculationError, match="missing"):
        log_pseudo(soil_counts)

def test_aggregate_sums_logs_below_each_node(soil_counts, soil_a_matrix):
    logged = log_pseudo(soil_counts)
    aggregated = aggregate_log_features(logged, soil_a_matrix)
    assert aggregated.shape == (3, soil_a_matrix.shape[0])
    assert list(aggregated.columns) == list(soil_a_matrix.index)
    assert aggregated.loc['MT2', ''] == pytest.approx(logged.loc['MT2'].sum())
    edaphobacter = [key for key in soil_a_matrix.index if key.endswith('g__Edaphobacter')][0]
    assert aggregated.loc['CA1', edaphobacter] == pytest.approx(
        logged.loc['CA1', 'OTU4'] + logged.loc['CA1', 'OTU5']
    )

def test_aggregate_aligns_feature_order(soil_counts, soil_a_matrix):
    logged = log_pseudo(soil_counts)
    shuffled = logged[['OTU3', 'OTU5', 'OTU1', 'OTU4', 'OTU2']]
    pd.testing.assert_frame_equal(
        aggregate_log_features(shuffled, soil_a_matrix),
        aggregate_log_features(logged, soil_a_matrix)
    )

def test_aggregate_ignores_extra_features(soil_counts, soil_a_matrix):
    logged = log_pseudo(soil_counts)
    logged['OTU99'] = 1.0
    aggregated = aggregate_log_features(logged, soil_a_matrix)
    assert aggregated.loc['BZ1', ''] == pytest.approx(logged.drop(columns='OTU99').loc['BZ1'].sum())

def test_aggregate_requires_all_features(soil_counts, soil_a_matrix):
    logged = log_pseudo(soil_counts).drop(columns='OTU2')
    with pytest.raises(CalculationError, match="OTU2"):
        aggregate_log_features(logged, soil_a_matrix)
