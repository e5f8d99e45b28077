"""Matrix operations on A matrices and compositional count tables."""

import logging

import numpy as np
import pandas as pd
from scipy import sparse

from tractree.models.errors import CalculationError

logger = logging.getLogger(__name__)

def to_sparse(a_matrix: pd.DataFrame) -> sparse.csr_matrix:
    """Convert a dense A matrix into CSR form, keeping the int8 dtype."""
    return sparse.csr_matrix(a_matrix.to_numpy(dtype=np.int8))

def log_pseudo(counts: pd.DataFrame, pseudo_count: float = 1.0) -> pd.DataFrame:
    """
    Log-transform a count table after adding a pseudo-count.

    Args:
        counts: Non-negative counts, samples x features
        pseudo_count: Value added to every entry before taking the log

    Returns:
        log(counts + pseudo_count), same shape and labels

    Raises:
        CalculationError: If the pseudo-count is not positive, the table is
            not numeric or contains negative or missing values
    """
    if pseudo_count <= 0:
        raise CalculationError(f"Pseudo-count must be positive, got {pseudo_count}")
    try:
        values = counts.astype(float)
    except (TypeError, ValueError) as e:
        raise CalculationError(f"Count table is not numeric: {str(e)}")
    if values.isna().to_numpy().any():
        raise CalculationError("Count table contains missing values")
    if (values.to_numpy() < 0).any():
        raise CalculationError("Count table contains negative values")
    return np.log(values + pseudo_count)

def aggregate_log_features(log_counts: pd.DataFrame, a_matrix: pd.DataFrame) -> pd.DataFrame:
    """
    Aggregate log-transformed features onto tree nodes.

    Computes ``log_counts · Aᵀ``: each node's value in a sample is the sum of
    the log values of the features below it.

    Args:
        log_counts: Log-transformed table, samples x features
        a_matrix: A matrix, nodes x features

    Returns:
        Samples x nodes table

    Raises:
        CalculationError: If features of the A matrix are missing from the table
    """
    missing = [fid for fid in a_matrix.columns if fid not in log_counts.columns]
    if missing:
        raise CalculationError(f"Features missing from count table: {missing}")
    extra = [fid for fid in log_counts.columns if fid not in a_matrix.columns]
    if extra:
        logger.warning(f"Ignoring {len(extra)} count table features absent from the A matrix")

    aligned = log_counts[list(a_matrix.columns)].to_numpy(dtype=float)
    aggregated = to_sparse(a_matrix).dot(aligned.T).T
    logger.debug(f"Aggregated {aligned.shape[1]} features onto {a_matrix.shape[0]} nodes")
    return pd.DataFrame(aggregated, index=log_counts.index, columns=a_matrix.index)
