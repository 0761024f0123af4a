"""
Correlation Estimation Module
=============================

Correlation matrix estimation and validation. The matrix computed here is
shared by the network, dimensionality and factor analysis steps.
"""

import logging

import pandas as pd
import numpy as np

from . import config

logger = logging.getLogger(__name__)


def correlation_matrix(df: pd.DataFrame, method: str = None) -> pd.DataFrame:
    """
    Estimate the item correlation matrix.

    Parameters:
        df: Item responses (n_samples x n_items)
        method: 'pearson', 'spearman' or 'kendall'. Defaults to config.DEFAULT_CORR_METHOD

    Returns:
        Symmetric correlation DataFrame labelled by item
    """
    if method is None:
        method = config.DEFAULT_CORR_METHOD
    if method not in config.CORR_METHODS:
        raise ValueError(f"Unknown correlation method '{method}', expected one of {config.CORR_METHODS}")
    if df.shape[1] < 2:
        raise ValueError(f"At least 2 items are required, got {df.shape[1]}")

    corr = df.corr(method=method)
    if corr.isna().to_numpy().any():
        raise ValueError("Correlation matrix contains NaN (constant or empty item columns?)")

    # Guard against tiny asymmetries from pairwise computation
    values = (corr.to_numpy() + corr.to_numpy().T) / 2
    np.fill_diagonal(values, 1.0)
    corr = pd.DataFrame(values, index=corr.index, columns=corr.columns)

    min_eigen = np.linalg.eigvalsh(values).min()
    if min_eigen < -1e-8:
        logger.warning(
            "Correlation matrix is not positive semi-definite (min eigenvalue %.3g)",
            min_eigen,
        )

    return corr


def validate_correlation(corr, tol: float = 1e-8) -> np.ndarray:
    """
    Check a correlation matrix is square, symmetric, with unit diagonal.

    Parameters:
        corr: Correlation matrix (DataFrame or array)
        tol: Absolute tolerance for symmetry and diagonal checks

    Returns:
        The matrix as a float ndarray
    """
    values = np.asarray(corr, dtype=float)
    if values.ndim != 2 or values.shape[0] != values.shape[1]:
        raise ValueError(f"Correlation matrix must be square, got shape {values.shape}")
    if values.shape[0] < 2:
        raise ValueError("Correlation matrix must have at least 2 variables")
    if not np.allclose(values, values.T, atol=tol):
        raise ValueError("Correlation matrix is not symmetric")
    if not np.allclose(np.diag(values), 1.0, atol=tol):
        raise ValueError("Correlation matrix must have a unit diagonal")
    return values


def correlation_summary(corr: pd.DataFrame, top_n: int = 3) -> dict:
    """
    Print and return the strongest/weakest item pairs.

    Parameters:
        corr: Correlation DataFrame
        top_n: Number of pairs to show at each end

    Returns:
        Dictionary with mean absolute correlation and ranked pair table
    """
    values = validate_correlation(corr)
    names = list(corr.columns)
    upper = np.triu_indices_from(values, k=1)

    pairs = pd.DataFrame({
        'item_a': [names[i] for i in upper[0]],
        'item_b': [names[j] for j in upper[1]],
        'r': values[upper],
    })
    pairs = pairs.reindex(pairs['r'].abs().sort_values(ascending=False).index)
    pairs = pairs.reset_index(drop=True)
    mean_abs = float(np.abs(values[upper]).mean())

    print("\n" + "=" * 60)
    print("CORRELATION MATRIX")
    print("=" * 60)
    print(corr.round(2).to_string())

    print(f"\nMean |r|: {mean_abs:.3f}")
    print("\nStrongest pairs:")
    for _, row in pairs.head(top_n).iterrows():
        print(f"  {row['item_a']} - {row['item_b']}: {row['r']:.3f}")
    print("Weakest pairs:")
    for _, row in pairs.tail(top_n).iterrows():
        print(f"  {row['item_a']} - {row['item_b']}: {row['r']:.3f}")

    return {
        'mean_abs_r': mean_abs,
        'pairs': pairs,
    }
