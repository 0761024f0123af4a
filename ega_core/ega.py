"""
Exploratory Graph Analysis Module
=================================

Combined EGA: correlation -> network estimation (EBICglasso or TMFG)
-> walktrap communities, with a unidimensionality check.

The number of communities is the estimated number of dimensions.
"""

import logging

import pandas as pd
import numpy as np

from . import config
from . import correlation
from . import network as net
from . import community

logger = logging.getLogger(__name__)


def estimate_network(
    corr: pd.DataFrame,
    n_obs: int,
    model: str = None,
    verbose: bool = True,
    **model_kwargs
) -> dict:
    """
    Estimate a network with the chosen model.

    Parameters:
        corr: Correlation matrix
        n_obs: Sample size
        model: 'glasso' or 'tmfg'. Defaults to config.DEFAULT_EGA_MODEL
        verbose: Print the estimator summary
        **model_kwargs: Passed to network.ebic_glasso (glasso only)

    Returns:
        Dictionary with at least a 'network' DataFrame
    """
    if model is None:
        model = config.DEFAULT_EGA_MODEL
    model = model.lower()
    if model not in config.EGA_MODELS:
        raise ValueError(f"Unknown EGA model '{model}', expected one of {config.EGA_MODELS}")

    if model == 'glasso':
        return net.ebic_glasso(corr, n_obs, verbose=verbose, **model_kwargs)
    return {'network': net.tmfg(corr)}


def expand_correlation(corr: pd.DataFrame, n_vars: int = None, r: float = None) -> pd.DataFrame:
    """
    Append a block of variables orthogonal to the items.

    The extra variables correlate r with each other and 0 with every
    item, so a unidimensional item set forms exactly two communities.
    """
    if n_vars is None:
        n_vars = config.UNIDIM_EXPAND_VARS
    if r is None:
        r = config.UNIDIM_EXPAND_CORR

    p = corr.shape[0]
    names = list(corr.columns) + [f'_expand_{i + 1}' for i in range(n_vars)]
    expanded = np.zeros((p + n_vars, p + n_vars))
    expanded[:p, :p] = corr.to_numpy()
    block = np.full((n_vars, n_vars), r)
    np.fill_diagonal(block, 1.0)
    expanded[p:, p:] = block
    return pd.DataFrame(expanded, index=names, columns=names)


def is_unidimensional(
    corr: pd.DataFrame,
    n_obs: int,
    model: str = None,
    steps: int = None,
    **model_kwargs
) -> bool:
    """
    Unidimensionality check by expansion.

    Returns True when every original item lands in a single walktrap
    community once the orthogonal block is appended. The network and
    community summaries of the expanded matrix are not printed.
    """
    expanded = expand_correlation(corr)
    estimation = estimate_network(expanded, n_obs, model, verbose=False, **model_kwargs)
    clusters = community.walktrap(estimation['network'], steps, verbose=False)
    item_labels = clusters['membership'].loc[list(corr.columns)]
    unidimensional = bool(item_labels.notna().all() and item_labels.nunique() == 1)

    print(f"\nUnidimensionality check (expanded matrix, {expanded.shape[0] - corr.shape[0]} "
          f"orthogonal variables): {'single dimension' if unidimensional else 'multiple dimensions'}")
    return unidimensional


def ega_from_correlation(
    corr: pd.DataFrame,
    n_obs: int,
    model: str = None,
    steps: int = None,
    check_unidimensional: bool = True,
    **model_kwargs
) -> dict:
    """
    Run EGA on a precomputed correlation matrix.

    Parameters:
        corr: Correlation matrix
        n_obs: Sample size used to compute corr
        model: 'glasso' or 'tmfg'. Defaults to config.DEFAULT_EGA_MODEL
        steps: Walktrap steps. Defaults to config.WALKTRAP_STEPS
        check_unidimensional: Run the expansion check first
        **model_kwargs: Passed to the network estimator

    Returns:
        Dictionary with n_dim, membership, communities, network and estimation details
    """
    if model is None:
        model = config.DEFAULT_EGA_MODEL
    model = model.lower()
    correlation.validate_correlation(corr)

    estimation = estimate_network(corr, n_obs, model, **model_kwargs)
    clusters = community.walktrap(estimation['network'], steps)

    unidimensional = False
    if check_unidimensional:
        unidimensional = is_unidimensional(corr, n_obs, model, steps, **model_kwargs)

    if unidimensional:
        logger.info("Expansion check: items form a single dimension")
        membership = pd.Series(1, index=corr.columns, dtype='Int64', name='community')
        communities = {1: list(corr.columns)}
    else:
        membership = clusters['membership']
        communities = clusters['communities']

    result = {
        'n_dim': len(communities),
        'membership': membership,
        'communities': communities,
        'network': estimation['network'],
        'correlation': corr,
        'model': model,
        'n_obs': n_obs,
        'unidimensional': unidimensional,
        'modularity': clusters['modularity'],
        'estimation': estimation,
    }

    print("\n" + "=" * 60)
    print(f"EXPLORATORY GRAPH ANALYSIS (model={model})")
    print("=" * 60)
    print(f"  Estimated dimensions: {result['n_dim']}")
    if unidimensional:
        print("  Unidimensionality check: PASS (single dimension)")
    for label, items in communities.items():
        print(f"  Dimension {label}: {', '.join(items)}")

    return result


def ega(
    data: pd.DataFrame,
    model: str = None,
    corr_method: str = None,
    steps: int = None,
    check_unidimensional: bool = True,
    **model_kwargs
) -> dict:
    """
    Exploratory Graph Analysis on raw item data.

    Parameters:
        data: Item responses (n_samples x n_items)
        model: 'glasso' or 'tmfg'. Defaults to config.DEFAULT_EGA_MODEL
        corr_method: Correlation method. Defaults to config.DEFAULT_CORR_METHOD
        steps: Walktrap steps. Defaults to config.WALKTRAP_STEPS
        check_unidimensional: Run the expansion check first
        **model_kwargs: Passed to the network estimator

    Returns:
        Dictionary as returned by ega_from_correlation
    """
    corr = correlation.correlation_matrix(data, corr_method)
    return ega_from_correlation(
        corr, len(data), model, steps, check_unidimensional, **model_kwargs
    )


def network_loadings(network: pd.DataFrame, membership: pd.Series) -> pd.DataFrame:
    """
    Network loadings: each node's summed edge weights to every community.

    Columns are standardized by the square root of the community's total
    absolute loading, which puts them on a scale comparable to factor
    loadings. Unassigned nodes still receive loadings.

    Parameters:
        network: Weighted adjacency DataFrame
        membership: Community label per node

    Returns:
        DataFrame (nodes x communities)
    """
    membership = membership.reindex(network.index)
    labels = sorted(int(label) for label in membership.dropna().unique())
    values = network.to_numpy()

    raw = pd.DataFrame(0.0, index=network.index, columns=[f'Dim_{label}' for label in labels])
    for label in labels:
        members = (membership == label).fillna(False).to_numpy(dtype=bool)
        raw[f'Dim_{label}'] = values[:, members].sum(axis=1)

    standardized = raw.copy()
    for label in labels:
        col = f'Dim_{label}'
        members = (membership == label).fillna(False).to_numpy(dtype=bool)
        total = raw.loc[members, col].abs().sum()
        if total > 0:
            standardized[col] = raw[col] / np.sqrt(total)

    return standardized


def dimension_table(result: dict) -> pd.DataFrame:
    """Item, label and dimension table for an EGA result."""
    membership = result['membership']
    return pd.DataFrame({
        'item': membership.index,
        'label': [config.get_item_label(item) for item in membership.index],
        'dimension': membership.to_numpy(),
    })
