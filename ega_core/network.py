"""
Network Estimation Module
=========================

Psychometric network estimation from a correlation matrix:

- EBICglasso: graphical lasso fitted along a lambda path, with the
  network selected by the Extended Bayesian Information Criterion.
  Edges are partial correlations.
- TMFG: Triangulated Maximally Filtered Graph, a planar filtering of
  the correlation matrix (3p - 6 edges).
"""

import logging
import warnings
from itertools import combinations

import pandas as pd
import numpy as np
import networkx as nx
from sklearn.covariance import graphical_lasso
from sklearn.exceptions import ConvergenceWarning

from . import config
from .correlation import validate_correlation

logger = logging.getLogger(__name__)


class NetworkEstimationError(RuntimeError):
    """Raised when no network could be estimated along the lambda path."""


def lambda_path(
    corr,
    nlambda: int = None,
    lambda_min_ratio: float = None
) -> np.ndarray:
    """
    Log-spaced regularization path from ratio * lambda_max to lambda_max.

    lambda_max is the largest absolute off-diagonal correlation, the
    smallest penalty at which every edge is shrunk to zero.
    """
    if nlambda is None:
        nlambda = config.GLASSO_NLAMBDA
    if lambda_min_ratio is None:
        lambda_min_ratio = config.GLASSO_LAMBDA_MIN_RATIO
    if nlambda < 1:
        raise ValueError(f"nlambda must be >= 1, got {nlambda}")
    if not 0 < lambda_min_ratio < 1:
        raise ValueError(f"lambda_min_ratio must be in (0, 1), got {lambda_min_ratio}")

    values = validate_correlation(corr)
    lambda_max = np.abs(values[np.triu_indices_from(values, k=1)]).max()
    if lambda_max <= 0:
        raise ValueError("All off-diagonal correlations are zero; nothing to regularize")

    lambda_min = lambda_min_ratio * lambda_max
    return np.exp(np.linspace(np.log(lambda_min), np.log(lambda_max), nlambda))


def count_edges(precision: np.ndarray, tol: float = None) -> int:
    """Number of non-zero upper-triangle entries of a precision matrix."""
    if tol is None:
        tol = config.EDGE_TOLERANCE
    upper = precision[np.triu_indices_from(precision, k=1)]
    return int(np.sum(np.abs(upper) > tol))


def ebic(precision: np.ndarray, corr, n_obs: int, gamma: float = None) -> float:
    """
    Extended BIC of a Gaussian graphical model.

    EBIC = -2 L + E log(n) + 4 E gamma log(p), with the Gaussian
    log-likelihood L = n/2 (log det K - tr(K S)) up to a constant.

    Parameters:
        precision: Estimated precision matrix K
        corr: Sample correlation matrix S
        n_obs: Sample size
        gamma: EBIC hyperparameter. Defaults to config.GLASSO_GAMMA

    Returns:
        EBIC value (lower is better)
    """
    if gamma is None:
        gamma = config.GLASSO_GAMMA

    values = np.asarray(corr, dtype=float)
    sign, logdet = np.linalg.slogdet(precision)
    if sign <= 0:
        raise FloatingPointError("Precision matrix is not positive definite")

    p = values.shape[0]
    n_edges = count_edges(precision)
    log_lik = (n_obs / 2) * (logdet - np.trace(precision @ values))
    return float(-2 * log_lik + n_edges * np.log(n_obs) + 4 * n_edges * gamma * np.log(p))


def precision_to_partial(precision: np.ndarray, tol: float = None) -> np.ndarray:
    """
    Convert a precision matrix to a partial correlation matrix.

    rho_ij = -K_ij / sqrt(K_ii K_jj); diagonal set to zero.
    """
    if tol is None:
        tol = config.EDGE_TOLERANCE

    precision = (precision + precision.T) / 2
    d = np.sqrt(np.diag(precision))
    partial = -precision / np.outer(d, d)
    partial[np.abs(partial) <= tol] = 0.0
    np.fill_diagonal(partial, 0.0)
    return partial


def _fit_glasso(values: np.ndarray, alpha: float, max_iter: int, tol: float) -> tuple[np.ndarray, bool]:
    """Single graphical lasso fit; returns (precision, converged)."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always', ConvergenceWarning)
        _, precision = graphical_lasso(values, alpha=alpha, max_iter=max_iter, tol=tol)
    converged = not any(
        issubclass(w.category, ConvergenceWarning) for w in caught
    )
    return precision, converged


def ebic_glasso(
    corr: pd.DataFrame,
    n_obs: int,
    gamma: float = None,
    nlambda: int = None,
    lambda_min_ratio: float = None,
    max_iter: int = None,
    tol: float = None,
    verbose: bool = True
) -> dict:
    """
    Estimate a regularized partial correlation network (EBICglasso).

    The graphical lasso is fitted at every lambda on the path (diagonal
    not penalized) and the fit with the lowest EBIC is retained.

    Parameters:
        corr: Correlation matrix (DataFrame keeps item labels)
        n_obs: Sample size used to compute corr
        gamma: EBIC hyperparameter. Defaults to config.GLASSO_GAMMA
        nlambda: Path length. Defaults to config.GLASSO_NLAMBDA
        lambda_min_ratio: Path lower bound ratio. Defaults to config.GLASSO_LAMBDA_MIN_RATIO
        max_iter: Solver iterations per fit. Defaults to config.GLASSO_MAX_ITER
        tol: Solver tolerance. Defaults to config.GLASSO_TOL
        verbose: Print the selection summary

    Returns:
        Dictionary with network, precision, selected lambda, EBIC and path table
    """
    if gamma is None:
        gamma = config.GLASSO_GAMMA
    if max_iter is None:
        max_iter = config.GLASSO_MAX_ITER
    if tol is None:
        tol = config.GLASSO_TOL
    if n_obs < 2:
        raise ValueError(f"n_obs must be >= 2, got {n_obs}")

    values = validate_correlation(corr)
    names = _labels(corr)
    lambdas = lambda_path(values, nlambda, lambda_min_ratio)

    path = []
    best = None
    for lam in lambdas:
        try:
            precision, converged = _fit_glasso(values, lam, max_iter, tol)
            score = ebic(precision, values, n_obs, gamma)
        except FloatingPointError as exc:
            logger.info("Skipping glasso fit at lambda=%.4g: %s", lam, exc)
            continue

        if not converged:
            logger.info("Glasso did not converge at lambda=%.4g", lam)

        n_edges = count_edges(precision)
        path.append({'lambda': lam, 'ebic': score, 'n_edges': n_edges, 'converged': converged})

        # Ties go to the sparser (larger lambda) network
        if best is None or score <= best['ebic']:
            best = {'lambda': lam, 'ebic': score, 'precision': precision, 'converged': converged}

    if best is None:
        raise NetworkEstimationError(
            f"Graphical lasso failed at all {len(lambdas)} lambda values"
        )

    partial = precision_to_partial(best['precision'])
    network = pd.DataFrame(partial, index=names, columns=names)
    path_df = pd.DataFrame(path)

    if verbose:
        print("\n" + "=" * 60)
        print(f"EBICglasso NETWORK (gamma={gamma}, {len(lambdas)} lambdas)")
        print("=" * 60)
        print(f"  Selected lambda: {best['lambda']:.4f}")
        print(f"  EBIC: {best['ebic']:.2f}")
        print(f"  Edges: {count_edges(best['precision'])} of {len(names) * (len(names) - 1) // 2}")
        if not best['converged']:
            print("  WARNING: selected fit did not converge")

    return {
        'network': network,
        'precision': pd.DataFrame(best['precision'], index=names, columns=names),
        'lambda': best['lambda'],
        'ebic': best['ebic'],
        'gamma': gamma,
        'n_edges': count_edges(best['precision']),
        'converged': best['converged'],
        'path': path_df,
    }


def tmfg(corr) -> pd.DataFrame:
    """
    Triangulated Maximally Filtered Graph.

    Starts from the tetrahedron of the 4 nodes with the largest sum of
    above-average absolute correlations, then repeatedly inserts the
    remaining node into the triangular face it is most strongly tied to.
    The result is planar with exactly 3p - 6 edges, weighted by the
    original correlations.

    Parameters:
        corr: Correlation matrix (at least 4 variables)

    Returns:
        Weighted adjacency DataFrame (zero diagonal)
    """
    values = validate_correlation(corr)
    names = _labels(corr)
    p = values.shape[0]
    if p < 4:
        raise ValueError(f"TMFG requires at least 4 variables, got {p}")

    weights = np.abs(values)
    np.fill_diagonal(weights, 0.0)
    mean_weight = weights[np.triu_indices(p, k=1)].mean()
    above = np.where(weights > mean_weight, weights, 0.0)
    seeds = [int(i) for i in np.argsort(-above.sum(axis=0), kind='stable')[:4]]

    adjacency = np.zeros((p, p), dtype=bool)
    for a, b in combinations(seeds, 2):
        adjacency[a, b] = adjacency[b, a] = True

    faces = [tuple(face) for face in combinations(seeds, 3)]
    remaining = [v for v in range(p) if v not in seeds]

    while remaining:
        best_gain, best_node, best_face = -np.inf, None, None
        for v in remaining:
            for idx, face in enumerate(faces):
                gain = weights[v, list(face)].sum()
                if gain > best_gain:
                    best_gain, best_node, best_face = gain, v, idx

        a, b, c = faces.pop(best_face)
        for u in (a, b, c):
            adjacency[best_node, u] = adjacency[u, best_node] = True
        faces.extend([(best_node, a, b), (best_node, b, c), (best_node, a, c)])
        remaining.remove(best_node)

    network = np.where(adjacency, values, 0.0)
    np.fill_diagonal(network, 0.0)
    return pd.DataFrame(network, index=names, columns=names)


def network_summary(network: pd.DataFrame) -> dict:
    """
    Print and return edge counts, density and node strength.

    Parameters:
        network: Weighted adjacency DataFrame

    Returns:
        Dictionary with edge statistics and per-node strength
    """
    values = network.to_numpy()
    p = values.shape[0]
    upper = values[np.triu_indices(p, k=1)]
    n_edges = int(np.sum(upper != 0))
    possible = p * (p - 1) // 2
    strength = pd.Series(np.abs(values).sum(axis=1), index=network.index, name='strength')

    summary = {
        'n_nodes': p,
        'n_edges': n_edges,
        'density': n_edges / possible if possible else 0.0,
        'n_positive': int(np.sum(upper > 0)),
        'n_negative': int(np.sum(upper < 0)),
        'mean_abs_weight': float(np.abs(upper[upper != 0]).mean()) if n_edges else 0.0,
        'strength': strength,
    }

    print("\nNetwork summary:")
    print(f"  Nodes: {p}, edges: {n_edges}/{possible} (density {summary['density']:.2f})")
    print(f"  Positive edges: {summary['n_positive']}, negative edges: {summary['n_negative']}")
    print(f"  Mean |weight|: {summary['mean_abs_weight']:.3f}")
    print("  Node strength:")
    for node, value in strength.sort_values(ascending=False).items():
        print(f"    {node}: {value:.3f}")

    return summary


def to_networkx(network: pd.DataFrame, membership: pd.Series = None) -> nx.Graph:
    """
    Build a networkx graph from a weighted adjacency matrix.

    Edges carry 'weight' (signed) and 'abs_weight'; nodes optionally
    carry a 'community' attribute (None when unassigned).
    """
    graph = nx.Graph()
    names = list(network.index)
    for node in names:
        community = None
        if membership is not None and not pd.isna(membership.get(node)):
            community = int(membership[node])
        graph.add_node(node, community=community)

    values = network.to_numpy()
    for i, j in zip(*np.triu_indices(len(names), k=1)):
        weight = values[i, j]
        if weight != 0:
            graph.add_edge(names[i], names[j], weight=float(weight), abs_weight=abs(float(weight)))
    return graph


def _labels(corr) -> list:
    """Item labels from a DataFrame, or generic names for a bare array."""
    if isinstance(corr, pd.DataFrame):
        return list(corr.columns)
    return [f'V{i + 1}' for i in range(np.asarray(corr).shape[0])]
