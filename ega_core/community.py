"""
Community Detection Module
==========================

Walktrap community detection on a weighted psychometric network.
"""

import pandas as pd
import numpy as np
import igraph as ig

from . import config


def walktrap(network: pd.DataFrame, steps: int = None, verbose: bool = True) -> dict:
    """
    Detect communities with the walktrap algorithm.

    The graph is undirected with absolute edge weights. The dendrogram is
    cut at maximum modularity; communities are relabelled 1..k in order of
    first appearance, and nodes left alone in a community are unassigned.

    Parameters:
        network: Weighted adjacency DataFrame
        steps: Random walk length. Defaults to config.WALKTRAP_STEPS
        verbose: Print the community summary

    Returns:
        Dictionary with membership Series, community count, modularity
        and community -> items mapping
    """
    if steps is None:
        steps = config.WALKTRAP_STEPS
    if steps < 1:
        raise ValueError(f"steps must be >= 1, got {steps}")

    names = list(network.index)
    weights = np.abs(network.to_numpy(dtype=float))
    np.fill_diagonal(weights, 0.0)

    graph = ig.Graph.Weighted_Adjacency(weights.tolist(), mode='upper', attr='weight', loops=False)
    graph.vs['name'] = names

    if graph.ecount() == 0:
        raw_membership = list(range(len(names)))
        modularity = 0.0
    else:
        clustering = graph.community_walktrap(weights='weight', steps=steps).as_clustering()
        raw_membership = clustering.membership
        modularity = float(graph.modularity(raw_membership, weights='weight'))

    membership = relabel_membership(pd.Series(raw_membership, index=names))
    communities = {
        int(label): list(group.index)
        for label, group in membership.dropna().groupby(membership.dropna())
    }

    if verbose:
        print("\n" + "=" * 60)
        print(f"WALKTRAP COMMUNITIES (steps={steps})")
        print("=" * 60)
        print(f"  Communities: {len(communities)}")
        print(f"  Modularity: {modularity:.3f}")
        for label, items in communities.items():
            print(f"  Community {label}: {', '.join(items)}")
        unassigned = list(membership[membership.isna()].index)
        if unassigned:
            print(f"  Unassigned: {', '.join(unassigned)}")

    return {
        'membership': membership,
        'n_communities': len(communities),
        'communities': communities,
        'modularity': modularity,
        'steps': steps,
    }


def relabel_membership(membership: pd.Series) -> pd.Series:
    """
    Relabel communities 1..k by first appearance; singletons become NA.

    Parameters:
        membership: Raw community label per node

    Returns:
        Nullable Int64 Series indexed like the input
    """
    sizes = membership.value_counts()
    mapping = {}
    for label in membership:
        if sizes[label] > 1 and label not in mapping:
            mapping[label] = len(mapping) + 1

    relabelled = [mapping.get(label, pd.NA) for label in membership]
    return pd.Series(relabelled, index=membership.index, dtype='Int64', name='community')


def same_partition(a: pd.Series, b: pd.Series) -> bool:
    """True when two memberships group the same items (labels ignored)."""
    if list(a.index) != list(b.index):
        b = b.reindex(a.index)
    return _as_partition(a) == _as_partition(b)


def _as_partition(membership: pd.Series) -> set:
    groups = {}
    for item, label in membership.items():
        key = ('na', item) if pd.isna(label) else label
        groups.setdefault(key, set()).add(item)
    return {frozenset(items) for items in groups.values()}
