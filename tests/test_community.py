import numpy as np
import pandas as pd

from ega_core import community, config, network


def _theoretical_membership():
    labels = {}
    for number, items in enumerate(config.THEORETICAL_DIMENSIONS.values(), 1):
        for item in items:
            labels[item] = number
    return pd.Series(labels)[config.DEFAULT_ITEMS]


def test_walktrap_recovers_holzinger_dimensions(hs_corr) -> None:
    net = network.ebic_glasso(hs_corr, n_obs=301)['network']
    result = community.walktrap(net)
    assert result['n_communities'] == 3
    assert community.same_partition(result['membership'], _theoretical_membership())
    assert result['modularity'] > 0


def test_walktrap_labels_follow_first_appearance(hs_corr) -> None:
    net = network.ebic_glasso(hs_corr, n_obs=301)['network']
    membership = community.walktrap(net)['membership']
    assert membership['x1'] == 1
    assert membership.dropna().astype(int).tolist() == sorted(membership.dropna().astype(int).tolist())


def test_walktrap_on_empty_network_leaves_nodes_unassigned() -> None:
    empty = pd.DataFrame(np.zeros((4, 4)), index=list('abcd'), columns=list('abcd'))
    result = community.walktrap(empty)
    assert result['n_communities'] == 0
    assert result['membership'].isna().all()


def test_relabel_membership_marks_singletons() -> None:
    raw = pd.Series([5, 5, 2, 9, 2], index=list('abcde'))
    relabelled = community.relabel_membership(raw)
    assert relabelled['a'] == 1 and relabelled['b'] == 1
    assert relabelled['c'] == 2 and relabelled['e'] == 2
    assert pd.isna(relabelled['d'])


def test_same_partition_ignores_labels() -> None:
    a = pd.Series([1, 1, 2, 2], index=list('abcd'))
    b = pd.Series([7, 7, 3, 3], index=list('abcd'))
    c = pd.Series([1, 2, 1, 2], index=list('abcd'))
    assert community.same_partition(a, b)
    assert not community.same_partition(a, c)
