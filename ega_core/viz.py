"""
Visualization Module
====================

Style setup and the figures of the walkthrough: correlation heatmap,
network plot, scree plot with parallel analysis, and loadings heatmap.
Every plotting function returns the Figure; saving is left to output.
"""

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for saving plots

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import networkx as nx
import numpy as np
import pandas as pd
import seaborn as sns

from . import config
from .network import to_networkx


def setup_style() -> None:
    """
    Configure matplotlib and seaborn style settings.

    Sets:
    - Seaborn whitegrid style
    - Consistent font sizes
    """
    plt.style.use('seaborn-v0_8-whitegrid')
    plt.rcParams.update({
        'figure.figsize': (10, 6),
        'font.size': 10,
        'axes.titlesize': 12,
        'axes.labelsize': 11,
        'legend.fontsize': 10,
    })


def get_colors() -> dict:
    """
    Return consistent color palette for plots.

    Returns:
        Dictionary with named colors
    """
    return {
        'primary': '#3498db',      # Blue
        'secondary': '#2ecc71',    # Green
        'accent': '#e74c3c',       # Red
        'neutral': '#95a5a6',      # Gray
        'highlight': '#f39c12',    # Orange
        'positive_edge': '#1b9e3a',
        'negative_edge': '#c0392b',
        'unassigned': '#d5d8dc',
    }


def get_community_palette(n: int) -> list:
    """Distinct colors for n communities."""
    return sns.color_palette('Set2', max(n, 1)).as_hex()


def plot_correlation_heatmap(corr: pd.DataFrame, title: str = 'Correlation Matrix') -> plt.Figure:
    """Annotated correlation heatmap."""
    fig, ax = plt.subplots(figsize=(9, 7))
    sns.heatmap(corr, annot=True, cmap='RdBu_r', center=0, vmin=-1, vmax=1,
                fmt='.2f', square=True, linewidths=0.5, ax=ax)
    ax.set_title(title)
    fig.set_facecolor('white')
    return fig


def plot_network(
    network: pd.DataFrame,
    membership: pd.Series = None,
    title: str = 'EGA Network',
    seed: int = None
) -> plt.Figure:
    """
    Draw a psychometric network.

    Nodes are colored by community (gray when unassigned), edges are
    green for positive and red for negative weights, with width
    proportional to |weight|.

    Parameters:
        network: Weighted adjacency DataFrame
        membership: Community label per node
        title: Plot title
        seed: Layout seed. Defaults to config.RANDOM_STATE

    Returns:
        Matplotlib Figure
    """
    if seed is None:
        seed = config.RANDOM_STATE

    colors = get_colors()
    graph = to_networkx(network, membership)
    pos = nx.spring_layout(graph, weight='abs_weight', seed=seed)

    labels = sorted({c for _, c in graph.nodes(data='community') if c is not None})
    palette = dict(zip(labels, get_community_palette(len(labels))))
    node_colors = [
        palette.get(community, colors['unassigned'])
        for _, community in graph.nodes(data='community')
    ]

    edges = list(graph.edges(data='weight'))
    max_abs = max((abs(w) for _, _, w in edges), default=1.0) or 1.0
    edge_colors = [colors['positive_edge'] if w > 0 else colors['negative_edge'] for _, _, w in edges]
    edge_widths = [0.5 + 6 * abs(w) / max_abs for _, _, w in edges]

    fig, ax = plt.subplots(figsize=(8, 8))
    nx.draw_networkx_edges(graph, pos, edgelist=[(u, v) for u, v, _ in edges],
                           edge_color=edge_colors, width=edge_widths, alpha=0.8, ax=ax)
    nx.draw_networkx_nodes(graph, pos, node_color=node_colors, node_size=900,
                           edgecolors='#34495e', ax=ax)
    nx.draw_networkx_labels(graph, pos, font_size=10, font_weight='bold', ax=ax)

    if labels:
        handles = [mpatches.Patch(color=palette[c], label=f'Dimension {c}') for c in labels]
        ax.legend(handles=handles, loc='lower left', frameon=True)

    ax.set_title(title)
    ax.axis('off')
    fig.set_facecolor('white')
    return fig


def plot_scree(eigenvalues, reference=None, title: str = 'Scree Plot') -> plt.Figure:
    """Scree plot of observed eigenvalues with parallel reference and Kaiser line."""
    colors = get_colors()
    x = np.arange(1, len(eigenvalues) + 1)

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(x, eigenvalues, 'o-', color=colors['primary'], linewidth=2, markersize=8,
            label='Observed eigenvalues')
    if reference is not None:
        ax.plot(x, reference, 's--', color=colors['highlight'], linewidth=1.5,
                label='Parallel analysis reference')
    ax.axhline(y=config.KAISER_THRESHOLD, color=colors['accent'], linestyle=':',
               label='Kaiser Criterion (eigenvalue=1)')
    ax.set_xlabel('Factor Number')
    ax.set_ylabel('Eigenvalue')
    ax.set_title(title)
    ax.set_xticks(x)
    ax.legend()
    ax.grid(True, alpha=0.3)
    fig.set_facecolor('white')
    return fig


def plot_loadings_heatmap(loadings: pd.DataFrame, title: str = 'Factor Loadings (Varimax Rotation)') -> plt.Figure:
    """Heatmap of factor (or network) loadings."""
    fig, ax = plt.subplots(figsize=(8, 8))
    sns.heatmap(loadings, annot=True, cmap='RdBu_r', center=0,
                fmt='.2f', linewidths=0.5, vmin=-1, vmax=1, ax=ax)
    ax.set_title(title)
    fig.set_facecolor('white')
    return fig
