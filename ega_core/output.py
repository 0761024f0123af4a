"""
Output Naming and Saving Module
===============================

Dated output directories and consistently named artefacts.

Naming Pattern: {DATE}-{ANALYSIS}-{SUFFIX}.{EXT}
Example: 2024-02-09-ega-network.csv
"""

import base64
import io
import os
from datetime import date
from pathlib import Path

import pandas as pd
import matplotlib.pyplot as plt

from . import config


def get_output_dir(analysis_name: str, base: str = None) -> Path:
    """
    Create and return dated output directory.

    Creates directory: {base}/{DATE}-{analysis_name}/
    Example: outputs/2024-02-09-ega/

    Parameters:
        analysis_name: Name of the analysis (lowercase-hyphen)
        base: Base output directory. Defaults to config.DEFAULT_OUTPUT_BASE

    Returns:
        Path to created output directory
    """
    if base is None:
        base = config.DEFAULT_OUTPUT_BASE

    output_dir = Path(base) / f"{date.today().isoformat()}-{analysis_name}"
    os.makedirs(output_dir, exist_ok=True)

    print(f"Output directory: {output_dir}")
    return output_dir


def build_filename(output_dir: Path, analysis_name: str, suffix: str, ext: str) -> Path:
    """Dated artefact path: {DATE}-{ANALYSIS}-{SUFFIX}.{EXT}"""
    return Path(output_dir) / f"{date.today().isoformat()}-{analysis_name}-{suffix}.{ext}"


def save_csv(
    df: pd.DataFrame,
    output_dir: Path,
    analysis_name: str,
    suffix: str,
    index: bool = False
) -> Path:
    """
    Save DataFrame to CSV with dated filename.

    Parameters:
        df: DataFrame to save
        output_dir: Output directory path
        analysis_name: Analysis name for filename
        suffix: Descriptive suffix (e.g., 'network', 'loadings')
        index: Whether to include index in output

    Returns:
        Path to saved file
    """
    filepath = build_filename(output_dir, analysis_name, suffix, 'csv')
    df.to_csv(filepath, index=index)
    print(f"Saved: {filepath}")
    return filepath


def save_figure(
    fig: plt.Figure,
    output_dir: Path,
    analysis_name: str,
    suffix: str,
    dpi: int = None
) -> Path:
    """
    Save matplotlib figure with dated filename and close it.

    Parameters:
        fig: Matplotlib figure to save
        output_dir: Output directory path
        analysis_name: Analysis name for filename
        suffix: Descriptive suffix (e.g., 'scree', 'network')
        dpi: Resolution. Defaults to config.DEFAULT_DPI

    Returns:
        Path to saved file
    """
    if dpi is None:
        dpi = config.DEFAULT_DPI

    filepath = build_filename(output_dir, analysis_name, suffix, 'png')
    fig.savefig(filepath, dpi=dpi, bbox_inches='tight', facecolor='white')
    plt.close(fig)
    print(f"Saved: {filepath}")
    return filepath


def figure_to_base64(fig: plt.Figure, dpi: int = None) -> str:
    """Render a figure to a base64 PNG string (for embedding in HTML)."""
    if dpi is None:
        dpi = config.DEFAULT_DPI

    buffer = io.BytesIO()
    fig.savefig(buffer, format='png', dpi=dpi, bbox_inches='tight', facecolor='white')
    return base64.b64encode(buffer.getvalue()).decode('ascii')


def save_report(
    text: str,
    output_dir: Path,
    analysis_name: str,
    suffix: str = 'report'
) -> Path:
    """Save plain-text report with dated filename."""
    filepath = build_filename(output_dir, analysis_name, suffix, 'txt')
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(text)
    print(f"Saved: {filepath}")
    return filepath


def save_html(
    html: str,
    output_dir: Path,
    analysis_name: str,
    suffix: str = 'report'
) -> Path:
    """Save HTML report with dated filename."""
    filepath = build_filename(output_dir, analysis_name, suffix, 'html')
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(html)
    print(f"Saved: {filepath}")
    return filepath


def list_outputs(output_dir: Path) -> list[str]:
    """List all files in the output directory."""
    output_dir = Path(output_dir)
    if output_dir.exists():
        return sorted(os.listdir(output_dir))
    return []


def print_summary(output_dir: Path) -> None:
    """Print summary of all output files."""
    files = list_outputs(output_dir)
    if files:
        print(f"\nFiles generated in {output_dir}:")
        for f in files:
            print(f"  - {f}")
    else:
        print(f"\nNo files generated in {output_dir}")
